"""Unit tests for product normalization rules."""

import pytest

from catalog_indexer.models.product_models import RawProduct
from catalog_indexer.services.normalizer import (
    NO_BRAND,
    NO_WEIGHT,
    DataNormalizer,
    build_embedding_text,
    calculate_cost_price,
    clean_text,
    expand_abbreviations,
    extract_unit_count,
    normalize_weight,
    parse_description,
    round_price,
)


@pytest.fixture
def normalizer():
    return DataNormalizer()


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0.15", "150G"),
        ("1000", "1KG"),
        ("250 GR", "250G"),
        ("", NO_WEIGHT),
        (None, NO_WEIGHT),
        ("   ", NO_WEIGHT),
        ("1 kilo", "1KG"),
        ("500cc", "500ML"),
        ("1,5 LTS", "1.5L"),
        ("1500 gramos", "1500G"),
        ("2500", "2500G"),
        ("3000", "3KG"),
        ("750", "750G"),
        ("0,5", "500G"),
    ],
)
def test_normalize_weight(raw, expected):
    assert normalize_weight(raw) == expected


def test_cost_price_uses_reduced_rate_for_legumes():
    assert calculate_cost_price(100, "LEGUMBRES Y SEMILLAS", "POROTOS ALUBIA 500G") == pytest.approx(110.5)


def test_cost_price_split_peas_use_general_rate():
    assert calculate_cost_price(100, "LEGUMBRES Y SEMILLAS", "ARVEJAS PARTIDAS 500G") == pytest.approx(121.0)


def test_cost_price_general_rate_for_other_categories():
    assert calculate_cost_price(100, "ALMACEN", "POROTOS ALUBIA 500G") == pytest.approx(121.0)


def test_cost_price_category_match_is_case_insensitive():
    assert calculate_cost_price(200, "legumbres y semillas secas", "lentejas") == pytest.approx(221.0)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("ALMACEN - ARCOR - CARAMELOS 1KG", ("ARCOR", "CARAMELOS 1KG")),
        ("ARCOR - CARAMELOS 1KG", ("ARCOR", "CARAMELOS 1KG")),
        ("AZUCAR 1KG", (NO_BRAND, "AZUCAR 1KG")),
        (" - CARAMELOS", (NO_BRAND, "CARAMELOS")),
    ],
)
def test_parse_description(raw, expected):
    assert parse_description(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("MERM FRUT 454G", "mermelada frutilla 454G"),
        ("YOG FRUT.ROJAS", "yogur frutos rojos"),
        ("GALLET C/ CHOC", "galleta con chocolate"),
        ("DULCE,MERM.", "DULCE,mermelada."),
        ("S/AZ", "sin azucar"),
        ("MERMELADA", "MERMELADA"),
        ("ENTRERRIANO", "ENTRERRIANO"),
    ],
)
def test_expand_abbreviations(raw, expected):
    assert expand_abbreviations(raw) == expected


def test_clean_text_strips_disallowed_characters():
    assert clean_text("  Hola@@ mundo!!  ñandú  ") == "Hola mundo ñand"
    assert clean_text("1/2 kg, x6. - oferta") == "1/2 kg, x6. - oferta"
    assert clean_text(None) == ""


def test_build_embedding_text_drops_trailing_size_token():
    text = build_embedding_text("ARCOR", "caramelos surtidos 1KG", "1KG")
    assert text == "Marca: ARCOR; Descripcion: caramelos surtidos; Calibre: 1KG;"


def test_build_embedding_text_single_word_description():
    assert build_embedding_text("X", "ARROZ", "1KG") == "Marca: X; Descripcion: ; Calibre: 1KG;"


def test_round_price_half_up_and_non_negative():
    assert round_price(2.675) == 2.68
    assert round_price(10) == 10.0
    assert round_price(-5) == 0.0


@pytest.mark.parametrize(
    "description, expected",
    [
        ("caja 12 unidades", 12),
        ("galletitas x 6", 6),
        ("arroz largo fino", None),
        ("", None),
    ],
)
def test_extract_unit_count(description, expected):
    assert extract_unit_count(description) == expected


def test_normalize_product_full_record(normalizer, product_factory):
    raw = RawProduct.model_validate(product_factory(1))

    product = normalizer.normalize_product(raw)

    assert product.codigo == "1"
    assert product.marca == "MARCA1"
    assert product.descripcion == "PRODUCTO 1 500G"
    assert product.rubro_descripcion == "ALMACEN"
    assert product.peso == "500G"
    assert product.stock_bultos == 2
    assert product.precio_costo == 121.0
    assert product.preciofinal == 150.0
    assert product.precio_l1_5 == 142.5
    assert product.precio_l1_11 == 133.5
    assert product.texto_para_embedding == "Marca: MARCA1; Descripcion: PRODUCTO 1; Calibre: 500G;"


def test_normalize_product_legume_cost(normalizer, product_factory):
    raw = RawProduct.model_validate(product_factory(
        7,
        Descripcion="LEG - INALPA - LENTEJAS 400G",
        Rubro_Descripcion="LEGUMBRES Y SEMILLAS",
        CostoSDesc=100,
    ))

    assert normalizer.normalize_product(raw).precio_costo == 110.5


def test_stock_boxes_is_floor_of_units_per_box(normalizer, product_factory):
    raw = RawProduct.model_validate(product_factory(3, Stock=35, UXBCompra=12))

    assert normalizer.normalize_product(raw).stock_bultos == 2


def test_numeric_codes_are_coerced_to_strings(normalizer, product_factory):
    products = normalizer.normalize_products([product_factory(1, Codigo=1001)])

    assert products[0].codigo == "1001"


def test_excluded_lines_are_filtered(normalizer, product_factory):
    records = [
        product_factory(1, Linea=1),
        product_factory(2, Linea=5),
        product_factory(3, Linea="6"),
        product_factory(4, Linea=7),
        product_factory(5, Linea="2"),
    ]

    products = normalizer.normalize_products(records)

    assert [p.codigo for p in products] == ["1", "5"]


@pytest.mark.parametrize("line", [5, 6.0, "7", 5.0, " 5 "])
def test_excluded_line_codes_in_any_numeric_form(normalizer, product_factory, line):
    assert normalizer.normalize_products([product_factory(1, Linea=line)]) == []


@pytest.mark.parametrize("line", [1, 2.0, 5.5, "50", None])
def test_other_line_codes_are_kept(normalizer, product_factory, line):
    assert len(normalizer.normalize_products([product_factory(1, Linea=line)])) == 1


def test_malformed_records_are_skipped(normalizer, product_factory):
    records = [
        product_factory(1),
        {"Codigo": "2", "Descripcion": "SIN PRECIOS"},
        product_factory(3, Stock="abc"),
        product_factory(4, UXBCompra=0),
        product_factory(5),
    ]

    products = normalizer.normalize_products(records)

    assert [p.codigo for p in products] == ["1", "5"]


def test_missing_final_price_defaults_to_zero(normalizer, product_factory):
    record = product_factory(1)
    del record["PrecioFinal"]

    product = normalizer.normalize_products([record])[0]

    assert product.preciofinal == 0.0
    assert product.precio_l1_5 == 0.0
    assert product.precio_l1_11 == 0.0


def test_null_final_price_defaults_to_zero(normalizer, product_factory):
    products = normalizer.normalize_products([product_factory(1, PrecioFinal=None)])

    assert len(products) == 1
    assert products[0].preciofinal == 0.0
    assert products[0].precio_l1_5 == 0.0
    assert products[0].precio_costo == 121.0


def test_weight_is_sanitized(normalizer, product_factory):
    raw = RawProduct.model_validate(product_factory(1, Calibre_Descripcion="500 GR (APROX)"))

    product = normalizer.normalize_product(raw)

    assert product.peso == "500GAPROX"
    assert product.texto_para_embedding.endswith("Calibre: 500GAPROX;")


def test_missing_weight_keeps_placeholder(normalizer, product_factory):
    raw = RawProduct.model_validate(product_factory(1, Calibre_Descripcion=None))

    assert normalizer.normalize_product(raw).peso == NO_WEIGHT


def test_normalize_never_adds_records_and_prices_are_rounded(normalizer, product_factory):
    records = [
        product_factory(i, CostoSDesc=cost, PrecioFinal=price, Linea=line)
        for i, (cost, price, line) in enumerate(
            [(10.333, 19.99, 1), (0.015, 0.01, 5), (99.999, 1234.567, 2), (-3, -10, 3), (7.77, 8.885, 1)],
            start=1,
        )
    ]

    products = normalizer.normalize_products(records)

    assert len(products) <= len(records)
    for product in products:
        for price in (product.precio_costo, product.preciofinal, product.precio_l1_5, product.precio_l1_11):
            assert price >= 0
            assert round(price, 2) == price


def test_normalize_is_deterministic(normalizer, raw_products):
    first = normalizer.normalize_products(raw_products[:20])
    second = normalizer.normalize_products(raw_products[:20])

    assert first == second
