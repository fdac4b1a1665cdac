from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from decimal import Decimal, ROUND_HALF_UP
import logging
import math
import re

from pydantic import ValidationError

from catalog_indexer.models.product_models import RawProduct, NormalizedProduct
from catalog_indexer.services.abbreviations import ABBREVIATIONS

logger = logging.getLogger(__name__)

# Product lines that are not part of the sellable catalog
EXCLUDED_LINES = frozenset({"5", "6", "7"})

NO_BRAND = "NO_MARCA"
NO_WEIGHT = "S/P"

GENERAL_TAX_RATE = 1.21
LEGUMES_TAX_RATE = 1.105
LEGUMES_CATEGORY_MARKER = "LEGUMBRES Y SEMILLAS"
LEGUMES_EXCLUDED_MARKER = "ARVEJAS PARTIDAS"

DISCOUNT_TIER_5 = 0.95
DISCOUNT_TIER_11 = 0.89

# Applied in order, first occurrence only
_UNIT_PATTERNS = [
    (re.compile(r"KILOGRAMOS?|KILOS?|KGS?|K$"), "KG"),
    (re.compile(r"MILILITROS?|MLS?|CC|CM3"), "ML"),
    (re.compile(r"GRAMOS?|GRS?"), "G"),
    (re.compile(r"LITROS?|LTS?"), "L"),
]
_NUMERIC_WEIGHT = re.compile(r"\d+\.?\d*")
_HAS_LETTER = re.compile(r"[A-Z]")

_DISALLOWED_CHARS = re.compile(r"[^a-zA-Z0-9\sñÑ,./-]")
_REPEATED_WHITESPACE = re.compile(r"\s{2,}")

_TOKEN_CHAR = "0-9A-Za-zÁÉÍÓÚÜÑáéíóúüñ"

_UNIT_COUNT_PATTERN = re.compile(r"(\d+)\s*(?:uni(?:dad)?es?|un|u\.?|sobres|pack|caja|blister)")
_X_COUNT_PATTERN = re.compile(r"x\s*(\d+)")


def _compile_abbreviations(pairs: Iterable[Tuple[str, str]]) -> List[Tuple[re.Pattern, str]]:
    compiled = []
    for abbreviation, expansion in pairs:
        pattern = re.compile(
            rf"(?<![{_TOKEN_CHAR}]){re.escape(abbreviation)}(?![{_TOKEN_CHAR}])",
            re.IGNORECASE,
        )
        compiled.append((pattern, expansion))
    return compiled


_ABBREVIATION_RULES = _compile_abbreviations(ABBREVIATIONS)


def parse_description(raw_description: str) -> Tuple[str, str]:
    """
    Split the upstream description into (brand, description).

    "LINEA - BRAND - DESCRIPTION" -> part 1 is the brand, part 2 the description
    "BRAND - DESCRIPTION"         -> part 0 is the brand, part 1 the description
    anything else                 -> no brand, whole field is the description
    """
    raw_description = str(raw_description)
    parts = raw_description.split("-")

    if len(parts) >= 3:
        return parts[1].strip() or NO_BRAND, parts[2].strip() or raw_description
    if len(parts) == 2:
        return parts[0].strip() or NO_BRAND, parts[1].strip() or raw_description
    return NO_BRAND, raw_description.strip()


def calculate_cost_price(base_cost: float, category: str, description: str) -> float:
    """Base cost plus VAT; legumes and seeds use the reduced rate except split peas"""
    is_legume = LEGUMES_CATEGORY_MARKER in (category or "").upper()
    is_split_pea = LEGUMES_EXCLUDED_MARKER in (description or "").upper()

    if is_legume and not is_split_pea:
        return base_cost * LEGUMES_TAX_RATE
    return base_cost * GENERAL_TAX_RATE


def round_price(value: float) -> float:
    """Round half-up to 2 decimals, never below zero"""
    rounded = float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
    return max(rounded, 0.0)


def _format_quantity(value: float) -> str:
    value = round(value, 6)
    if value.is_integer():
        return str(int(value))
    return f"{value}"


def normalize_weight(weight: Optional[str]) -> str:
    """
    Normalize a size/weight descriptor.

    Examples:
        "250 GR" -> "250G", "1 KILO" -> "1KG", "500CC" -> "500ML"
        "0.15" -> "150G", "1000" -> "1KG", "" -> "S/P"
    """
    if weight is None:
        return NO_WEIGHT

    weight_str = re.sub(r"\s+", "", str(weight).upper()).replace(",", ".", 1)
    if not weight_str:
        return NO_WEIGHT

    normalized = weight_str
    for pattern, unit in _UNIT_PATTERNS:
        normalized = pattern.sub(unit, normalized, count=1)

    if normalized != weight_str or _HAS_LETTER.search(normalized):
        return normalized

    # No unit: treat the bare number as grams, or as kilograms when below 1
    if _NUMERIC_WEIGHT.fullmatch(weight_str):
        value = float(weight_str)
        if value < 1:
            return f"{_format_quantity(value * 1000)}G"
        if value >= 1000 and value % 1000 == 0:
            return f"{_format_quantity(value / 1000)}KG"
        return f"{_format_quantity(value)}G"

    return normalized


def expand_abbreviations(description: str) -> str:
    expanded = description
    for pattern, expansion in _ABBREVIATION_RULES:
        expanded = pattern.sub(expansion, expanded)
    return expanded


def clean_text(text: Any) -> str:
    if text is None:
        return ""
    cleaned = _DISALLOWED_CHARS.sub("", str(text).strip())
    return _REPEATED_WHITESPACE.sub(" ", cleaned).strip()


def build_embedding_text(brand: str, description: str, weight: str) -> str:
    # The last word of the description is the size token, already carried by weight
    description_without_weight = " ".join(description.split()[:-1])
    text = f"Marca: {brand}; Descripcion: {description_without_weight}; Calibre: {weight};"
    return re.sub(r"\s+", " ", text).strip()


def extract_unit_count(description: str) -> Optional[int]:
    """Units per pack from texts like "12 unidades" or "x6", or None"""
    if not description:
        return None

    desc = description.lower()
    match = _UNIT_COUNT_PATTERN.search(desc) or _X_COUNT_PATTERN.search(desc)
    if match:
        return int(match.group(1))
    return None


class DataNormalizer:
    """
    Pure transformation from upstream product records to NormalizedProduct.
    No I/O; records that fail validation are skipped and logged.
    """

    def normalize_products(self, records: Iterable[Union[RawProduct, Dict[str, Any]]]) -> List[NormalizedProduct]:
        records = list(records)
        logger.info(f"Normalizing {len(records)} products...")

        normalized = []
        excluded = 0
        skipped = 0

        for position, record in enumerate(records):
            try:
                raw = record if isinstance(record, RawProduct) else RawProduct.model_validate(record)
            except ValidationError as e:
                skipped += 1
                logger.warning(f"Skipping malformed product at position {position}: {e.error_count()} validation error(s)")
                continue

            if raw.linea is not None and str(raw.linea).strip() in EXCLUDED_LINES:
                excluded += 1
                continue

            try:
                normalized.append(self.normalize_product(raw))
            except (ValueError, ArithmeticError) as e:
                skipped += 1
                logger.warning(f"Skipping product {raw.codigo}: {str(e)}")

        logger.info(
            f"Normalization completed: {len(normalized)} normalized, "
            f"{excluded} excluded by line, {skipped} skipped as malformed"
        )
        return normalized

    def normalize_product(self, raw: RawProduct) -> NormalizedProduct:
        brand, description = parse_description(raw.descripcion)

        cost_price = calculate_cost_price(raw.costo_sin_descuento, raw.rubro_descripcion, description)
        stock_boxes = math.floor(raw.stock / raw.unidades_por_bulto)

        final_price = raw.precio_final or 0.0
        weight = clean_text(normalize_weight(raw.calibre_descripcion))

        description = clean_text(expand_abbreviations(description))
        brand = clean_text(brand)

        return NormalizedProduct(
            codigo=clean_text(raw.codigo),
            descripcion=description,
            marca=brand,
            rubro_descripcion=clean_text(raw.rubro_descripcion),
            peso=weight,
            stock_unidad=raw.stock,
            uxbcompra=raw.unidades_por_bulto,
            stock_bultos=stock_boxes,
            precio_costo=round_price(cost_price),
            preciofinal=round_price(final_price),
            precio_l1_5=round_price(final_price * DISCOUNT_TIER_5),
            precio_l1_11=round_price(final_price * DISCOUNT_TIER_11),
            texto_para_embedding=build_embedding_text(brand, description, weight),
        )


# Global normalizer instance
data_normalizer = DataNormalizer()
