# Catalog product models: upstream raw records and their normalized form
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


class RawProduct(BaseModel):
    """
    Product record as delivered by the upstream catalog service.
    Field aliases keep the upstream column names.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    codigo: str = Field(alias="Codigo")
    descripcion: str = Field(alias="Descripcion")
    rubro_descripcion: str = Field(default="", alias="Rubro_Descripcion")
    costo_sin_descuento: float = Field(alias="CostoSDesc")
    precio_final: Optional[float] = Field(default=0.0, alias="PrecioFinal")
    stock: float = Field(alias="Stock")
    calibre_descripcion: Optional[str] = Field(default="", alias="Calibre_Descripcion")
    unidades_por_bulto: float = Field(alias="UXBCompra", gt=0)
    linea: Union[str, None] = Field(default=None, alias="Linea")

    @field_validator("precio_final", mode="before")
    @classmethod
    def _null_price_is_zero(cls, value):
        return 0.0 if value is None else value

    @field_validator("linea", mode="before")
    @classmethod
    def _integral_line_code(cls, value):
        # 5.0 from JSON is line "5"
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return value


class NormalizedProduct(BaseModel):
    """Canonical product; model_dump() is the Qdrant point payload"""
    model_config = ConfigDict(frozen=True)

    codigo: str
    descripcion: str
    marca: str
    rubro_descripcion: str
    peso: str
    stock_unidad: float
    uxbcompra: float
    stock_bultos: int
    precio_costo: float = Field(ge=0)
    preciofinal: float = Field(ge=0)
    precio_l1_5: float = Field(ge=0)
    precio_l1_11: float = Field(ge=0)
    texto_para_embedding: str
