import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tupyme.services.constants import DEFAULT_FORMATO
from tupyme.utils.validation import threshold_error


class ProductBase(BaseModel):
    """
    Esquema base para productos.
    - `sku` y `nombre` son obligatorios y no pueden quedar en blanco.
    - `min_stock` vacío equivale al umbral por defecto (10).
    """

    sku: str = Field(..., min_length=1, max_length=50)
    nombre: str = Field(..., min_length=1, max_length=150)
    formato: str = Field(default=DEFAULT_FORMATO, max_length=50)
    categoria: Optional[str] = Field(None, max_length=60)
    id_categoria: Optional[int] = Field(None, gt=0)
    costo: float = Field(default=0.0, ge=0)
    precio: float = Field(default=0.0, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    max_stock: Optional[int] = Field(None, ge=0)
    fecha_vencimiento: Optional[datetime.date] = None
    notas: Optional[str] = Field(None, max_length=500)

    @field_validator("sku", "nombre")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("no puede estar vacío")
        return value


class ProductCreate(ProductBase):
    """
    Esquema para la creación de un producto.
    - El `id` lo asigna el servidor (siguiente dentro de la organización).
    """

    stock: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_rules(self):
        error = threshold_error(self.min_stock, self.max_stock)
        if error:
            raise ValueError(error)
        return self


class ProductUpdate(BaseModel):
    """
    Esquema para la actualización parcial de un producto.
    - Cambiar `stock` registra un ajuste y exige `motivo`.
    """

    sku: Optional[str] = Field(None, min_length=1, max_length=50)
    nombre: Optional[str] = Field(None, min_length=1, max_length=150)
    formato: Optional[str] = Field(None, max_length=50)
    categoria: Optional[str] = Field(None, max_length=60)
    id_categoria: Optional[int] = Field(None, gt=0)
    costo: Optional[float] = Field(None, ge=0)
    precio: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    max_stock: Optional[int] = Field(None, ge=0)
    fecha_vencimiento: Optional[datetime.date] = None
    notas: Optional[str] = Field(None, max_length=500)
    motivo: Optional[str] = Field(None, max_length=255)


class ProductResponse(ProductBase):
    """
    Esquema para respuestas de la API.
    - Incluye el estado de stock calculado (`estado_stock`, `severidad`).
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    categoria: str
    stock: int
    activo: bool
    estado_stock: str
    severidad: str


class PaginatedProductResponse(BaseModel):
    data: List[ProductResponse]
    total: int
    limit: int
    offset: int
