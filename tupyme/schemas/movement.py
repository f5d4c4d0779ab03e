from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Literal, List, Optional

from tupyme.services.movements import normalize_movement_type


class MovementCreate(BaseModel):
    """Esquema para registrar un movimiento.
    - `tipo` acepta también los alias `in`, `out` y `adjust`.
    - En un `ajuste`, `cantidad` es el stock final y `motivo` es obligatorio."""

    product_id: int = Field(..., gt=0, description="ID del producto")
    tipo: Literal["entrada", "salida", "ajuste"] = Field(
        ..., description="Debe ser 'entrada', 'salida' o 'ajuste'"
    )
    cantidad: int = Field(..., ge=0, strict=True)
    motivo: Optional[str] = Field(None, max_length=255)

    @field_validator("tipo", mode="before")
    @classmethod
    def alias_tipo(cls, value):
        if isinstance(value, str):
            return normalize_movement_type(value)
        return value


class MovementResponse(BaseModel):
    """Esquema para responder con los datos de un movimiento."""

    id_mov: int
    product_id: int
    producto_nombre: Optional[str] = None
    producto_sku: Optional[str] = None
    fecha: datetime
    tipo: str
    cantidad: int
    stock_antes: int
    stock_despues: int
    motivo: Optional[str] = None
    id_usuario: Optional[int] = None
    nombre_usuario: str = "Desconocido"
    usuario_rol: str

    class Config:
        from_attributes = True  # Permite convertir modelos SQLModel en respuestas JSON automáticamente


class PaginatedMovementsResponse(BaseModel):
    data: List[MovementResponse]
    total: int
    limit: int
    offset: int


class MovimientoResumen(BaseModel):
    tipo: str
    cantidad: int
