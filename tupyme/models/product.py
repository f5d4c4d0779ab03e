import datetime
from typing import Optional
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """Producto del catálogo de una organización.

    La clave es compuesta (`organization_id`, `id`): el `id` es estable y único
    dentro de la organización, y es el que asigna la importación.
    """

    __tablename__ = "producto"
    __table_args__ = (UniqueConstraint("organization_id", "sku"),)

    organization_id: int = Field(
        foreign_key="organizacion.id", primary_key=True, nullable=False
    )
    id: int = Field(primary_key=True, nullable=False, ge=1)
    sku: str = Field(nullable=False, index=True, max_length=50)
    nombre: str = Field(nullable=False, max_length=150)
    formato: str = Field(default="Unidad", nullable=False)
    categoria: str = Field(default="Sin categoría", nullable=False)
    id_categoria: Optional[int] = Field(
        default=None, foreign_key="categoria_producto.id"
    )
    costo: float = Field(default=0.0, ge=0)
    precio: float = Field(default=0.0, ge=0)
    stock: int = Field(default=0, ge=0, description="Unidades disponibles (mínimo 0)")
    min_stock: Optional[int] = Field(default=None, ge=0)
    max_stock: Optional[int] = Field(default=None, ge=0)
    fecha_vencimiento: Optional[datetime.date] = Field(default=None)
    notas: Optional[str] = Field(default=None)
    activo: bool = Field(default=True, nullable=False)
