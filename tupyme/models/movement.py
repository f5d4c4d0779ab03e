from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime


class Movement(SQLModel, table=True):
    __tablename__ = "movimientos"

    id_mov: int = Field(default=None, primary_key=True, nullable=False)
    organization_id: int = Field(foreign_key="organizacion.id", nullable=False, index=True)
    # Sin FK: la clave de producto es compuesta; el borrado en cascada lo hace ProductStore
    product_id: int = Field(nullable=False, index=True)
    fecha: datetime = Field(default_factory=lambda: datetime.now())
    tipo: str = Field(
        nullable=False
    )  # Tipo como `str`, la restricción la ponemos en el esquema
    cantidad: int = Field(nullable=False, ge=0)
    stock_antes: int = Field(nullable=False, ge=0)
    stock_despues: int = Field(nullable=False, ge=0)
    motivo: Optional[str] = Field(default=None)
    id_usuario: Optional[int] = Field(default=None, foreign_key="usuario.id")
    usuario_rol: str = Field(nullable=False)  # etiqueta del rol al momento de crear
