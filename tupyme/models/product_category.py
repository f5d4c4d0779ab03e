from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class ProductCategory(SQLModel, table=True):
    __tablename__ = "categoria_producto"
    __table_args__ = (UniqueConstraint("organization_id", "nombre"),)

    id: int = Field(default=None, primary_key=True)
    organization_id: int = Field(foreign_key="organizacion.id", nullable=False, index=True)
    nombre: str = Field(index=True, nullable=False)
