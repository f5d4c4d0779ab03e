from datetime import datetime
from sqlmodel import SQLModel, Field


class Organization(SQLModel, table=True):
    __tablename__ = "organizacion"

    id: int = Field(default=None, primary_key=True, nullable=False)
    nombre: str = Field(nullable=False, max_length=150)
    creado: datetime = Field(default_factory=lambda: datetime.now())
