from sqlmodel import SQLModel, Field

from tupyme.utils.permissions import role_label


class User(SQLModel, table=True):
    __tablename__ = "usuario"

    id: int = Field(default=None, primary_key=True, nullable=False)
    organization_id: int = Field(foreign_key="organizacion.id", nullable=False, index=True)
    nombre: str = Field(nullable=False)
    email: str = Field(unique=True, nullable=False, index=True)
    passwd: str = Field(nullable=False)
    rol: str = Field(nullable=False)  # admin | warehouse | cashier | seller
    activo: bool = Field(default=True, nullable=False)

    @property
    def rol_label(self) -> str:
        return role_label(self.rol)
