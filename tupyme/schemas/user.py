from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field

from tupyme.utils.permissions import ROLES

ROL_PATTERN = "^(" + "|".join(ROLES) + ")$"


class UserBase(BaseModel):
    """
    Esquema base para usuarios.
    - Define los campos comunes a todos los esquemas de usuario.
    - `EmailStr` valida que el correo tenga formato correcto.
    """

    nombre: str = Field(
        ..., min_length=3, max_length=100, description="Nombre del usuario"
    )
    email: EmailStr = Field(
        ..., max_length=100, description="Correo electrónico válido"
    )


class UserRegister(UserBase):
    """
    Esquema para el registro público.
    - Crea la organización `organizacion` y su primer usuario (admin, activo).
    """

    passwd: str = Field(
        ...,
        min_length=8,
        max_length=255,
        description="Contraseña segura (mínimo 8 caracteres)",
    )
    organizacion: str = Field(
        ..., min_length=2, max_length=150, description="Nombre del negocio"
    )


class UserCreate(UserBase):
    """
    Esquema para que un admin cree usuarios en su organización.
    - `passwd`: Se exige un mínimo de 8 caracteres.
    - `rol`: Por defecto, 'seller' (vendedor), el de menos permisos.
    """

    passwd: str = Field(
        ...,
        min_length=8,
        max_length=255,
        description="Contraseña segura (mínimo 8 caracteres)",
    )
    rol: str = Field(
        default="seller",
        pattern=ROL_PATTERN,
        description="Rol del usuario (admin/warehouse/cashier/seller)",
    )
    activo: bool = Field(default=True, description="Estado activo/inactivo del usuario")


class UserUpdate(BaseModel):
    """
    Esquema para actualizar usuarios.
    - Permite modificar `nombre`, `email`, `rol`, `activo` y `passwd`.
    """

    nombre: Optional[str] = Field(
        None, min_length=3, max_length=100, description="Nuevo nombre del usuario"
    )
    email: Optional[EmailStr] = Field(
        None, max_length=100, description="Nuevo email del usuario"
    )
    rol: Optional[str] = Field(None, pattern=ROL_PATTERN, description="Nuevo rol")
    activo: Optional[bool] = None

    passwd: Optional[str] = Field(
        None, min_length=8, description="Nueva contraseña (opcional)"
    )


class UserResponse(UserBase):
    """
    Esquema para respuestas de usuario.
    - Incluye `id`, `rol`, `rol_label` y `activo`.
    - No incluye `passwd` por seguridad.
    """

    id: int
    organization_id: int
    rol: str
    rol_label: str
    activo: bool

    class Config:
        from_attributes = True  # Permite convertir modelos SQLModel en JSON


class PaginatedUserResponse(BaseModel):
    data: List[UserResponse]
    total: int
    limit: int
    offset: int
