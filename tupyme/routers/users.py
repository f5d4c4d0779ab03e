from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from tupyme.dependencies import get_user_store, require_admin
from tupyme.logging_conf import get_logger
from tupyme.models.user import User
from tupyme.routers.auth import get_current_user
from tupyme.schemas.user import (
    PaginatedUserResponse,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from tupyme.services.stores import UserStore
from tupyme.utils.authentication import hash_password
from tupyme.utils.permissions import is_admin_user

logger = get_logger(__name__)

router = APIRouter(prefix="/usuarios", tags=["Usuarios"])


def _get_or_404(store: UserStore, id: int) -> User:
    # Los usuarios de otras organizaciones no existen para esta
    user = store.get(id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado"
        )
    return user


@router.get("/", response_model=PaginatedUserResponse)
def get_users(
    store: UserStore = Depends(get_user_store),
    current_user: User = Depends(require_admin),
    limit: int = Query(10, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None),
    estado: Optional[bool] = Query(None),
):
    """Lista los usuarios de la organización (solo admins).
    - `search` filtra por nombre o email.
    - `estado` filtra por activo/inactivo.
    """
    users, total = store.list(limit=limit, offset=offset, search=search, activo=estado)
    return {"data": users, "total": total, "limit": limit, "offset": offset}


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    store: UserStore = Depends(get_user_store),
    current_user: User = Depends(require_admin),
):
    """Un admin da de alta a un usuario de su organización con el rol indicado."""
    if store.email_in_use(user_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El correo ya está registrado.",
        )

    new_user = store.save(
        User(
            nombre=user_data.nombre,
            email=user_data.email,
            passwd=hash_password(user_data.passwd),
            rol=user_data.rol,
            activo=user_data.activo,
        )
    )
    logger.info(
        "Usuario %s (%s) creado en la organización %s",
        new_user.id,
        new_user.rol,
        new_user.organization_id,
    )
    return new_user


@router.get("/{id}", response_model=UserResponse)
def get_user(
    id: int,
    store: UserStore = Depends(get_user_store),
    current_user: User = Depends(get_current_user),
):
    """Un admin ve cualquier usuario de su organización; el resto, solo su perfil."""
    if not is_admin_user(current_user) and current_user.id != id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permiso para ver este usuario",
        )
    return _get_or_404(store, id)


@router.put("/{id}", response_model=UserResponse)
def update_user(
    id: int,
    user_update: UserUpdate,
    store: UserStore = Depends(get_user_store),
    current_user: User = Depends(get_current_user),
):
    """Edita un usuario.
    - Cada usuario puede cambiar su nombre, email y contraseña.
    - Solo un admin cambia el rol o el estado, y nunca los suyos propios.
    - Los movimientos ya registrados conservan la etiqueta del rol anterior.
    """
    is_admin = is_admin_user(current_user)
    if not is_admin and id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permiso para editar este usuario",
        )

    user = _get_or_404(store, id)
    propio = user.id == current_user.id

    if (user_update.rol or user_update.activo is not None) and not is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permisos para cambiar el rol o el estado",
        )
    if propio and user_update.rol and user_update.rol != "admin":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No puedes quitarte el rol de administrador",
        )
    if propio and user_update.activo is False:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No puedes desactivar tu propio usuario",
        )

    if user_update.email and store.email_in_use(user_update.email, exclude_id=user.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="El email ya está en uso"
        )

    for campo in ("nombre", "email", "rol"):
        valor = getattr(user_update, campo)
        if valor:
            setattr(user, campo, valor)
    if user_update.activo is not None:
        user.activo = user_update.activo
    if user_update.passwd:
        user.passwd = hash_password(user_update.passwd)

    return store.save(user)
