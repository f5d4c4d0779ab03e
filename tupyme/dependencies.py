from datetime import datetime
from fastapi import Depends, HTTPException, status
from sqlmodel import Session
from tupyme.models.database import get_db
from tupyme.models.user import User
from tupyme.routers.auth import get_current_user
from tupyme.services.stores import (
    CategoryStore,
    MovementStore,
    ProductStore,
    UserStore,
)
from tupyme.utils.permissions import GESTIONAR_USUARIOS, has_permission


def get_now() -> datetime:
    """Reloj de la aplicación. Los tests lo sustituyen por una fecha fija."""
    return datetime.now()


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Solo los administradores gestionan usuarios."""
    if not has_permission(user.rol, GESTIONAR_USUARIOS):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permisos para realizar esta acción."
        )
    return user


def require_permission(permiso: str):
    """Crea una dependencia que exige `permiso` al rol del usuario autenticado."""

    def checker(user: User = Depends(get_current_user)) -> User:
        if not has_permission(user.rol, permiso):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No tienes permisos para realizar esta acción."
            )
        return user

    return checker


def get_product_store(
    db: Session = Depends(get_db), user: User = Depends(get_current_user)
) -> ProductStore:
    return ProductStore(db, user.organization_id)


def get_movement_store(
    db: Session = Depends(get_db), user: User = Depends(get_current_user)
) -> MovementStore:
    return MovementStore(db, user.organization_id)


def get_category_store(
    db: Session = Depends(get_db), user: User = Depends(get_current_user)
) -> CategoryStore:
    return CategoryStore(db, user.organization_id)


def get_user_store(
    db: Session = Depends(get_db), user: User = Depends(get_current_user)
) -> UserStore:
    return UserStore(db, user.organization_id)
