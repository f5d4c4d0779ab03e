"""
Autenticación de usuarios:
- Registro (/auth/registro) → Crea la organización y su primer usuario (admin).
- Inicio de sesión (/auth/login) → Verifica credenciales y devuelve un token JWT.
- Perfil (/auth/perfil) → Datos del usuario del token.
- Refresco (/auth/refresh) y cierre de sesión (/auth/logout) con el refresh token en cookie HttpOnly.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from pydantic import BaseModel
from sqlmodel import Session, func, select
from tupyme.logging_conf import get_logger
from tupyme.models.database import get_db
from tupyme.models.organization import Organization
from tupyme.models.user import User
from tupyme.schemas.user import UserRegister, UserResponse
from tupyme.services.stores import UserStore, db_errors
from tupyme.utils.authentication import (
    REFRESH_TOKEN_DURATION,
    access_token_for,
    decode_access_token,
    hash_password,
    refresh_token_for,
    verify_password,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Autenticación"])

oauth2 = OAuth2PasswordBearer(tokenUrl="/auth/login")

REFRESH_COOKIE = "refresh_token"
REFRESH_PATH = "/auth/refresh"

INACTIVE_USER = "El usuario está inactivo. Contacta al administrador para activarlo."


def _user_by_id(db: Session, user_id) -> User | None:
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        return None
    with db_errors(db):
        return db.get(User, user_id)


def _user_by_email(db: Session, email: str) -> User | None:
    with db_errors(db):
        return db.exec(
            select(User).where(func.lower(User.email) == email.lower())
        ).first()


### REGISTRO DE ORGANIZACIÓN Y ADMINISTRADOR ###
@router.post(
    "/registro", response_model=UserResponse, status_code=status.HTTP_201_CREATED
)
def register(user_data: UserRegister, db: Session = Depends(get_db)):
    """Registra un negocio nuevo: crea la organización y su usuario administrador."""
    if _user_by_email(db, user_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El correo ya está registrado.",
        )

    organization = Organization(nombre=user_data.organizacion.strip())
    with db_errors(db, "Error interno del servidor al registrar el usuario."):
        db.add(organization)
        db.flush()  # id de la organización para su primer usuario

    # El primer usuario de la organización la administra
    admin = UserStore(db, organization.id).save(
        User(
            nombre=user_data.nombre,
            email=user_data.email,
            passwd=hash_password(user_data.passwd),
            rol="admin",
            activo=True,
        )
    )
    logger.info("Organización %s registrada por el usuario %s", organization.id, admin.id)
    return admin


### LOGIN DE USUARIO ###
@router.post("/login")
def login(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """Autentica al usuario. OAuth2 llama `username` a lo que aquí es el email."""
    user = _user_by_email(db, form_data.username)
    if not user or not verify_password(form_data.password, user.passwd):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciales incorrectas"
        )
    if not user.activo:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=INACTIVE_USER)

    response.set_cookie(
        key=REFRESH_COOKIE,
        value=refresh_token_for(user),
        httponly=True,  # Fuera del alcance de JavaScript
        secure=True,
        samesite="none",  # El frontend vive en otro origen
        path=REFRESH_PATH,
        max_age=REFRESH_TOKEN_DURATION * 24 * 60 * 60,
    )
    return {"access_token": access_token_for(user), "token_type": "bearer"}


### USUARIO AUTENTICADO ###
def user_from_token(token: str, db: Session) -> User:
    """Valida un token de acceso y devuelve su usuario (activo)."""
    payload = decode_access_token(token)

    # Un refresh token no abre la API
    if not payload.get("sub") or payload.get("type") == "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido"
        )

    user = _user_by_id(db, payload["sub"])
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuario no encontrado o eliminado",
        )
    if not user.activo:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=INACTIVE_USER)
    return user


def get_current_user(token: str = Depends(oauth2), db: Session = Depends(get_db)):
    return user_from_token(token, db)


@router.get("/perfil", response_model=UserResponse)
def get_profile(user: User = Depends(get_current_user)):
    return user


### REFRESCAR TOKEN ###
@router.post("/refresh")
def refresh_token(request: Request, db: Session = Depends(get_db)):
    """Nuevo token de acceso a partir del refresh token de la cookie HttpOnly."""
    token = request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token no encontrado en cookies",
        )

    payload = decode_access_token(token)
    if payload.get("type") != "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh Token inválido"
        )

    user = _user_by_id(db, payload.get("sub"))
    if not user or not user.activo:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuario no encontrado o eliminado",
        )
    return {"access_token": access_token_for(user), "token_type": "bearer"}


### VERIFICACIÓN CON CONTRASEÑA ###
class PasswordCheckRequest(BaseModel):
    password: str


@router.post("/verify-password")
def verify_user_password(
    data: PasswordCheckRequest, current_user: User = Depends(get_current_user)
):
    """Confirma la contraseña del usuario antes de una acción sensible."""
    if not verify_password(data.password, current_user.passwd):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Contraseña incorrecta"
        )
    return {"message": "Contraseña válida"}


### LOGOUT ###
@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(
        key=REFRESH_COOKIE, path=REFRESH_PATH, secure=True, samesite="none"
    )
    return {"message": "Sesión cerrada correctamente"}
