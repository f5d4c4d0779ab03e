# Contraseñas con bcrypt (passlib) y tokens JWT (PyJWT) firmados con HS256.
# https://fastapi.tiangolo.com/tutorial/security/oauth2-jwt/
import os
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import HTTPException, status
from passlib.context import CryptContext

from tupyme.utils.getenv import get_required_env

SECRET_KEY = get_required_env("SECRET_KEY")
ALGORITHM = "HS256"

ACCESS_TOKEN_DURATION = int(os.getenv("ACCESS_TOKEN_DURATION", 30))  # minutos
REFRESH_TOKEN_DURATION = int(os.getenv("REFRESH_TOKEN_DURATION", 7))  # días

# bcrypt añade sal: dos hashes de la misma contraseña son distintos
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: timedelta) -> str:
    """Firma `data` añadiendo la fecha de expiración (`exp`)."""
    to_encode = data.copy()
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def access_token_for(user) -> str:
    """Token de acceso: id (`sub`, como texto), rol y organización (`org`)."""
    claims = {"sub": str(user.id), "role": user.rol, "org": user.organization_id}
    return create_access_token(claims, timedelta(minutes=ACCESS_TOKEN_DURATION))


def refresh_token_for(user) -> str:
    """Token de refresco: solo sirve en /auth/refresh."""
    claims = {"sub": str(user.id), "type": "refresh"}
    return create_access_token(claims, timedelta(days=REFRESH_TOKEN_DURATION))


def decode_access_token(token: str) -> dict:
    """Decodifica un token JWT; si no es válido responde 401."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expirado"
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido"
        )
