"""
Seguridad: validación de los JWT emitidos por el servicio de identidad

La sesión y el login viven fuera de este servicio; aquí solo se comprueba la
firma del token y se leen sus claims (sub, username, is_admin).
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from app.core.config import get_settings


def create_access_token(
    user_id: str,
    username: str,
    is_admin: bool = False,
    expires_minutes: int = 60
) -> str:
    """
    Crea un JWT con los claims que espera este servicio

    Lo usa el servicio de identidad (y los tests)
    """
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)

    payload = {
        "sub": user_id,
        "username": username,
        "is_admin": is_admin,
        "exp": expire,
    }

    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[dict]:
    """
    Decodifica y valida un JWT

    Retorna el payload si es válido, None si no
    """
    settings = get_settings()

    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
