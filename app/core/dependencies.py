"""
Dependencies de FastAPI para autenticacion e inyeccion de BD y servicios
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.security import decode_access_token
from app.database import get_database
from app.models.user import User
from app.services.evaluator_registry import EvaluatorRegistry
from app.services.leaderboard_cache import LeaderboardCache

# Esquema de seguridad: espera un header "Authorization: Bearer <token>"
security = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> User:
    """
    Dependency que valida el JWT del usuario.

    Se usa en los endpoints que requieren autenticacion.
    Retorna el usuario a partir de los claims del token.
    """
    payload = decode_access_token(credentials.credentials)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token invalido o expirado",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Payload del token invalido",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return User(
        _id=user_id,
        username=payload.get("username") or user_id,
        is_admin=bool(payload.get("is_admin", False)),
    )


async def get_current_admin(
    user: Annotated[User, Depends(get_current_user)]
) -> User:
    """Igual que get_current_user pero exige el claim is_admin"""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Se requieren permisos de administrador",
        )
    return user


def get_registry(request: Request) -> EvaluatorRegistry:
    """El registry se construye una sola vez en el lifespan de la app"""
    return request.app.state.registry


def get_leaderboard_cache(request: Request) -> LeaderboardCache:
    return request.app.state.leaderboard_cache


# Alias de tipos para que se vea mas limpio en los endpoints
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentAdmin = Annotated[User, Depends(get_current_admin)]
Database = Annotated[AsyncIOMotorDatabase, Depends(get_database)]
Registry = Annotated[EvaluatorRegistry, Depends(get_registry)]
Cache = Annotated[LeaderboardCache, Depends(get_leaderboard_cache)]
