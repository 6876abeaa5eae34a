"""
Controlador de salud - Endpoint de comprobación del servicio
"""

from fastapi import APIRouter
from pydantic import BaseModel

from app.core.dependencies import Registry
from app.database import Database


router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Respuesta del chequeo de estado."""
    status: str
    database: str
    leaderboard_categories: list[str]


@router.get("/health", response_model=HealthResponse)
async def health_check(registry: Registry):
    """
    Endpoint de verificación de estado.

    Comprueba la conexión a la base de datos y que el registry de
    evaluadores esté cargado.
    """
    db_status = "connected" if Database.db is not None else "disconnected"

    return HealthResponse(
        status="ok",
        database=db_status,
        leaderboard_categories=list(registry.leaderboard_categories)
    )
