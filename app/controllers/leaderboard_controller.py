"""
Controlador de leaderboards - Endpoints de clasificación por liga

Las tablas se calculan desde el ledger de puntos y se sirven desde caché
hasta que una evaluación cambia los puntos de la liga.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from app.core.dependencies import Cache, CurrentUser, Database, Registry
from app.models.leaderboard import LeaderboardEntry
from app.repositories.points_repository import PointsRepository
from app.services.leaderboard_service import LeaderboardService


router = APIRouter(prefix="/leagues", tags=["leaderboard"])


class LeaderboardResponse(BaseModel):
    """Leaderboard con las entradas y la posición del usuario (opcional)."""
    league_id: str
    entries: list[LeaderboardEntry]
    user_position: Optional[LeaderboardEntry] = None


class PointsRecordResponse(BaseModel):
    bet_id: str
    entity_id: str
    evaluator_type: str
    category: str
    points: int
    evaluated_at: datetime


class MyPointsResponse(BaseModel):
    league_id: str
    total_points: int
    records: list[PointsRecordResponse]


@router.get("/{league_id}/leaderboard", response_model=LeaderboardResponse)
async def get_league_leaderboard(
    league_id: str,
    user: CurrentUser,
    db: Database,
    registry: Registry,
    cache: Cache,
    limit: int = Query(100, ge=1, le=500)
):
    """
    Obtener el leaderboard de una liga.

    Empatados en puntos comparten posición.
    """
    service = LeaderboardService(db, registry, cache)
    entries = await service.get_league_leaderboard(league_id)

    user_position = next((e for e in entries if e.user_id == user.id), None)

    return LeaderboardResponse(
        league_id=league_id,
        entries=entries[:limit],
        user_position=user_position
    )


@router.get("/{league_id}/points/me", response_model=MyPointsResponse)
async def get_my_points(
    league_id: str,
    user: CurrentUser,
    db: Database
):
    """Obtener el detalle de puntos del usuario actual en una liga."""
    records = await PointsRepository(db).list_for_user(league_id, user.id)

    return MyPointsResponse(
        league_id=league_id,
        total_points=sum(r.points for r in records),
        records=[
            PointsRecordResponse(
                bet_id=r.bet_id,
                entity_id=r.entity_id,
                evaluator_type=r.evaluator_type,
                category=r.category,
                points=r.points,
                evaluated_at=r.evaluated_at
            )
            for r in records
        ]
    )
