"""
Controlador de apuestas - Endpoints para gestionar apuestas de usuarios
"""

from fastapi import APIRouter, HTTPException, Query, status

from app.core.dependencies import CurrentUser, Database
from app.models.bet import BetCreate, BetResponse
from app.services.bet_service import (
    BetLockedError,
    BetService,
    EntityNotFoundError,
    InvalidBetError,
)


router = APIRouter(prefix="/bets", tags=["bets"])


@router.post("", response_model=BetResponse, status_code=status.HTTP_201_CREATED)
async def place_bet(
    bet_data: BetCreate,
    user: CurrentUser,
    db: Database
):
    """
    Crear o reemplazar la apuesta del usuario sobre una entidad.

    Se puede modificar hasta el lock_at de la entidad; después queda cerrada.
    """
    bet_service = BetService(db)

    try:
        bet = await bet_service.place_bet(user.id, bet_data)
    except BetLockedError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e)
        )
    except EntityNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except InvalidBetError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return BetResponse(
        id=bet.id,
        entity_id=bet.entity_id,
        league_id=bet.league_id,
        prediction=bet.prediction,
        created_at=bet.created_at
    )


@router.get("/me", response_model=list[BetResponse])
async def get_my_bets(
    user: CurrentUser,
    db: Database,
    league_id: str = Query(..., description="League to list bets for")
):
    """Obtener las apuestas del usuario actual en una liga."""
    bets = await BetService(db).get_user_bets(league_id, user.id)

    return [
        BetResponse(
            id=b.id,
            entity_id=b.entity_id,
            league_id=b.league_id,
            prediction=b.prediction,
            created_at=b.created_at
        )
        for b in bets
    ]
