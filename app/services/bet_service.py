"""
BetService - Business logic for bets.

Handles validation and locking rules. Scoring lives in EvaluationService.
"""

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.bet import Bet, BetCreate
from app.models.common import utcnow
from app.models.entity import EntityKind, EntityStatus
from app.repositories.bet_repository import BetRepository
from app.repositories.entity_repository import EntityRepository

# Qué tipo de pronóstico acepta cada tipo de entidad
PREDICTION_KINDS = {
    EntityKind.MATCH.value: {"score"},
    EntityKind.SERIES.value: {"series"},
    EntityKind.SPECIAL.value: {"team", "player", "value"},
    EntityKind.QUESTION.value: {"answer"},
}


class BetServiceError(Exception):
    """Base exception for bet service errors."""
    pass


class BetLockedError(BetServiceError):
    """Raised when the entity no longer accepts bets."""
    pass


class EntityNotFoundError(BetServiceError):
    """Raised when the entity is not found."""
    pass


class InvalidBetError(BetServiceError):
    """Raised when the prediction does not fit the entity."""
    pass


class BetService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.bet_repo = BetRepository(db)
        self.entity_repo = EntityRepository(db)

    async def place_bet(self, user_id: str, bet_data: BetCreate) -> Bet:
        """
        Create or replace the user's bet on an entity.

        Validates:
        - Entity exists
        - Entity is still open (scheduled and before lock_at)
        - Prediction kind matches the entity kind
        """
        entity = await self.entity_repo.get_by_id(bet_data.entity_id)
        if not entity:
            raise EntityNotFoundError(f"Entity {bet_data.entity_id} not found")

        now = utcnow()
        if entity.status != EntityStatus.SCHEDULED.value or now >= entity.lock_at:
            raise BetLockedError(f"Bets for {entity.name} are closed")

        if bet_data.prediction.kind not in PREDICTION_KINDS[entity.kind]:
            raise InvalidBetError(
                f"A {entity.kind} does not accept a {bet_data.prediction.kind} prediction"
            )

        bet_id = BetRepository.make_id(user_id, entity.id)
        existing = await self.bet_repo.get_by_id(bet_id)

        bet = Bet(
            id=bet_id,
            entity_id=entity.id,
            league_id=entity.league_id,
            user_id=user_id,
            prediction=bet_data.prediction,
            created_at=existing.created_at if existing else now,
        )
        return await self.bet_repo.save(bet)

    async def get_user_bets(self, league_id: str, user_id: str) -> list[Bet]:
        return await self.bet_repo.list_for_user(league_id, user_id)
