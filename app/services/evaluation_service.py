"""
EvaluationService - Motor de evaluación de apuestas

Convierte cada apuesta de una entidad resuelta en puntos:

1. Toma el lock de la entidad (un solo pase a la vez por entidad)
2. Lee el resultado una vez y todas las apuestas activas
3. Resuelve los evaluadores de la liga que aplican a la entidad
4. Puntúa cada (apuesta, evaluador) con el registry
5. Guarda en el ledger y borra lo que este pase ya no produjo
6. Marca la entidad como evaluated

Re-evaluar con el mismo resultado no cambia nada en el ledger.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import Settings, get_settings
from app.models.common import utcnow
from app.models.entity import PredictableEntity
from app.models.evaluator import Evaluator
from app.models.points import PointsRecord
from app.repositories.bet_repository import BetRepository
from app.repositories.entity_repository import RESOLVED_STATUSES, EntityRepository
from app.repositories.evaluator_repository import EvaluatorRepository
from app.repositories.lock_repository import LockConflictError, LockRepository
from app.repositories.points_repository import PointsRepository
from app.services.evaluator_registry import EvaluatorRegistry
from app.services.leaderboard_cache import LeaderboardCache
from app.services.strategies import MalformedPredictionError, ScoringContext

logger = logging.getLogger(__name__)

DOUBLED_MULTIPLIER = 2


class EvaluationServiceError(Exception):
    """Base exception for evaluation errors."""
    pass


class EntityNotFoundError(EvaluationServiceError):
    """Raised when the entity does not exist."""
    pass


class NotReadyError(EvaluationServiceError):
    """Raised when the entity has no resolved outcome yet."""
    pass


@dataclass
class EvaluationResult:
    entity_id: str
    league_id: str
    bets_processed: int = 0
    bets_skipped: int = 0
    records_changed: int = 0
    records_pruned: int = 0
    failed_bet_ids: list[str] = field(default_factory=list)


class PartialEvaluationError(EvaluationServiceError):
    """
    Some bets of the entity could not be scored.

    The rest were persisted normally; the entity stays pending until a
    retry pass scores the failed bets.
    """

    def __init__(self, result: EvaluationResult, errors: dict[str, str]):
        super().__init__(
            f"Entity {result.entity_id}: {len(result.failed_bet_ids)} bet(s) failed evaluation"
        )
        self.result = result
        self.failed_bet_ids = result.failed_bet_ids
        self.errors = errors


@dataclass
class BatchSummary:
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: dict[str, str] = field(default_factory=dict)  # entity_id -> error


class EvaluationService:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        registry: EvaluatorRegistry,
        cache: Optional[LeaderboardCache] = None,
        settings: Optional[Settings] = None
    ):
        settings = settings or get_settings()

        self.registry = registry
        self.cache = cache
        self.entity_repo = EntityRepository(db)
        self.bet_repo = BetRepository(db)
        self.evaluator_repo = EvaluatorRepository(db)
        self.points_repo = PointsRepository(db)
        self.lock_repo = LockRepository(db, ttl_seconds=settings.evaluation_lock_ttl_seconds)

    # ============================================
    # 🎯 UNA ENTIDAD
    # ============================================

    async def evaluate_one(self, entity_id: str) -> EvaluationResult:
        """
        Evalúa (o re-evalúa) una entidad resuelta

        Raises:
            EntityNotFoundError, NotReadyError, LockConflictError,
            PartialEvaluationError
        """
        entity = await self._get_resolved_entity(entity_id)

        try:
            async with self.lock_repo.hold(entity_id):
                return await self._evaluate_locked(entity_id)
        except LockConflictError:
            logger.info(f"Evaluation of {entity_id} skipped: lock held elsewhere (league {entity.league_id})")
            raise

    async def _evaluate_locked(self, entity_id: str) -> EvaluationResult:
        # Se relee dentro del lock: el resultado pudo corregirse mientras tanto
        entity = await self._get_resolved_entity(entity_id)
        outcome = await self.entity_repo.get_resolved_outcome(entity_id)
        if outcome is None:
            raise NotReadyError(f"Entity {entity_id} has no resolved outcome")

        logger.info(f"Evaluating {entity.kind} {entity_id} (league {entity.league_id})")

        result = EvaluationResult(entity_id=entity_id, league_id=entity.league_id)
        errors: dict[str, str] = {}
        evaluated_at = utcnow()

        bets = await self.bet_repo.list_active_bets(entity_id)
        evaluators = await self._resolve_evaluators(entity)

        context = ScoringContext(
            outcome=outcome,
            peers=tuple(bet.prediction for bet in bets),
        )
        multiplier = DOUBLED_MULTIPLIER if entity.doubled else 1

        keep_ids: list[str] = []

        for bet in bets:
            if not evaluators:
                result.bets_skipped += 1
                continue

            try:
                # Una especial sin evaluador fijo: cada apuesta la puntúan
                # solo los evaluadores de su forma (team, value, player)
                applicable = [e for e in evaluators if self.registry.accepts(e.type, bet.prediction)]
                if not applicable:
                    raise MalformedPredictionError(
                        f"No evaluator of {entity_id} accepts a "
                        f"{type(bet.prediction).__name__}"
                    )
                scores = [
                    (evaluator, self.registry.score(evaluator, bet.prediction, context))
                    for evaluator in applicable
                ]
            except MalformedPredictionError as e:
                logger.warning(f"Bet {bet.id} failed evaluation: {e}")
                result.failed_bet_ids.append(bet.id)
                errors[bet.id] = str(e)
                continue

            for evaluator, points in scores:
                record = PointsRecord(
                    id=PointsRecord.make_id(bet.id, evaluator.id),
                    bet_id=bet.id,
                    evaluator_id=evaluator.id,
                    evaluator_type=evaluator.type,
                    entity_id=entity_id,
                    league_id=entity.league_id,
                    user_id=bet.user_id,
                    category=entity.kind,
                    points=points * multiplier,
                    evaluated_at=evaluated_at,
                )
                keep_ids.append(record.id)
                if await self.points_repo.upsert(record):
                    result.records_changed += 1

            result.bets_processed += 1

        if result.bets_skipped:
            logger.info(
                f"No evaluator applies to {entity_id} in league {entity.league_id}: "
                f"{result.bets_skipped} bet(s) skipped"
            )

        result.records_pruned = await self.points_repo.prune(entity_id, keep_ids)

        await self.entity_repo.mark_evaluated(entity_id, result.failed_bet_ids, evaluated_at)

        if (result.records_changed or result.records_pruned) and self.cache is not None:
            self.cache.invalidate(entity.league_id)

        logger.info(
            f"Evaluated {entity_id}: {result.bets_processed} bet(s), "
            f"{result.records_changed} record(s) changed, {result.records_pruned} pruned"
        )

        if result.failed_bet_ids:
            raise PartialEvaluationError(result, errors)

        return result

    async def _get_resolved_entity(self, entity_id: str) -> PredictableEntity:
        entity = await self.entity_repo.get_by_id(entity_id)
        if entity is None:
            raise EntityNotFoundError(f"Entity {entity_id} not found")

        if entity.status not in RESOLVED_STATUSES or entity.outcome is None:
            raise NotReadyError(f"Entity {entity_id} is {entity.status}, not ready for evaluation")

        return entity

    async def _resolve_evaluators(self, entity: PredictableEntity) -> list[Evaluator]:
        """
        Evaluadores que puntúan esta entidad

        - Especial con evaluator_id: solo ese evaluador
        - Resto: evaluadores de la liga de las categorías que aplican al tipo
        """
        if entity.evaluator_id:
            evaluator = await self.evaluator_repo.get_by_id(entity.evaluator_id)
            if (
                evaluator is None
                or evaluator.league_id != entity.league_id
                or not self.registry.applies_to(evaluator.type, entity.kind)
            ):
                logger.warning(
                    f"Entity {entity.id} points to evaluator {entity.evaluator_id}, "
                    f"which is missing or does not apply"
                )
                return []
            return [evaluator]

        evaluators: list[Evaluator] = []
        for category in self.registry.categories_for_entity(entity.kind):
            config = await self.evaluator_repo.get_evaluator_config(entity.league_id, category.value)
            evaluators.extend(e for e in config if self.registry.applies_to(e.type, entity.kind))

        return evaluators

    # ============================================
    # 🔄 BATCH
    # ============================================

    async def evaluate_pending(self, limit: int = 500) -> BatchSummary:
        """
        Evalúa todas las entidades pendientes, una a la vez

        Antes cierra (scheduled -> locked) las entidades cuyo lock_at ya pasó.
        Un error en una entidad no detiene el batch: queda en el resumen.
        """
        locked = await self.entity_repo.lock_due()
        if locked:
            logger.info(f"Locked {locked} entity(ies) past their lock time")

        summary = BatchSummary()

        for entity_id in await self.entity_repo.list_pending_ids(limit):
            summary.processed += 1
            try:
                await self.evaluate_one(entity_id)
                summary.succeeded += 1
            except (EvaluationServiceError, LockConflictError) as e:
                summary.failed += 1
                summary.errors[entity_id] = str(e)
            except Exception as e:
                logger.exception(f"Unexpected error evaluating {entity_id}")
                summary.failed += 1
                summary.errors[entity_id] = str(e)

        logger.info(
            f"Batch evaluation: {summary.processed} processed, "
            f"{summary.succeeded} succeeded, {summary.failed} failed"
        )
        return summary

    # ============================================
    # ♻️ RESET
    # ============================================

    async def reset_evaluation(self, entity_id: str) -> int:
        """
        Borra todos los puntos de la entidad y la vuelve a played

        Retorna la cantidad de registros borrados.
        """
        entity = await self.entity_repo.get_by_id(entity_id)
        if entity is None:
            raise EntityNotFoundError(f"Entity {entity_id} not found")

        if entity.status not in RESOLVED_STATUSES:
            raise NotReadyError(f"Entity {entity_id} is {entity.status}, nothing to reset")

        async with self.lock_repo.hold(entity_id):
            deleted = await self.points_repo.reset(entity_id)
            await self.entity_repo.mark_played(entity_id)

        if deleted and self.cache is not None:
            self.cache.invalidate(entity.league_id)

        logger.info(f"Reset evaluation of {entity_id}: {deleted} record(s) deleted")
        return deleted
