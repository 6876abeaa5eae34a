"""
EvaluatorService - configuración de evaluadores por liga

Toda la validación (puntos en rango, params conocidos) ocurre aquí, al
configurar; el motor de evaluación nunca ve una configuración inválida.
"""

import logging
import uuid

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.common import utcnow
from app.models.evaluator import Evaluator, EvaluatorCreate
from app.repositories.evaluator_repository import EvaluatorRepository
from app.services.evaluator_registry import EvaluatorRegistry

logger = logging.getLogger(__name__)


class EvaluatorService:
    def __init__(self, db: AsyncIOMotorDatabase, registry: EvaluatorRegistry):
        self.registry = registry
        self.evaluator_repo = EvaluatorRepository(db)

    async def configure(self, league_id: str, data: EvaluatorCreate) -> Evaluator:
        """
        Alta de un evaluador para la liga

        Raises:
            ConfigurationError: puntos fuera de rango o params inválidos
        """
        self.registry.validate(data.type, data.points, data.params)

        evaluator = Evaluator(
            id=uuid.uuid4().hex,
            league_id=league_id,
            type=data.type,
            category=self.registry.category_for(data.type),
            points=data.points,
            params=data.params,
            created_at=utcnow(),
        )
        await self.evaluator_repo.create(evaluator)

        logger.info(
            f"League {league_id}: evaluator {evaluator.type} configured "
            f"({evaluator.points} pts, id {evaluator.id})"
        )
        return evaluator

    async def remove(self, evaluator_id: str) -> bool:
        """Baja lógica; sus puntos se borran al re-evaluar cada entidad"""
        return await self.evaluator_repo.soft_delete(evaluator_id)
