"""
EvaluatorRepository - configuración de evaluadores por liga
"""

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.common import utcnow
from app.models.evaluator import Evaluator


class EvaluatorRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["evaluators"]

    async def create(self, evaluator: Evaluator) -> Evaluator:
        await self.collection.insert_one(evaluator.model_dump())
        return evaluator

    async def get_by_id(self, evaluator_id: str) -> Optional[Evaluator]:
        doc = await self.collection.find_one({"id": evaluator_id, "deleted_at": None})
        return Evaluator(**doc) if doc else None

    async def get_evaluator_config(self, league_id: str, category: str) -> list[Evaluator]:
        """
        Evaluadores activos de una liga para una categoría

        Ordenados por tipo e id: el orden de aplicación es estable entre pases
        """
        cursor = self.collection.find(
            {"league_id": league_id, "category": category, "deleted_at": None}
        ).sort([("type", 1), ("id", 1)])

        docs = await cursor.to_list(length=None)
        return [Evaluator(**doc) for doc in docs]

    async def soft_delete(self, evaluator_id: str) -> bool:
        result = await self.collection.update_one(
            {"id": evaluator_id, "deleted_at": None},
            {"$set": {"deleted_at": utcnow()}}
        )
        return result.modified_count > 0
