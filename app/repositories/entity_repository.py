"""
📅 EntityRepository - entidades apostables (partidos, series, especiales, preguntas)

También es la frontera con el Outcome Resolver: aquí se registra el
resultado final de una entidad y de aquí lo lee el motor de evaluación.
"""

import uuid
from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.common import ensure_utc, utcnow
from app.models.entity import (
    EntityCreate,
    EntityStatus,
    Outcome,
    PredictableEntity,
)

RESOLVED_STATUSES = (EntityStatus.PLAYED.value, EntityStatus.EVALUATED.value)


class EntityRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["entities"]

    # ============================================
    # 📌 CREATE
    # ============================================

    async def create(self, data: EntityCreate) -> PredictableEntity:
        """Crea una entidad en estado scheduled"""
        entity = PredictableEntity(
            id=uuid.uuid4().hex,
            created_at=utcnow(),
            **data.model_dump()
        )
        await self.collection.insert_one(entity.model_dump())
        return entity

    # ============================================
    # 📌 READ
    # ============================================

    async def get_by_id(self, entity_id: str) -> Optional[PredictableEntity]:
        doc = await self.collection.find_one({"id": entity_id})
        return PredictableEntity(**doc) if doc else None

    async def get_resolved_outcome(self, entity_id: str) -> Optional[Outcome]:
        """
        Resultado final de la entidad, o None si todavía no se jugó

        Contrato del Outcome Resolver: solo entidades played/evaluated tienen
        un resultado utilizable.
        """
        entity = await self.get_by_id(entity_id)
        if entity is None or entity.status not in RESOLVED_STATUSES:
            return None
        return entity.outcome

    async def list_pending_ids(self, limit: int = 500) -> list[str]:
        """
        🔥 Entidades que esperan evaluación

        - played: resultado cargado, sin evaluar
        - evaluated con apuestas fallidas: pendientes de reintento
        """
        cursor = self.collection.find(
            {
                "$or": [
                    {"status": EntityStatus.PLAYED.value},
                    {"status": EntityStatus.EVALUATED.value, "failed_bet_ids": {"$ne": []}},
                ]
            },
            {"id": 1},
        ).sort("lock_at", 1).limit(limit)

        docs = await cursor.to_list(length=limit)
        return [doc["id"] for doc in docs]

    # ============================================
    # 📌 UPDATE (transiciones de estado)
    # ============================================

    async def lock_due(self, now: Optional[datetime] = None) -> int:
        """scheduled -> locked para todas las entidades cuyo lock_at ya pasó"""
        now = now or utcnow()

        # Mongo devuelve fechas naive; se comparan aquí ya normalizadas
        docs = await self.collection.find(
            {"status": EntityStatus.SCHEDULED.value}, {"id": 1, "lock_at": 1}
        ).to_list(length=None)
        due = [doc["id"] for doc in docs if ensure_utc(doc["lock_at"]) <= now]

        if not due:
            return 0

        result = await self.collection.update_many(
            {"id": {"$in": due}, "status": EntityStatus.SCHEDULED.value},
            {"$set": {"status": EntityStatus.LOCKED.value}}
        )
        return result.modified_count

    async def record_outcome(self, entity_id: str, outcome: Outcome) -> PredictableEntity:
        """
        Registra (o corrige) el resultado final y deja la entidad en played

        Una corrección sobre una entidad ya evaluada la vuelve a played para
        que el siguiente pase la recalcule.
        """
        entity = await self.get_by_id(entity_id)
        if entity is None:
            raise ValueError(f"Entity {entity_id} not found")

        if outcome.kind != entity.kind:
            raise ValueError(
                f"Entity {entity_id} is a {entity.kind}, cannot take a {outcome.kind} outcome"
            )

        if entity.lock_at > utcnow():
            raise ValueError(f"Entity {entity_id} is still open for bets")

        doc = await self.collection.find_one_and_update(
            {"id": entity_id},
            {
                "$set": {
                    "outcome": outcome.model_dump(),
                    "status": EntityStatus.PLAYED.value,
                }
            },
            return_document=True
        )
        return PredictableEntity(**doc)

    async def mark_evaluated(
        self,
        entity_id: str,
        failed_bet_ids: list[str],
        evaluated_at: datetime
    ) -> None:
        await self.collection.update_one(
            {"id": entity_id},
            {
                "$set": {
                    "status": EntityStatus.EVALUATED.value,
                    "failed_bet_ids": failed_bet_ids,
                    "evaluated_at": evaluated_at,
                }
            }
        )

    async def mark_played(self, entity_id: str) -> None:
        """Vuelve una entidad evaluada a played (reset de evaluación)"""
        await self.collection.update_one(
            {"id": entity_id, "status": {"$in": list(RESOLVED_STATUSES)}},
            {
                "$set": {
                    "status": EntityStatus.PLAYED.value,
                    "failed_bet_ids": [],
                    "evaluated_at": None,
                }
            }
        )
