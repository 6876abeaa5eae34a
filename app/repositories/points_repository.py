"""
🧮 PointsRepository - ledger de puntos

Un registro por (apuesta, evaluador). IDs compuestos: bet_id:evaluator_id

Es la única fuente de verdad para los leaderboards: los totales se agregan
siempre desde aquí, nunca se guardan sumas precalculadas.
"""

from collections import defaultdict
from typing import Iterable

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.points import PointsRecord


class PointsRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["points"]

    # ============================================
    # 📌 WRITE
    # ============================================

    async def upsert(self, record: PointsRecord) -> bool:
        """
        Guarda el resultado de un (bet, evaluator)

        Si ya existe con los mismos puntos no se toca (conserva evaluated_at).
        Retorna True si el ledger cambió.
        """
        existing = await self.collection.find_one({"id": record.id}, {"points": 1})
        if existing is not None and existing["points"] == record.points:
            return False

        await self.collection.replace_one(
            {"id": record.id},
            record.model_dump(),
            upsert=True
        )
        return True

    async def reset(self, entity_id: str) -> int:
        """Borra todos los registros de una entidad"""
        result = await self.collection.delete_many({"entity_id": entity_id})
        return result.deleted_count

    async def prune(self, entity_id: str, keep_ids: Iterable[str]) -> int:
        """
        Borra los registros de la entidad que este pase ya no produjo

        (apuestas borradas, evaluadores dados de baja)
        """
        result = await self.collection.delete_many(
            {"entity_id": entity_id, "id": {"$nin": list(keep_ids)}}
        )
        return result.deleted_count

    # ============================================
    # 📌 READ
    # ============================================

    async def list_for_entity(self, entity_id: str) -> list[PointsRecord]:
        cursor = self.collection.find({"entity_id": entity_id}).sort("id", 1)
        docs = await cursor.to_list(length=None)
        return [PointsRecord(**doc) for doc in docs]

    async def list_for_user(self, league_id: str, user_id: str) -> list[PointsRecord]:
        cursor = self.collection.find(
            {"league_id": league_id, "user_id": user_id}
        ).sort("evaluated_at", -1)
        docs = await cursor.to_list(length=None)
        return [PointsRecord(**doc) for doc in docs]

    async def totals_by_user_and_category(self, league_id: str) -> dict[str, dict[str, int]]:
        """
        🔥 Suma de puntos por usuario y categoría

        Retorna: {user_id: {category: points}}
        """
        pipeline = [
            {"$match": {"league_id": league_id}},
            {
                "$group": {
                    "_id": {"user_id": "$user_id", "category": "$category"},
                    "points": {"$sum": "$points"},
                }
            },
        ]

        rows = await self.collection.aggregate(pipeline).to_list(length=None)

        totals: dict[str, dict[str, int]] = defaultdict(dict)
        for row in rows:
            totals[row["_id"]["user_id"]][row["_id"]["category"]] = row["points"]

        return dict(totals)
