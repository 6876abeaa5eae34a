"""
🎯 BetRepository - CRUD para apuestas de usuarios

IDs compuestos: user_id:entity_id (una apuesta por usuario y entidad)
"""

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.bet import Bet


class BetRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["bets"]

    @staticmethod
    def make_id(user_id: str, entity_id: str) -> str:
        return f"{user_id}:{entity_id}"

    # ============================================
    # 📌 CREATE / REPLACE
    # ============================================

    async def save(self, bet: Bet) -> Bet:
        """
        Crea la apuesta o reemplaza la anterior del mismo usuario

        Solo se llama antes del lock_at de la entidad (lo valida BetService)
        """
        await self.collection.replace_one(
            {"id": bet.id},
            bet.model_dump(),
            upsert=True
        )
        return bet

    # ============================================
    # 📌 READ
    # ============================================

    async def get_by_id(self, bet_id: str) -> Optional[Bet]:
        doc = await self.collection.find_one({"id": bet_id})
        return Bet(**doc) if doc else None

    async def list_active_bets(self, entity_id: str) -> list[Bet]:
        """
        🔥 Todas las apuestas activas (no borradas) de una entidad

        Ordenadas por id para que cada pase de evaluación las recorra igual
        """
        cursor = self.collection.find(
            {"entity_id": entity_id, "deleted_at": None}
        ).sort("id", 1)

        docs = await cursor.to_list(length=None)
        return [Bet(**doc) for doc in docs]

    async def list_for_user(self, league_id: str, user_id: str) -> list[Bet]:
        cursor = self.collection.find(
            {"league_id": league_id, "user_id": user_id, "deleted_at": None}
        ).sort("created_at", -1)

        docs = await cursor.to_list(length=None)
        return [Bet(**doc) for doc in docs]
