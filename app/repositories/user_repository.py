"""
UserRepository - MongoDB access for users collection.

Los usuarios los escribe el servicio de identidad; aquí solo se leen
para mostrar nombres en los leaderboards.
"""

from typing import Iterable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.user import User


class UserRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["users"]

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        doc = await self.collection.find_one({"_id": user_id})
        return User(**doc) if doc else None

    async def get_usernames(self, user_ids: Iterable[str]) -> dict[str, str]:
        """Map user_id -> username for the given users (missing users are skipped)."""
        cursor = self.collection.find(
            {"_id": {"$in": list(user_ids)}},
            {"username": 1}
        )
        docs = await cursor.to_list(length=None)
        return {doc["_id"]: doc["username"] for doc in docs if doc.get("username")}
