"""
🔒 LockRepository - lock de evaluación por entidad

Garantiza que solo un pase de evaluación (o reset) trabaje sobre una entidad
a la vez, incluso entre varios procesos. El lock vive en Mongo con _id =
entity_id; si su dueño muere, caduca tras evaluation_lock_ttl_seconds.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from app.models.common import ensure_utc, utcnow

logger = logging.getLogger(__name__)


class LockConflictError(Exception):
    """Raised when another evaluation already holds the entity lock."""

    def __init__(self, entity_id: str):
        super().__init__(f"Entity {entity_id} is being evaluated by another process")
        self.entity_id = entity_id


class LockRepository:
    def __init__(self, db: AsyncIOMotorDatabase, ttl_seconds: int = 300):
        self.db = db
        self.collection = db["evaluation_locks"]
        self.ttl_seconds = ttl_seconds

    async def acquire(self, entity_id: str) -> str:
        """Toma el lock y retorna el token del dueño; LockConflictError si está tomado"""
        owner = uuid.uuid4().hex
        now = utcnow()
        lock_doc = {
            "_id": entity_id,
            "owner": owner,
            "expires_at": now + timedelta(seconds=self.ttl_seconds),
        }

        try:
            await self.collection.insert_one(lock_doc)
            return owner
        except DuplicateKeyError:
            pass

        current = await self.collection.find_one({"_id": entity_id})
        if current is None or ensure_utc(current["expires_at"]) > now:
            raise LockConflictError(entity_id)

        # Lock caducado: se lo queda quien lo reemplace primero
        taken = await self.collection.find_one_and_update(
            {"_id": entity_id, "owner": current["owner"]},
            {"$set": {"owner": owner, "expires_at": lock_doc["expires_at"]}}
        )
        if taken is None:
            raise LockConflictError(entity_id)

        logger.warning(f"Broke expired evaluation lock on entity {entity_id}")
        return owner

    async def release(self, entity_id: str, owner: str) -> None:
        await self.collection.delete_one({"_id": entity_id, "owner": owner})

    @asynccontextmanager
    async def hold(self, entity_id: str) -> AsyncIterator[str]:
        """
        Uso:
            async with lock_repo.hold(entity_id):
                ...
        """
        owner = await self.acquire(entity_id)
        try:
            yield owner
        finally:
            await self.release(entity_id, owner)
