"""
🔌 Database Connection Setup - MongoDB

Configuración centralizada para conectar a MongoDB
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.core.config import get_settings

logger = logging.getLogger(__name__)


class Database:
    """Singleton para la conexión a MongoDB"""

    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    async def connect(cls):
        """Conecta a MongoDB"""
        if cls.client is None:
            settings = get_settings()

            cls.client = AsyncIOMotorClient(
                settings.mongodb_uri,
                maxPoolSize=10,
                minPoolSize=2,
            )
            cls.db = cls.client[settings.mongodb_db_name]

            # Test de conexión
            await cls.client.admin.command("ping")
            logger.info(f"✅ Connected to MongoDB: {settings.mongodb_db_name}")

    @classmethod
    async def disconnect(cls):
        """Cierra la conexión"""
        if cls.client is not None:
            cls.client.close()
            cls.client = None
            cls.db = None
            logger.info("❌ Disconnected from MongoDB")

    @classmethod
    def get_db(cls) -> AsyncIOMotorDatabase:
        """Retorna la instancia de la base de datos"""
        if cls.db is None:
            raise RuntimeError("Database not connected. Call Database.connect() first.")
        return cls.db


# ============================================
# 🎯 DEPENDENCY para FastAPI
# ============================================

async def get_database() -> AsyncIOMotorDatabase:
    """
    FastAPI dependency para inyectar la DB

    Uso:
        @router.get("/leagues/{league_id}/leaderboard")
        async def get_leaderboard(
            league_id: str,
            db: AsyncIOMotorDatabase = Depends(get_database)
        ):
            ...
    """
    return Database.get_db()


# ============================================
# 🏗️ CREAR ÍNDICES (run once al deployment)
# ============================================

async def create_indexes(db: Optional[AsyncIOMotorDatabase] = None):
    """
    Crea los índices necesarios para optimizar queries

    Llamar una vez al hacer deploy o en el arranque de la app
    """
    db = db if db is not None else Database.get_db()

    # Índices para entidades (partidos, series, especiales, preguntas)
    await db.entities.create_index("id", unique=True)
    await db.entities.create_index([("league_id", 1), ("status", 1)])
    await db.entities.create_index([("status", 1), ("lock_at", 1)])

    # Índices para apuestas
    await db.bets.create_index("id", unique=True)
    await db.bets.create_index([("entity_id", 1), ("deleted_at", 1)])
    await db.bets.create_index([("league_id", 1), ("user_id", 1)])

    # Índices para evaluadores por liga
    await db.evaluators.create_index("id", unique=True)
    await db.evaluators.create_index([("league_id", 1), ("category", 1)])

    # Índices para el ledger de puntos
    await db.points.create_index("id", unique=True)
    await db.points.create_index("entity_id")
    await db.points.create_index([("league_id", 1), ("user_id", 1), ("category", 1)])

    logger.info("✅ Indexes created successfully")
