"""
Pytest fixtures and configuration for all tests.

The database is an in-memory mongomock_motor client, so the suite needs no
running MongoDB.
"""

from datetime import timedelta
from typing import AsyncGenerator

import pytest
from mongomock_motor import AsyncMongoMockClient
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import Settings
from app.database import create_indexes
from app.models.bet import Bet
from app.models.common import utcnow
from app.models.entity import EntityCreate
from app.models.evaluator import EvaluatorCreate
from app.repositories.bet_repository import BetRepository
from app.repositories.entity_repository import EntityRepository
from app.services.evaluator_registry import build_registry
from app.services.evaluator_service import EvaluatorService
from app.services.leaderboard_cache import LeaderboardCache

TEST_DB_NAME = "prediction_pool_test"
LEAGUE_ID = "league-1"


@pytest.fixture(scope="function")
async def test_db() -> AsyncGenerator[AsyncIOMotorDatabase, None]:
    """
    Provide a clean test database for each test.

    Automatically cleans up after each test.
    """
    client = AsyncMongoMockClient()
    db = client[TEST_DB_NAME]
    await create_indexes(db)

    yield db

    # Cleanup: drop all collections after test
    for collection_name in await db.list_collection_names():
        await db[collection_name].drop()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def registry(settings):
    return build_registry(settings)


@pytest.fixture
def leaderboard_cache():
    return LeaderboardCache(ttl_seconds=60, max_leagues=10)


@pytest.fixture
def create_entity(test_db):
    """
    Factory: creates an entity whose lock time already passed and, when an
    outcome is given, records it (entity ends up played).
    """
    async def _create(kind="match", outcome=None, league_id=LEAGUE_ID, **fields):
        repo = EntityRepository(test_db)
        entity = await repo.create(EntityCreate(
            league_id=league_id,
            kind=kind,
            name=fields.pop("name", f"Test {kind}"),
            lock_at=fields.pop("lock_at", utcnow() - timedelta(hours=2)),
            **fields
        ))
        if outcome is not None:
            entity = await repo.record_outcome(entity.id, outcome)
        return entity

    return _create


@pytest.fixture
def create_bet(test_db):
    """Factory: stores a bet directly (the lock rule is BetService's concern)."""
    async def _create(entity, user_id, prediction):
        bet = Bet(
            id=BetRepository.make_id(user_id, entity.id),
            entity_id=entity.id,
            league_id=entity.league_id,
            user_id=user_id,
            prediction=prediction,
            created_at=utcnow(),
        )
        return await BetRepository(test_db).save(bet)

    return _create


@pytest.fixture
def create_evaluator(test_db, registry):
    """Factory: configures an evaluator for a league through EvaluatorService."""
    async def _create(evaluator_type, points, league_id=LEAGUE_ID, **params):
        service = EvaluatorService(test_db, registry)
        return await service.configure(
            league_id,
            EvaluatorCreate(type=evaluator_type, points=points, params=params)
        )

    return _create


@pytest.fixture
def sample_users():
    """League members as published by the identity service."""
    return [
        {"_id": "user-a", "username": "alice"},
        {"_id": "user-b", "username": "bruno"},
        {"_id": "user-c", "username": "carla"},
    ]
