"""
Fixtures for integration tests
"""

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.security import create_access_token
from app.database import Database
from app.main import app


@pytest.fixture
async def client(test_db, registry, leaderboard_cache):
    """
    HTTP client for testing API endpoints.

    The lifespan does not run under ASGITransport, so the test database,
    registry and cache are wired in by hand.
    """
    original_db = Database.db
    Database.db = test_db
    app.state.registry = registry
    app.state.leaderboard_cache = leaderboard_cache

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    Database.db = original_db


@pytest.fixture
async def auth_headers(test_db, sample_users):
    """
    Provides authentication headers for a regular league member.

    The identity service owns users; here we only seed the collection and
    sign a token with the same secret.
    """
    await test_db["users"].insert_many(sample_users)

    token = create_access_token("user-a", "alice")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    token = create_access_token("admin-1", "admin", is_admin=True)
    return {"Authorization": f"Bearer {token}"}
