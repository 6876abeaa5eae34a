"""
Integration tests for the member-facing endpoints: bets, leaderboard, points
"""

from datetime import timedelta

import pytest

from app.models.bet import ScorePrediction
from app.models.common import utcnow
from app.models.entity import MatchOutcome


class TestBetsEndpoints:
    """Test suite for /bets endpoints."""

    @pytest.mark.asyncio
    async def test_place_bet(self, client, auth_headers, create_entity):
        entity = await create_entity("match", lock_at=utcnow() + timedelta(hours=1))

        response = await client.post(
            "/bets",
            json={"entity_id": entity.id, "prediction": {"kind": "score", "home": 2, "away": 1}},
            headers=auth_headers
        )

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == f"user-a:{entity.id}"
        assert data["prediction"]["kind"] == "score"

        response = await client.get("/bets/me", params={"league_id": "league-1"}, headers=auth_headers)
        assert [b["entity_id"] for b in response.json()] == [entity.id]

    @pytest.mark.asyncio
    async def test_place_bet_after_lock(self, client, auth_headers, create_entity):
        entity = await create_entity("match")

        response = await client.post(
            "/bets",
            json={"entity_id": entity.id, "prediction": {"kind": "score", "home": 2, "away": 1}},
            headers=auth_headers
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_scorer_modes_are_exclusive(self, client, auth_headers, create_entity):
        entity = await create_entity("match", lock_at=utcnow() + timedelta(hours=1))

        response = await client.post(
            "/bets",
            json={
                "entity_id": entity.id,
                "prediction": {"kind": "score", "home": 0, "away": 0, "scorer_id": "p1", "no_scorer": True},
            },
            headers=auth_headers
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
    async def test_value_bet_must_be_finite(self, client, auth_headers, create_entity, literal):
        entity = await create_entity("special", lock_at=utcnow() + timedelta(hours=1))

        response = await client.post(
            "/bets",
            content=f'{{"entity_id": "{entity.id}", "prediction": {{"kind": "value", "value": {literal}}}}}',
            headers={**auth_headers, "Content-Type": "application/json"}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_place_bet_unauthenticated(self, client):
        response = await client.post(
            "/bets",
            json={"entity_id": "x", "prediction": {"kind": "answer", "answer": True}}
        )

        assert response.status_code in (401, 403)


class TestLeaderboardEndpoints:

    @pytest.mark.asyncio
    async def test_leaderboard_after_evaluation(
        self, client, auth_headers, admin_headers, create_entity, create_bet, create_evaluator
    ):
        await create_evaluator("exact-score", 5)
        await create_evaluator("winner", 2)
        entity = await create_entity("match", MatchOutcome(home_regular=2, away_regular=1))
        await create_bet(entity, "user-a", ScorePrediction(home=2, away=1))
        await create_bet(entity, "user-b", ScorePrediction(home=1, away=0))
        await create_bet(entity, "user-c", ScorePrediction(home=3, away=2))

        await client.post(f"/admin/entities/{entity.id}/evaluation", headers=admin_headers)
        response = await client.get("/leagues/league-1/leaderboard", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert [(e["user_id"], e["rank"], e["total_points"]) for e in data["entries"]] == [
            ("user-a", 1, 7),
            ("user-b", 2, 2),
            ("user-c", 2, 2),
        ]
        assert data["entries"][0]["username"] == "alice"
        assert data["user_position"]["user_id"] == "user-a"

    @pytest.mark.asyncio
    async def test_leaderboard_refreshes_after_reset(
        self, client, auth_headers, admin_headers, create_entity, create_bet, create_evaluator
    ):
        await create_evaluator("exact-score", 5)
        entity = await create_entity("match", MatchOutcome(home_regular=2, away_regular=1))
        await create_bet(entity, "user-a", ScorePrediction(home=2, away=1))
        await client.post(f"/admin/entities/{entity.id}/evaluation", headers=admin_headers)

        before = await client.get("/leagues/league-1/leaderboard", headers=auth_headers)
        await client.delete(f"/admin/entities/{entity.id}/evaluation", headers=admin_headers)
        after = await client.get("/leagues/league-1/leaderboard", headers=auth_headers)

        assert len(before.json()["entries"]) == 1
        assert after.json()["entries"] == []
        assert after.json()["user_position"] is None

    @pytest.mark.asyncio
    async def test_my_points(self, client, auth_headers, admin_headers, create_entity, create_bet, create_evaluator):
        await create_evaluator("exact-score", 5)
        await create_evaluator("winner", 2)
        entity = await create_entity("match", MatchOutcome(home_regular=2, away_regular=1))
        await create_bet(entity, "user-a", ScorePrediction(home=2, away=1))
        await client.post(f"/admin/entities/{entity.id}/evaluation", headers=admin_headers)

        response = await client.get("/leagues/league-1/points/me", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total_points"] == 7
        assert {r["evaluator_type"] for r in data["records"]} == {"exact-score", "winner"}


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["database"] == "connected"
        assert data["leaderboard_categories"] == ["match", "series", "special", "question"]
