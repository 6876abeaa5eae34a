"""
Unit tests for EntityRepository (entities + outcome resolver boundary)
"""

from datetime import timedelta

import pytest

from app.models.common import utcnow
from app.models.entity import MatchOutcome, QuestionOutcome
from app.repositories.entity_repository import EntityRepository


class TestEntityRepository:

    @pytest.mark.asyncio
    async def test_create_starts_scheduled(self, test_db, create_entity):
        entity = await create_entity("match", name="Derby")

        stored = await EntityRepository(test_db).get_by_id(entity.id)
        assert stored.name == "Derby"
        assert stored.status == "scheduled"
        assert stored.outcome is None
        assert stored.lock_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_record_outcome(self, test_db, create_entity):
        entity = await create_entity("match")
        repo = EntityRepository(test_db)

        updated = await repo.record_outcome(entity.id, MatchOutcome(home_regular=3, away_regular=0))

        assert updated.status == "played"
        outcome = await repo.get_resolved_outcome(entity.id)
        assert isinstance(outcome, MatchOutcome)
        assert outcome.final_home == 3

    @pytest.mark.asyncio
    async def test_outcome_kind_must_match(self, test_db, create_entity):
        entity = await create_entity("match")

        with pytest.raises(ValueError):
            await EntityRepository(test_db).record_outcome(entity.id, QuestionOutcome(answer=True))

    @pytest.mark.asyncio
    async def test_outcome_rejected_before_lock(self, test_db, create_entity):
        entity = await create_entity("question", lock_at=utcnow() + timedelta(hours=1))

        with pytest.raises(ValueError):
            await EntityRepository(test_db).record_outcome(entity.id, QuestionOutcome(answer=True))

    @pytest.mark.asyncio
    async def test_no_resolved_outcome_before_played(self, test_db, create_entity):
        entity = await create_entity("match")

        assert await EntityRepository(test_db).get_resolved_outcome(entity.id) is None
        assert await EntityRepository(test_db).get_resolved_outcome("missing") is None

    @pytest.mark.asyncio
    async def test_lock_due(self, test_db, create_entity):
        past = await create_entity("match")
        future = await create_entity("match", lock_at=utcnow() + timedelta(hours=1))
        repo = EntityRepository(test_db)

        assert await repo.lock_due() == 1
        assert (await repo.get_by_id(past.id)).status == "locked"
        assert (await repo.get_by_id(future.id)).status == "scheduled"
        assert await repo.lock_due() == 0

    @pytest.mark.asyncio
    async def test_pending_ids(self, test_db, create_entity):
        repo = EntityRepository(test_db)
        played = await create_entity("match", MatchOutcome(home_regular=1, away_regular=0))
        done = await create_entity("match", MatchOutcome(home_regular=1, away_regular=0))
        retry = await create_entity("match", MatchOutcome(home_regular=1, away_regular=0))
        await create_entity("match")

        await repo.mark_evaluated(done.id, [], utcnow())
        await repo.mark_evaluated(retry.id, ["user-a:" + retry.id], utcnow())

        pending = await repo.list_pending_ids()

        assert set(pending) == {played.id, retry.id}
