"""
LeaderboardService - Calculates and serves league leaderboards.

Read-only over the points ledger: totals are grouped by user and category
on demand (MongoDB aggregation) and ranked here. Results are kept in the
in-memory LeaderboardCache until the evaluation engine invalidates them.
"""

import logging
from typing import Iterable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import Settings, get_settings
from app.models.entity import EntityKind
from app.models.leaderboard import LeaderboardEntry
from app.repositories.points_repository import PointsRepository
from app.repositories.user_repository import UserRepository
from app.services.evaluator_registry import EvaluatorRegistry
from app.services.leaderboard_cache import LeaderboardCache

logger = logging.getLogger(__name__)

# Bucket del ledger -> campo del LeaderboardEntry
CATEGORY_FIELDS = {
    EntityKind.MATCH.value: "match_points",
    EntityKind.SERIES.value: "series_points",
    EntityKind.SPECIAL.value: "special_points",
    EntityKind.QUESTION.value: "question_points",
}


def rank_entries(
    totals: dict[str, dict[str, int]],
    usernames: Optional[dict[str, str]] = None,
    ranking: str = "dense",
    tie_break: str = "user_id",
    categories: Iterable[str] = tuple(CATEGORY_FIELDS),
) -> list[LeaderboardEntry]:
    """
    Build ranked leaderboard entries from {user_id: {category: points}}.

    Every category is zero-filled and total_points is always the sum of the
    category points. Users with equal totals share a rank:

    - dense:       10, 10, 8 -> 1, 1, 2
    - competition: 10, 10, 8 -> 1, 1, 3

    tie_break only decides the display order inside a tie.
    """
    usernames = usernames or {}
    categories = tuple(categories)

    rows = []
    for user_id, by_category in totals.items():
        points = {CATEGORY_FIELDS[c]: by_category.get(c, 0) for c in categories}
        rows.append((user_id, points, sum(points.values())))

    def display_key(row):
        user_id = row[0]
        tie = usernames.get(user_id, user_id) if tie_break == "username" else user_id
        return (-row[2], tie, user_id)

    rows.sort(key=display_key)

    entries = []
    rank = 0
    previous_total = None
    for position, (user_id, points, total) in enumerate(rows, start=1):
        if total != previous_total:
            rank = rank + 1 if ranking == "dense" else position
            previous_total = total

        entries.append(LeaderboardEntry(
            rank=rank,
            user_id=user_id,
            username=usernames.get(user_id),
            total_points=total,
            **points
        ))

    return entries


class LeaderboardService:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        registry: EvaluatorRegistry,
        cache: Optional[LeaderboardCache] = None,
        settings: Optional[Settings] = None
    ):
        self.settings = settings or get_settings()
        self.registry = registry
        self.cache = cache
        self.points_repo = PointsRepository(db)
        self.user_repo = UserRepository(db)

    async def get_league_leaderboard(
        self,
        league_id: str,
        member_ids: Optional[Iterable[str]] = None
    ) -> list[LeaderboardEntry]:
        """
        Get the ranked leaderboard of a league.

        member_ids adds league members without points (0 in every category);
        only the plain leaderboard (no member list) is cached.
        """
        generation = None
        if member_ids is None and self.cache is not None:
            cached = self.cache.get(league_id)
            if cached is not None:
                return cached
            generation = self.cache.generation(league_id)

        totals = await self.points_repo.totals_by_user_and_category(league_id)

        for user_id in member_ids or ():
            totals.setdefault(user_id, {})

        usernames = await self.user_repo.get_usernames(totals.keys()) if totals else {}

        entries = rank_entries(
            totals,
            usernames=usernames,
            ranking=self.settings.leaderboard_ranking,
            tie_break=self.settings.leaderboard_tie_break,
            categories=self.registry.leaderboard_categories,
        )

        if member_ids is None and self.cache is not None:
            self.cache.set(league_id, entries, generation)

        logger.debug(f"Leaderboard for league {league_id}: {len(entries)} entries")
        return entries

