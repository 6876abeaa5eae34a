"""
Cache en memoria para leaderboards

El leaderboard se calcula a partir del ledger de puntos; como se lee mucho
más de lo que cambia, se guarda por liga durante un TTL corto.
El motor de evaluación invalida la liga cada vez que escribe o resetea
puntos, así que el TTL solo acota cuánto vive una entrada que nadie tocó.

Estructura: {league_id: (entries, timestamp)}

Cada liga lleva además una generación que invalidate() incrementa: un
lector que empezó a agregar antes de una invalidación no puede guardar
un leaderboard viejo (set con la generación leída al empezar).
"""

import logging
import time
from typing import Optional

from app.models.leaderboard import LeaderboardEntry

logger = logging.getLogger(__name__)


class LeaderboardCache:
    def __init__(self, ttl_seconds: int = 60, max_leagues: int = 500):
        self.ttl_seconds = ttl_seconds
        self.max_leagues = max_leagues
        self._entries: dict[str, tuple[list[LeaderboardEntry], float]] = {}
        self._generations: dict[str, int] = {}

    def get(self, league_id: str) -> Optional[list[LeaderboardEntry]]:
        cached = self._entries.get(league_id)
        if cached is None:
            return None

        entries, stored_at = cached
        if time.monotonic() - stored_at > self.ttl_seconds:
            del self._entries[league_id]
            return None

        return entries

    def generation(self, league_id: str) -> int:
        return self._generations.get(league_id, 0)

    def set(self, league_id: str, entries: list[LeaderboardEntry], generation: Optional[int] = None) -> None:
        if generation is not None and generation != self.generation(league_id):
            logger.debug(f"Stale leaderboard for league {league_id} not cached")
            return
        self._entries[league_id] = (entries, time.monotonic())
        self._clean()

    def invalidate(self, league_id: str) -> None:
        self._generations[league_id] = self.generation(league_id) + 1
        if self._entries.pop(league_id, None) is not None:
            logger.debug(f"Leaderboard cache invalidated for league {league_id}")

    def clear(self) -> None:
        self._entries.clear()

    def _clean(self) -> None:
        """
        1. Elimina entradas expiradas
        2. Si aún hay demasiadas, elimina las más viejas (FIFO)
        """
        now = time.monotonic()

        expired = [k for k, v in self._entries.items() if now - v[1] > self.ttl_seconds]
        for k in expired:
            del self._entries[k]

        if len(self._entries) > self.max_leagues:
            sorted_keys = sorted(self._entries.keys(), key=lambda k: self._entries[k][1])
            to_remove = len(self._entries) - self.max_leagues
            for k in sorted_keys[:to_remove]:
                del self._entries[k]
