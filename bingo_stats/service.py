"""Cached league stats for the bot.

StatsService owns one StatsResult snapshot. It refreshes on demand (explicit
`refresh()` or a stale `get()`); there is no background polling. Several
refreshes may overlap; only the most recently started one publishes.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Optional, Sequence

from utils.logger import log_sync, log_warn

from .aggregate import StatsResult, compute_stats
from .models import Match, Player
from .profile import PlayerProfile, build_player_profile

FetchMatches = Callable[[], Awaitable[Sequence[Match]]]
FetchPlayer = Callable[[str], Awaitable[Optional[Player]]]
FetchPlayerMatches = Callable[[str], Awaitable[Sequence[Match]]]


class StatsService:
    def __init__(self, fetch_matches: FetchMatches, *, ttl_seconds: float = 600.0):
        self._fetch_matches = fetch_matches
        self._ttl = timedelta(seconds=max(0.0, float(ttl_seconds)))

        self._result: Optional[StatsResult] = None
        self._matches: List[Match] = []
        self._computed_at: Optional[datetime] = None

        # bumped at the start of every refresh; a refresh only publishes if
        # nobody started after it
        self._generation = 0

    # ---- state ----

    @property
    def result(self) -> Optional[StatsResult]:
        return self._result

    @property
    def matches(self) -> List[Match]:
        return list(self._matches)

    @property
    def computed_at(self) -> Optional[datetime]:
        return self._computed_at

    def is_stale(self, now: Optional[datetime] = None) -> bool:
        if self._result is None or self._computed_at is None:
            return True
        now = now or datetime.now(timezone.utc)
        return now - self._computed_at >= self._ttl

    def invalidate(self) -> None:
        self._computed_at = None

    # ---- refresh ----

    async def refresh(self) -> StatsResult:
        """
        Fetch a fresh snapshot and recompute.

        Returns this refresh's result even when a newer refresh has already
        started; in that case the result is not published.
        Fetch errors propagate and leave the current snapshot untouched.
        """
        self._generation += 1
        my_gen = self._generation

        matches = list(await self._fetch_matches())
        result = await asyncio.to_thread(compute_stats, matches)

        if my_gen != self._generation:
            log_warn(f"[stats] discarding stale refresh #{my_gen} (latest #{self._generation})")
            return result

        self._matches = matches
        self._result = result
        self._computed_at = datetime.now(timezone.utc)
        log_sync(
            f"[stats] refreshed #{my_gen}: {result.total_matches} matches, "
            f"{len(result.player_stats)} players"
        )
        return result

    async def get(self, force_refresh: bool = False) -> StatsResult:
        result = self._result
        if force_refresh or result is None or self.is_stale():
            return await self.refresh()
        return result

    # ---- per player ----

    async def player_profile(
        self,
        player_id: str,
        fetch_player: FetchPlayer,
        fetch_player_matches: FetchPlayerMatches,
    ) -> Optional[PlayerProfile]:
        player = await fetch_player(player_id)
        if player is None:
            return None

        matches = list(await fetch_player_matches(player_id))
        return await asyncio.to_thread(build_player_profile, player, matches)
