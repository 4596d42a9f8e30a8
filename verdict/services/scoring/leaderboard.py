"""Leaderboard views: top-N plus the caller's own position.

Boards are written as a side effect of saving a score (see ScoreRepo);
this module only reads them and attaches display names. Names come from
the local cache; a miss triggers one platform lookup whose result is
cached for good.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from verdict.core.exceptions import PlatformError, RateLimitError
from verdict.db.repositories import LeaderboardRepo, UsernameRepo
from verdict.models.domain import Leaderboard, LeaderboardEntry

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from verdict.services.platform.client import PlatformClient

logger: structlog.stdlib.BoundLogger = structlog.get_logger()

ANONYMOUS = "anonymous"


class UsernameResolver:
    """Cached user id → display name lookup."""

    def __init__(self, redis: Redis, platform: PlatformClient | None = None) -> None:
        self._cache = UsernameRepo(redis)
        self._platform = platform

    async def remember(self, user_id: str, username: str) -> None:
        await self._cache.set(user_id, username)

    async def resolve(self, user_ids: list[str]) -> dict[str, str]:
        cached = await self._cache.get_many(user_ids)
        names: dict[str, str] = {}
        for user_id, name in cached.items():
            if name is None:
                name = await self._fetch(user_id)
            names[user_id] = name or ANONYMOUS
        return names

    async def _fetch(self, user_id: str) -> str | None:
        if self._platform is None:
            return None
        try:
            name = await self._platform.get_username(user_id)
        except (PlatformError, RateLimitError) as exc:
            logger.warning("username_lookup_failed", user_id=user_id, error=exc.message)
            return None
        if name:
            await self._cache.set(user_id, name)
        return name


class LeaderboardService:
    """Builds per-case and weekly leaderboard responses."""

    def __init__(self, redis: Redis, *, usernames: UsernameResolver) -> None:
        self._boards = LeaderboardRepo(redis)
        self._usernames = usernames

    async def _assemble(
        self,
        rows: list[tuple[str, int]],
        position: tuple[int, int] | None,
        user_id: str | None,
        total_players: int,
    ) -> Leaderboard:
        ids = [member for member, _ in rows]
        if user_id is not None and position is not None and user_id not in ids:
            ids.append(user_id)
        names = await self._usernames.resolve(ids)

        top = [
            LeaderboardEntry(rank=i + 1, user_id=member, username=names[member], score=score)
            for i, (member, score) in enumerate(rows)
        ]
        me = None
        if user_id is not None and position is not None:
            rank, score = position
            me = LeaderboardEntry(
                rank=rank + 1, user_id=user_id, username=names[user_id], score=score
            )
        return Leaderboard(top=top, me=me, total_players=total_players)

    async def for_case(self, case_id: str, user_id: str | None, *, limit: int) -> Leaderboard:
        rows = await self._boards.case_top(case_id, limit)
        position = await self._boards.case_position(case_id, user_id) if user_id else None
        size = await self._boards.case_size(case_id)
        return await self._assemble(rows, position, user_id, size)

    async def for_week(
        self, sub_id: str, week_key: str, user_id: str | None, *, limit: int
    ) -> Leaderboard:
        rows = await self._boards.weekly_top(sub_id, week_key, limit)
        position = (
            await self._boards.weekly_position(sub_id, week_key, user_id) if user_id else None
        )
        size = await self._boards.weekly_size(sub_id, week_key)
        return await self._assemble(rows, position, user_id, size)
