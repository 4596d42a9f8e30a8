"""Display-name cache keyed by user id. Entries never expire."""

from __future__ import annotations

from typing import TYPE_CHECKING

from verdict.db import keys

if TYPE_CHECKING:
    from redis.asyncio import Redis


class UsernameRepo:
    """Async repository for cached usernames."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    async def get_many(self, user_ids: list[str]) -> dict[str, str | None]:
        if not user_ids:
            return {}
        names = await self._redis.mget([keys.username(u) for u in user_ids])
        return dict(zip(user_ids, names, strict=True))

    async def set(self, user_id: str, username: str) -> None:
        await self._redis.set(keys.username(user_id), username)
