"""Repository for per-community play streaks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from verdict.db import keys
from verdict.models.domain import Streak

if TYPE_CHECKING:
    from collections.abc import Callable

    from redis.asyncio import Redis
    from redis.asyncio.client import Pipeline


class StreakRepo:
    """Async repository for streaks."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    async def get(self, sub_id: str, user_id: str) -> Streak:
        raw = await self._redis.get(keys.streak(sub_id, user_id))
        return Streak.model_validate_json(raw) if raw else Streak()

    async def update(
        self,
        sub_id: str,
        user_id: str,
        mutate: Callable[[Streak], Streak],
    ) -> Streak:
        """Apply ``mutate`` to the stored streak under optimistic locking.

        ``mutate`` may run more than once if another writer races in.
        """
        key = keys.streak(sub_id, user_id)

        async def _apply(pipe: Pipeline) -> Streak:
            raw = await pipe.get(key)
            current = Streak.model_validate_json(raw) if raw else Streak()
            updated = mutate(current)
            if updated == current:
                return current
            pipe.multi()
            pipe.set(key, updated.model_dump_json())
            return updated

        result: Streak = await self._redis.transaction(_apply, key, value_from_callable=True)
        return result
