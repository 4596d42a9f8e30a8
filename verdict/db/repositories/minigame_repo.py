"""Repository for best minigame scores per case.

One sorted set per case; ``ZADD GT`` keeps the maximum ever submitted
without a read-modify-write.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from verdict.db import keys

if TYPE_CHECKING:
    from redis.asyncio import Redis


class MinigameRepo:
    """Async repository for minigame scores."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    async def record_best(self, case_id: str, user_id: str, score: int) -> int:
        """Keep ``score`` if it beats the stored best. Returns the best."""
        key = keys.minigame(case_id)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.zadd(key, {user_id: score}, gt=True)
            pipe.zscore(key, user_id)
            _, best = await pipe.execute()
        return int(best)

    async def get_best(self, case_id: str, user_id: str) -> int:
        best = await self._redis.zscore(keys.minigame(case_id), user_id)
        return int(best) if best is not None else 0

    async def delete(self, case_id: str) -> None:
        await self._redis.delete(keys.minigame(case_id))
