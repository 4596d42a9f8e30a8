"""Repository for ranked leaderboards.

Two kinds of boards share the sorted-set machinery:

* per-case boards hold one entry per scored user. Ties on total are
  broken by the earliest save time, which is folded into the sorted-set
  score: ``total * SCALE + (SCALE - 1 - saved_ts)``. Totals stay below
  a few hundred and timestamps below 10**13, so the encoded value is an
  exact integer in a double.
* weekly boards accumulate totals with ZINCRBY; ties fall back to Redis
  member ordering.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from verdict.db import keys

if TYPE_CHECKING:
    from redis.asyncio import Redis

CASE_RANK_SCALE = 10**13


def encode_case_rank(total: int, saved_ts: int) -> int:
    return total * CASE_RANK_SCALE + (CASE_RANK_SCALE - 1 - saved_ts)


def decode_case_rank(value: float) -> int:
    return int(value) // CASE_RANK_SCALE


class LeaderboardRepo:
    """Read access to per-case and weekly boards."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    async def case_top(self, case_id: str, limit: int) -> list[tuple[str, int]]:
        rows: list[tuple[str, float]] = await self._redis.zrevrange(
            keys.case_leaderboard(case_id), 0, limit - 1, withscores=True
        )
        return [(member, decode_case_rank(score)) for member, score in rows]

    async def case_position(self, case_id: str, user_id: str) -> tuple[int, int] | None:
        """0-based rank and total for ``user_id`` on a case board."""
        key = keys.case_leaderboard(case_id)
        async with self._redis.pipeline(transaction=False) as pipe:
            pipe.zrevrank(key, user_id)
            pipe.zscore(key, user_id)
            rank, score = await pipe.execute()
        if rank is None or score is None:
            return None
        return int(rank), decode_case_rank(score)

    async def case_size(self, case_id: str) -> int:
        size: int = await self._redis.zcard(keys.case_leaderboard(case_id))
        return size

    async def weekly_top(self, sub_id: str, week_key: str, limit: int) -> list[tuple[str, int]]:
        rows: list[tuple[str, float]] = await self._redis.zrevrange(
            keys.weekly_leaderboard(sub_id, week_key), 0, limit - 1, withscores=True
        )
        return [(member, int(score)) for member, score in rows]

    async def weekly_position(
        self, sub_id: str, week_key: str, user_id: str
    ) -> tuple[int, int] | None:
        key = keys.weekly_leaderboard(sub_id, week_key)
        async with self._redis.pipeline(transaction=False) as pipe:
            pipe.zrevrank(key, user_id)
            pipe.zscore(key, user_id)
            rank, score = await pipe.execute()
        if rank is None or score is None:
            return None
        return int(rank), int(score)

    async def weekly_size(self, sub_id: str, week_key: str) -> int:
        size: int = await self._redis.zcard(keys.weekly_leaderboard(sub_id, week_key))
        return size
