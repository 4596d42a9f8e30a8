"""Repository for per-case vote aggregates.

The aggregate is a Redis hash (``c0``..``c3``, ``voters``,
``last_updated_ts``). Each vote bumps its verdict field and the voter
count with HINCRBY inside one MULTI block, so concurrent votes on the
same case are linearized by the server and never lost.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from verdict.db import keys
from verdict.models.domain import VERDICT_OPTIONS, Aggregate

if TYPE_CHECKING:
    from redis.asyncio import Redis

_VOTERS = "voters"
_UPDATED = "last_updated_ts"


def _count_field(index: int) -> str:
    return f"c{index}"


def _from_hash(case_id: str, data: dict[str, str]) -> Aggregate:
    counts = tuple(int(data.get(_count_field(i), 0)) for i in range(VERDICT_OPTIONS))
    return Aggregate(
        case_id=case_id,
        counts=counts,  # type: ignore[arg-type]
        voters=int(data.get(_VOTERS, 0)),
        last_updated_ts=int(data.get(_UPDATED, 0)),
    )


class AggregateRepo:
    """Async repository for vote aggregates."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    async def get(self, case_id: str) -> Aggregate | None:
        data: dict[str, str] = await self._redis.hgetall(keys.aggregate(case_id))  # type: ignore[misc]
        if not data:
            return None
        return _from_hash(case_id, data)

    async def increment(self, case_id: str, verdict_index: int, now: int) -> Aggregate:
        """Count one vote for ``verdict_index`` and return the updated aggregate."""
        if not 0 <= verdict_index < VERDICT_OPTIONS:
            msg = f"verdict_index {verdict_index} out of range"
            raise ValueError(msg)

        key = keys.aggregate(case_id)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.hincrby(key, _count_field(verdict_index), 1)
            pipe.hincrby(key, _VOTERS, 1)
            pipe.hset(key, _UPDATED, now)
            pipe.hgetall(key)
            results = await pipe.execute()
        return _from_hash(case_id, results[-1])

    async def delete(self, case_id: str) -> None:
        await self._redis.delete(keys.aggregate(case_id))
