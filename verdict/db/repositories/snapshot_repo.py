"""Repository for aggregate snapshots.

Snapshots are immutable JSON documents (``SET NX``) plus a per-case
sorted set whose scores are the snapshot timestamps, which turns
"first snapshot at or after T" into a single ZRANGEBYSCORE.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from verdict.db import keys
from verdict.models.domain import Snapshot

if TYPE_CHECKING:
    from redis.asyncio import Redis


class SnapshotRepo:
    """Async repository for snapshots."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    async def save(self, snapshot: Snapshot) -> Snapshot:
        """Write ``snapshot`` unless one already exists at the same timestamp.

        Returns whichever snapshot is stored for that timestamp.
        """
        key = keys.snapshot(snapshot.case_id, snapshot.ts)
        created = await self._redis.set(key, snapshot.model_dump_json(), nx=True)
        await self._redis.zadd(
            keys.snapshot_index(snapshot.case_id), {str(snapshot.ts): snapshot.ts}
        )
        if created:
            return snapshot
        existing = await self.get(snapshot.case_id, snapshot.ts)
        return existing or snapshot

    async def get(self, case_id: str, ts: int) -> Snapshot | None:
        raw = await self._redis.get(keys.snapshot(case_id, ts))
        return Snapshot.model_validate_json(raw) if raw else None

    async def first_at_or_after(self, case_id: str, ts: int) -> Snapshot | None:
        """Earliest snapshot taken at or after ``ts``; an exact match wins."""
        members: list[str] = await self._redis.zrangebyscore(
            keys.snapshot_index(case_id), ts, "+inf", start=0, num=1
        )
        if not members:
            return None
        return await self.get(case_id, int(members[0]))

    async def list_timestamps(self, case_id: str) -> list[int]:
        members: list[str] = await self._redis.zrange(keys.snapshot_index(case_id), 0, -1)
        return [int(m) for m in members]

    async def purge(self, case_id: str) -> None:
        timestamps = await self.list_timestamps(case_id)
        doomed = [keys.snapshot(case_id, ts) for ts in timestamps]
        await self._redis.delete(keys.snapshot_index(case_id), *doomed)
