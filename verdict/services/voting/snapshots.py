"""Point-in-time copies of vote aggregates.

The influence bonus compares a user's verdict share at the first
snapshot after their comment with the final share, so snapshots are
taken on a fixed cadence while a case is open and never change once
written.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from prometheus_client import Counter

from verdict.db.repositories import AggregateRepo, SnapshotRepo
from verdict.models.domain import Snapshot

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from verdict.core.clock import Clock

logger: structlog.stdlib.BoundLogger = structlog.get_logger()

SNAPSHOTS_TAKEN = Counter("snapshots_taken_total", "Aggregate snapshots written")


class SnapshotService:
    """Writes and looks up aggregate snapshots."""

    def __init__(self, redis: Redis, *, clock: Clock) -> None:
        self._clock = clock
        self._aggregates = AggregateRepo(redis)
        self._snapshots = SnapshotRepo(redis)

    async def take_snapshot(self, case_id: str) -> Snapshot:
        """Freeze the current aggregate (zeros when nobody voted yet)."""
        now = self._clock.now_ms()
        aggregate = await self._aggregates.get(case_id)
        snapshot = Snapshot(
            case_id=case_id,
            ts=now,
            counts=aggregate.counts if aggregate else (0, 0, 0, 0),
            voters=aggregate.voters if aggregate else 0,
        )
        stored = await self._snapshots.save(snapshot)
        SNAPSHOTS_TAKEN.inc()
        logger.debug("snapshot_taken", case_id=case_id, ts=now, voters=stored.voters)
        return stored

    async def snapshot_at_or_after(self, case_id: str, ts: int) -> Snapshot | None:
        return await self._snapshots.first_at_or_after(case_id, ts)
