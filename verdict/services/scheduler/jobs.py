"""Periodic jobs that keep cases moving without a reader.

Reads already apply due transitions lazily; these jobs sweep the working
sets so snapshots get taken, cases close and reveals happen even when
nobody is looking. Every job is safe to run concurrently with itself
and with request handlers.

Jobs:
  1. cycle_post - materialize the current case, publish its post once
  2. snapshot_open_cases - freeze the aggregate of every open case
  3. close_due_cases - final snapshot, then open → closed
  4. reveal_due_cases - closed → revealed
A failure on one case is logged and the sweep carries on.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from verdict.db.repositories import CaseRepo
from verdict.models.domain import Case, CaseStatus
from verdict.services.voting.snapshots import SnapshotService

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from verdict.core.clock import Clock
    from verdict.core.config import Settings
    from verdict.services.cases.lifecycle import CaseLifecycle
    from verdict.services.platform.client import PlatformClient

logger: structlog.stdlib.BoundLogger = structlog.get_logger()

_POST_CLAIM_TTL_SECONDS = 300


def post_title(case: Case) -> str:
    return f"Daily Verdict: {case.title}"


class SchedulerJobs:
    """The four sweeps run by the scheduler."""

    def __init__(
        self,
        redis: Redis,
        *,
        clock: Clock,
        lifecycle: CaseLifecycle,
        platform: PlatformClient | None,
    ) -> None:
        self._clock = clock
        self._lifecycle = lifecycle
        self._platform = platform
        self._cases = CaseRepo(redis)
        self._snapshots = SnapshotService(redis, clock=clock)

    async def cycle_post(self, sub_id: str) -> Case:
        """Ensure the current cycle has a case and, once, a community post."""
        case = await self._lifecycle.get_or_create_current(sub_id)
        if case.post_id is not None or self._platform is None:
            return case
        if not await self._cases.claim_post(case.case_id, _POST_CLAIM_TTL_SECONDS):
            logger.info("cycle_post_skipped", case_id=case.case_id, reason="claimed")
            return case

        try:
            post_id = await self._platform.create_post(sub_id, post_title(case))
        except Exception:
            await self._cases.release_post_claim(case.case_id)
            raise
        case = await self._lifecycle.attach_post(case.case_id, post_id)
        logger.info("cycle_post_created", case_id=case.case_id, post_id=case.post_id)
        return case

    async def _load(self, case_id: str) -> Case | None:
        case = await self._cases.get(case_id)
        if case is None:
            logger.warning("scheduler_case_missing", case_id=case_id)
        return case

    async def snapshot_open_cases(self) -> int:
        """Snapshot every case still inside its voting window."""
        taken = 0
        for case_id in await self._cases.list_open_ids():
            try:
                case = await self._load(case_id)
                if case is None:
                    continue
                if case.status is CaseStatus.OPEN and self._clock.now_ms() < case.close_ts:
                    await self._snapshots.take_snapshot(case_id)
                    taken += 1
            except Exception:
                logger.exception("scheduler_snapshot_failed", case_id=case_id)
        logger.info("scheduler_snapshots_done", taken=taken)
        return taken

    async def close_due_cases(self) -> int:
        """Close open cases past their close time, after a final snapshot."""
        closed = 0
        for case_id in await self._cases.list_open_ids():
            try:
                case = await self._load(case_id)
                if case is None:
                    continue
                if case.status is not CaseStatus.OPEN or self._clock.now_ms() < case.close_ts:
                    continue
                await self._snapshots.take_snapshot(case_id)
                await self._lifecycle.refresh(case)
                closed += 1
            except Exception:
                logger.exception("scheduler_close_failed", case_id=case_id)
        logger.info("scheduler_close_done", closed=closed)
        return closed

    async def reveal_due_cases(self, limit: int) -> int:
        """Reveal closed cases whose reveal time has passed."""
        revealed = 0
        due = await self._cases.list_reveal_due_ids(self._clock.now_ms(), limit)
        for case_id in due:
            try:
                case = await self._load(case_id)
                if case is None:
                    continue
                refreshed = await self._lifecycle.refresh(case)
                if refreshed.status is CaseStatus.REVEALED:
                    revealed += 1
            except Exception:
                logger.exception("scheduler_reveal_failed", case_id=case_id)
        logger.info("scheduler_reveal_done", revealed=revealed)
        return revealed


async def run_scheduler(jobs: SchedulerJobs, settings: Settings, stop: asyncio.Event) -> None:
    """In-process scheduler loop, for deployments without an external cron.

    Every tick posts the current cycle for each configured community,
    closes and reveals due cases; snapshots follow their own interval.
    """
    snapshot_every = settings.snapshot_interval_minutes * 60
    loop = asyncio.get_running_loop()
    last_snapshot = float("-inf")

    logger.info(
        "scheduler_started",
        communities=settings.scheduler_communities,
        tick_seconds=settings.scheduler_tick_seconds,
    )
    while not stop.is_set():
        for sub_id in settings.scheduler_communities:
            try:
                await jobs.cycle_post(sub_id)
            except Exception:
                logger.exception("scheduler_cycle_post_failed", sub_id=sub_id)

        try:
            if loop.time() - last_snapshot >= snapshot_every:
                await jobs.snapshot_open_cases()
                last_snapshot = loop.time()
            await jobs.close_due_cases()
            await jobs.reveal_due_cases(settings.reveal_scan_limit)
        except Exception:
            logger.exception("scheduler_tick_failed")

        try:
            await asyncio.wait_for(stop.wait(), timeout=settings.scheduler_tick_seconds)
        except TimeoutError:
            continue
    logger.info("scheduler_stopped")
