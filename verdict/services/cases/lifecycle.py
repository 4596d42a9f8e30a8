"""Case lifecycle: materialization and lazy status transitions.

A case moves open → closed → revealed purely by comparing the clock to
its close and reveal timestamps. Nobody owns the transition: every read
path applies whatever is due, and the scheduler sweeps the working sets
for cases nobody is reading. Because each persisted step is a guarded
one-step advance, any number of concurrent appliers converge on the same
stored state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from prometheus_client import Counter

from verdict.core.clock import cycle_key, date_key
from verdict.core.exceptions import NotFoundError, StateConflictError
from verdict.db.repositories import (
    AggregateRepo,
    CaseRepo,
    MinigameRepo,
    SnapshotRepo,
    SubmissionRepo,
    VoteRepo,
)
from verdict.models.domain import DEFAULT_LABELS, Case, CaseSource, CaseStatus
from verdict.services.cases.seeds import seed_case_for_date

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from verdict.core.clock import Clock
    from verdict.core.config import Settings

logger: structlog.stdlib.BoundLogger = structlog.get_logger()

STATUS_TRANSITIONS = Counter(
    "case_status_transitions_total",
    "Case status transitions persisted",
    ["status"],
)


def due_transitions(case: Case, now: int) -> list[CaseStatus]:
    """Transitions owed by ``case`` at ``now``, in the order they must be applied.

    A case past its reveal time that is still open owes both steps;
    closed is never skipped.
    """
    steps: list[CaseStatus] = []
    status = case.status
    if status is CaseStatus.OPEN and now >= case.close_ts:
        steps.append(CaseStatus.CLOSED)
        status = CaseStatus.CLOSED
    if status is CaseStatus.CLOSED and now >= case.reveal_ts:
        steps.append(CaseStatus.REVEALED)
    return steps


def refresh_status(case: Case, now: int) -> Case:
    """Pure form of the transition: the case as it should look at ``now``."""
    for step in due_transitions(case, now):
        case = case.model_copy(update={"status": step})
    return case


def make_case_id(sub_id: str, cycle: str) -> str:
    return f"{sub_id}:{cycle}"


class CaseLifecycle:
    """Creates cases for the current cycle and keeps their status current."""

    def __init__(self, redis: Redis, *, settings: Settings, clock: Clock) -> None:
        self._redis = redis
        self._settings = settings
        self._clock = clock
        self._cases = CaseRepo(redis)
        self._submissions = SubmissionRepo(redis)

    def _new_window(self, now: int) -> dict[str, int]:
        close_ts = now + self._settings.open_window_ms
        return {
            "open_ts": now,
            "close_ts": close_ts,
            "reveal_ts": close_ts + self._settings.reveal_delay_ms,
        }

    async def get_or_create_current(self, sub_id: str) -> Case:
        """Return the case of the current cycle, creating it on first access.

        Safe under concurrent callers: creation is conditional on the
        deterministic case id, and losers adopt the winner's record.
        """
        now = self._clock.now_ms()
        tz = self._settings.timezone
        cycle = cycle_key(now, self._settings.cycle_minutes, tz)
        case_id = make_case_id(sub_id, cycle)

        existing = await self._cases.get(case_id)
        if existing is not None:
            return await self.refresh(existing)

        day = date_key(now, tz)
        approved = await self._submissions.approved_for_date(sub_id, day)
        if approved is not None:
            candidate = Case(
                case_id=case_id,
                sub_id=sub_id,
                date_key=day,
                cycle_key=cycle,
                title=approved.title or "Community Case",
                text=approved.text,
                labels=approved.labels_override or DEFAULT_LABELS,
                source=CaseSource.USER,
                created_by=approved.user_id,
                **self._new_window(now),
            )
        else:
            seed = seed_case_for_date(day)
            candidate = Case(
                case_id=case_id,
                sub_id=sub_id,
                date_key=day,
                cycle_key=cycle,
                title=seed.title,
                text=seed.text,
                labels=seed.labels,
                **self._new_window(now),
            )

        stored, created = await self._cases.create_if_absent(candidate)
        if created:
            if approved is not None:
                await self._submissions.release_approved(sub_id, day, approved.submission_id)
            logger.info(
                "case_created",
                case_id=case_id,
                source=stored.source.value,
                close_ts=stored.close_ts,
                reveal_ts=stored.reveal_ts,
            )
        return await self.refresh(stored)

    async def get(self, case_id: str) -> Case:
        """Fetch a case with its status brought up to date."""
        case = await self._cases.get(case_id)
        if case is None:
            msg = f"Case {case_id} not found"
            raise NotFoundError(msg, details={"case_id": case_id})
        return await self.refresh(case)

    async def refresh(self, case: Case) -> Case:
        """Persist every transition ``case`` owes right now, in order."""
        now = self._clock.now_ms()
        for step in due_transitions(case, now):
            stored, changed = await self._cases.advance_status(case.case_id, step)
            if stored is None:
                msg = f"Case {case.case_id} not found"
                raise NotFoundError(msg, details={"case_id": case.case_id})
            if changed:
                STATUS_TRANSITIONS.labels(status=step.value).inc()
                logger.info("case_status_advanced", case_id=case.case_id, status=step.value)
            case = stored
        return case

    async def attach_post(self, case_id: str, post_id: str) -> Case:
        case = await self._cases.set_post_id(case_id, post_id)
        if case is None:
            msg = f"Case {case_id} not found"
            raise NotFoundError(msg, details={"case_id": case_id})
        return case

    async def replace_with_seed(self, case_id: str) -> Case:
        """Moderator override: swap an open case for its date's seed case.

        The replacement gets a fresh voting window, and everything
        recorded against the old content (votes, aggregate, snapshots,
        minigame scores) is discarded. Cases past their open window are
        left alone so status never moves backwards.
        """
        case = await self.get(case_id)
        if case.status is not CaseStatus.OPEN:
            msg = f"Case {case_id} is {case.status.value} and can no longer be replaced"
            raise StateConflictError(msg, details={"case_id": case_id})

        seed = seed_case_for_date(case.date_key)
        replacement = case.model_copy(
            update={
                "title": seed.title,
                "text": seed.text,
                "labels": seed.labels,
                "source": CaseSource.SEED,
                "created_by": "app",
                **self._new_window(self._clock.now_ms()),
            }
        )
        await self._cases.replace(replacement)

        purged_votes = await VoteRepo(self._redis).purge_case(case_id)
        await AggregateRepo(self._redis).delete(case_id)
        await SnapshotRepo(self._redis).purge(case_id)
        await MinigameRepo(self._redis).delete(case_id)

        logger.warning("case_replaced_with_seed", case_id=case_id, purged_votes=purged_votes)
        return replacement
