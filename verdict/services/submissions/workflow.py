"""Submission workflow: submit, list, approve, reject.

Each user may submit a limited number of cases per calendar day. The
quota is claimed with an atomic increment and handed back when the
claim overshoots, so two simultaneous submissions cannot both slip
through on the last slot.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog

from verdict.core.clock import date_key, parse_date_key
from verdict.core.exceptions import (
    AlreadyReviewedError,
    InvalidInputError,
    NotFoundError,
    RateLimitError,
)
from verdict.db.repositories import SubmissionRepo
from verdict.models.domain import CaseSubmission, SubmissionStatus
from verdict.services.submissions.validators import (
    validate_labels_override,
    validate_submission_text,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from redis.asyncio import Redis

    from verdict.core.clock import Clock
    from verdict.core.config import Settings

logger: structlog.stdlib.BoundLogger = structlog.get_logger()


class SubmissionService:
    """Community case submissions and their moderator review."""

    def __init__(self, redis: Redis, *, settings: Settings, clock: Clock) -> None:
        self._settings = settings
        self._clock = clock
        self._repo = SubmissionRepo(redis)

    async def submit(
        self,
        *,
        sub_id: str,
        user_id: str,
        username: str,
        text: str,
        title: str | None = None,
        labels_override: list[str] | None = None,
    ) -> CaseSubmission:
        settings = self._settings
        clean_text = validate_submission_text(
            text,
            min_length=settings.min_submission_length,
            max_length=settings.max_submission_length,
        )
        labels = validate_labels_override(
            labels_override, max_label_length=settings.max_label_length
        )

        now = self._clock.now_ms()
        today = date_key(now, settings.timezone)
        count = await self._repo.increment_daily_count(sub_id, user_id, today)
        if count > settings.max_submissions_per_day:
            await self._repo.decrement_daily_count(sub_id, user_id, today)
            msg = f"You can only submit {settings.max_submissions_per_day} cases per day"
            raise RateLimitError(msg, details={"limit": settings.max_submissions_per_day})

        submission = CaseSubmission(
            submission_id=f"sub-{uuid.uuid4().hex}",
            sub_id=sub_id,
            user_id=user_id,
            username=username,
            text=clean_text,
            title=title.strip() if title and title.strip() else None,
            labels_override=labels,
            submitted_at=now,
        )
        await self._repo.create(submission)
        logger.info("submission_created", submission_id=submission.submission_id, sub_id=sub_id)
        return submission

    async def get(self, submission_id: str) -> CaseSubmission | None:
        return await self._repo.get(submission_id)

    async def list_pending(self, sub_id: str) -> list[CaseSubmission]:
        return await self._repo.list_pending(sub_id)

    async def approve(
        self, submission_id: str, *, assigned_date: str, reviewer: str
    ) -> CaseSubmission:
        try:
            parse_date_key(assigned_date)
        except ValueError as exc:
            raise InvalidInputError(
                "date_key must be a YYYYMMDD calendar date",
                details={"date_key": assigned_date},
            ) from exc

        now = self._clock.now_ms()
        return await self._review(
            submission_id,
            lambda s: s.model_copy(
                update={
                    "status": SubmissionStatus.APPROVED,
                    "assigned_date": assigned_date,
                    "reviewed_at": now,
                    "reviewed_by": reviewer,
                }
            ),
        )

    async def reject(self, submission_id: str, *, reason: str, reviewer: str) -> CaseSubmission:
        now = self._clock.now_ms()
        return await self._review(
            submission_id,
            lambda s: s.model_copy(
                update={
                    "status": SubmissionStatus.REJECTED,
                    "reject_reason": reason,
                    "reviewed_at": now,
                    "reviewed_by": reviewer,
                }
            ),
        )

    async def _review(
        self,
        submission_id: str,
        decide: Callable[[CaseSubmission], CaseSubmission],
    ) -> CaseSubmission:
        reviewed, changed = await self._repo.review(submission_id, decide)
        if reviewed is None:
            msg = f"Submission {submission_id} not found"
            raise NotFoundError(msg, details={"submission_id": submission_id})
        if not changed:
            msg = f"Submission {submission_id} was already {reviewed.status.value}"
            raise AlreadyReviewedError(msg, details={"submission_id": submission_id})
        logger.info(
            "submission_reviewed",
            submission_id=submission_id,
            status=reviewed.status.value,
            reviewed_by=reviewed.reviewed_by,
        )
        return reviewed
