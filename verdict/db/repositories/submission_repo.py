"""Repository for community case submissions.

Pending submissions are indexed in a per-community sorted set ordered by
submission time. Reviews are one-way: the review transaction only
touches a submission that is still pending. An approval also records a
pointer from (community, date) to the submission, which case creation
consumes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from verdict.db import keys
from verdict.models.domain import CaseSubmission, SubmissionStatus

if TYPE_CHECKING:
    from collections.abc import Callable

    from redis.asyncio import Redis
    from redis.asyncio.client import Pipeline

_COUNT_TTL_SECONDS = 2 * 24 * 3600


class SubmissionRepo:
    """Async repository for case submissions."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    async def create(self, submission: CaseSubmission) -> None:
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.set(keys.submission(submission.submission_id), submission.model_dump_json())
            pipe.zadd(
                keys.pending_submissions(submission.sub_id),
                {submission.submission_id: submission.submitted_at},
            )
            await pipe.execute()

    async def get(self, submission_id: str) -> CaseSubmission | None:
        raw = await self._redis.get(keys.submission(submission_id))
        return CaseSubmission.model_validate_json(raw) if raw else None

    async def list_pending(self, sub_id: str) -> list[CaseSubmission]:
        """Pending submissions of a community, oldest first."""
        ids: list[str] = await self._redis.zrange(keys.pending_submissions(sub_id), 0, -1)
        if not ids:
            return []
        raws = await self._redis.mget([keys.submission(i) for i in ids])
        pending: list[CaseSubmission] = []
        for raw in raws:
            if raw is None:
                continue
            submission = CaseSubmission.model_validate_json(raw)
            if submission.status is SubmissionStatus.PENDING:
                pending.append(submission)
        return pending

    async def review(
        self,
        submission_id: str,
        decide: Callable[[CaseSubmission], CaseSubmission],
    ) -> tuple[CaseSubmission | None, bool]:
        """Apply a review decision to a pending submission.

        Returns (None, False) for an unknown id and (current, False) when
        the submission has already been reviewed.
        """
        key = keys.submission(submission_id)

        async def _apply(pipe: Pipeline) -> tuple[CaseSubmission | None, bool]:
            raw = await pipe.get(key)
            if raw is None:
                return None, False
            current = CaseSubmission.model_validate_json(raw)
            if current.status is not SubmissionStatus.PENDING:
                return current, False

            reviewed = decide(current)
            pipe.multi()
            pipe.set(key, reviewed.model_dump_json())
            pipe.zrem(keys.pending_submissions(current.sub_id), submission_id)
            if reviewed.status is SubmissionStatus.APPROVED and reviewed.assigned_date:
                pipe.set(
                    keys.approved_submission(current.sub_id, reviewed.assigned_date),
                    submission_id,
                )
            return reviewed, True

        result: tuple[CaseSubmission | None, bool] = await self._redis.transaction(
            _apply, key, value_from_callable=True
        )
        return result

    async def approved_for_date(self, sub_id: str, date_key: str) -> CaseSubmission | None:
        submission_id = await self._redis.get(keys.approved_submission(sub_id, date_key))
        if submission_id is None:
            return None
        return await self.get(submission_id)

    async def release_approved(self, sub_id: str, date_key: str, submission_id: str) -> bool:
        """Drop the date pointer once a case has been built from it."""
        key = keys.approved_submission(sub_id, date_key)

        async def _apply(pipe: Pipeline) -> bool:
            if await pipe.get(key) != submission_id:
                return False
            pipe.multi()
            pipe.delete(key)
            return True

        result: bool = await self._redis.transaction(_apply, key, value_from_callable=True)
        return result

    async def increment_daily_count(self, sub_id: str, user_id: str, date_key: str) -> int:
        key = keys.submission_count(sub_id, user_id, date_key)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            pipe.expire(key, _COUNT_TTL_SECONDS)
            count, _ = await pipe.execute()
        return int(count)

    async def decrement_daily_count(self, sub_id: str, user_id: str, date_key: str) -> None:
        await self._redis.decr(keys.submission_count(sub_id, user_id, date_key))
