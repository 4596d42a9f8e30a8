"""Vote & aggregate tracking.

cast_vote() is the only writer of an aggregate. The vote record is
claimed first (conditional create), and only the caller that claimed it
increments the aggregate, so a rejected duplicate never touches the
counts and concurrent votes are each counted exactly once.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import structlog
from prometheus_client import Counter

from verdict.core.exceptions import DuplicateVoteError, InvalidInputError, VotingClosedError
from verdict.db.repositories import AggregateRepo, MinigameRepo, VoteRepo
from verdict.models.domain import Aggregate, Case, CaseStatus, Vote

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from verdict.core.clock import Clock

logger: structlog.stdlib.BoundLogger = structlog.get_logger()

VOTES_CAST = Counter("votes_cast_total", "Votes accepted", ["verdict_index"])
VOTES_REJECTED = Counter("votes_rejected_total", "Votes refused", ["reason"])


class VoteTracker:
    """Records votes and maintains per-case aggregates."""

    def __init__(self, redis: Redis, *, clock: Clock) -> None:
        self._clock = clock
        self._votes = VoteRepo(redis)
        self._aggregates = AggregateRepo(redis)
        self._minigames = MinigameRepo(redis)

    async def get_vote(self, case_id: str, user_id: str) -> Vote | None:
        return await self._votes.get(case_id, user_id)

    async def get_aggregate(self, case_id: str) -> Aggregate | None:
        return await self._aggregates.get(case_id)

    async def cast_vote(
        self,
        case: Case,
        *,
        user_id: str,
        verdict_index: int,
        prediction_index: int,
    ) -> tuple[Vote, Aggregate]:
        """Record a vote on an open case and return it with the new aggregate.

        Raises VotingClosedError once the case left its open window and
        DuplicateVoteError when the user already voted.
        """
        now = self._clock.now_ms()
        if case.status is not CaseStatus.OPEN or now >= case.close_ts:
            VOTES_REJECTED.labels(reason="closed").inc()
            msg = "Voting is closed for this case"
            raise VotingClosedError(msg, details={"case_id": case.case_id})

        vote = Vote(
            case_id=case.case_id,
            user_id=user_id,
            verdict_index=verdict_index,
            prediction_index=prediction_index,
            vote_ts=now,
        )
        if not await self._votes.create(vote):
            VOTES_REJECTED.labels(reason="duplicate").inc()
            msg = "User has already voted on this case"
            raise DuplicateVoteError(msg, details={"case_id": case.case_id})

        aggregate = await self._aggregates.increment(case.case_id, verdict_index, now)
        VOTES_CAST.labels(verdict_index=str(verdict_index)).inc()
        logger.info(
            "vote_cast",
            case_id=case.case_id,
            user_id=user_id,
            verdict_index=verdict_index,
            voters=aggregate.voters,
        )
        return vote, aggregate

    async def mark_first_comment(self, case_id: str, user_id: str) -> bool:
        """Stamp the user's first comment time on their vote, once."""
        marked = await self._votes.mark_first_comment(case_id, user_id, self._clock.now_ms())
        if marked:
            logger.info("first_comment_marked", case_id=case_id, user_id=user_id)
        return marked

    async def record_minigame_score(
        self, case_id: str, user_id: str, score: float, *, cap: int
    ) -> int:
        """Store a capped minigame score, keeping the best. Returns the best."""
        if not math.isfinite(score) or score < 0:
            msg = "Minigame score must be a finite non-negative number"
            raise InvalidInputError(msg, details={"case_id": case_id})
        capped = min(int(score + 0.5), cap)
        return await self._minigames.record_best(case_id, user_id, capped)
