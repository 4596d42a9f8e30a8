"""Results: settling scores and assembling what a player sees.

Settling a (case, user) pair is the only place a score is written. The
order is fixed: read the streak, score with that pre-update value,
persist the breakdown (first writer wins, boards fed in the same
transaction), then count today's play on the streak. Later reads return
the persisted breakdown untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from prometheus_client import Counter

from verdict.core.clock import date_key, week_key
from verdict.core.exceptions import NotFoundError, NotRevealedError
from verdict.db.repositories import CaseRepo, ScoreRepo, VoteRepo
from verdict.models.domain import (
    ArchiveEntry,
    Case,
    CaseStatus,
    Leaderboard,
    RevealResult,
    ScoreBreakdown,
    Streak,
    TodayState,
)
from verdict.services.scoring.engine import ScoringEngine, compute_majority
from verdict.services.scoring.streaks import StreakTracker
from verdict.services.voting.tracker import VoteTracker

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from verdict.core.clock import Clock
    from verdict.core.config import Settings
    from verdict.services.cases.lifecycle import CaseLifecycle
    from verdict.services.scoring.leaderboard import LeaderboardService

logger: structlog.stdlib.BoundLogger = structlog.get_logger()

SCORES_COMPUTED = Counter("scores_computed_total", "Score breakdowns persisted")

# The current cycle and one awaiting reveal can sit ahead of the newest
# revealed case in the community index.
_UNREVEALED_SLACK = 2


class ResultsService:
    """Score settlement plus the today, reveal and archive views."""

    def __init__(
        self,
        redis: Redis,
        *,
        settings: Settings,
        clock: Clock,
        lifecycle: CaseLifecycle,
        leaderboards: LeaderboardService,
    ) -> None:
        self._settings = settings
        self._clock = clock
        self._lifecycle = lifecycle
        self._leaderboards = leaderboards
        self._cases = CaseRepo(redis)
        self._votes = VoteRepo(redis)
        self._scores = ScoreRepo(redis)
        self._tracker = VoteTracker(redis, clock=clock)
        self._streaks = StreakTracker(redis)
        self._engine = ScoringEngine(
            redis, influence_threshold_pct=settings.influence_threshold_pct
        )

    async def settle_score(self, case: Case, user_id: str) -> tuple[ScoreBreakdown | None, Streak]:
        """Return the user's score on ``case``, computing and saving it once.

        The score is None when the user did not vote. While the aggregate
        still reads zero voters a zero breakdown is returned and nothing
        is persisted, so a later read scores for real.
        """
        existing = await self._scores.get(case.case_id, user_id)
        if existing is not None:
            return existing, await self._streaks.get(case.sub_id, user_id)

        streak = await self._streaks.get(case.sub_id, user_id)
        if await self._votes.get(case.case_id, user_id) is None:
            return None, streak

        breakdown = await self._engine.compute_score(case, user_id, streak=streak)
        if breakdown is None:
            logger.warning("score_deferred_no_voters", case_id=case.case_id, user_id=user_id)
            return ScoreBreakdown.zero(case.case_id, user_id), streak

        stored, created = await self._scores.save_if_absent(
            breakdown,
            sub_id=case.sub_id,
            week_key=week_key(case.date_key),
            saved_ts=self._clock.now_ms(),
        )
        if created:
            SCORES_COMPUTED.inc()
            logger.info(
                "score_saved",
                case_id=case.case_id,
                user_id=user_id,
                total=stored.total,
            )
        streak = await self._streaks.touch(case.sub_id, user_id, case.date_key)
        return stored, streak

    async def today_state(self, sub_id: str, user_id: str | None) -> TodayState:
        case = await self._lifecycle.get_or_create_current(sub_id)
        vote = await self._tracker.get_vote(case.case_id, user_id) if user_id else None
        if case.status is not CaseStatus.REVEALED:
            return TodayState(case=case, vote=vote)

        aggregate = await self._tracker.get_aggregate(case.case_id)
        majority = compute_majority(aggregate.counts, aggregate.voters) if aggregate else None
        if user_id is None:
            return TodayState(case=case, aggregate=aggregate, majority=majority)

        score, streak = await self.settle_score(case, user_id)
        board = await self._leaderboards.for_case(
            case.case_id, user_id, limit=self._settings.leaderboard_size
        )
        return TodayState(
            case=case,
            vote=vote,
            aggregate=aggregate,
            majority=majority,
            score=score,
            streak=streak,
            leaderboard=board,
        )

    async def reveal(self, case_id: str, user_id: str) -> RevealResult:
        """Results of a revealed case for ``user_id``.

        Raises NotRevealedError before the reveal time and NotFoundError
        when nobody voted.
        """
        case = await self._lifecycle.get(case_id)
        if case.status is not CaseStatus.REVEALED:
            msg = f"Case {case_id} is not revealed yet"
            raise NotRevealedError(msg, details={"case_id": case_id, "reveal_ts": case.reveal_ts})

        aggregate = await self._tracker.get_aggregate(case_id)
        if aggregate is None or aggregate.voters == 0:
            raise NotFoundError("No votes recorded", details={"case_id": case_id})

        majority = compute_majority(aggregate.counts, aggregate.voters)
        score, streak = await self.settle_score(case, user_id)
        board = await self._leaderboards.for_case(
            case_id, user_id, limit=self._settings.leaderboard_size
        )
        logger.info(
            "case_revealed_to_user", case_id=case_id, user_id=user_id, scored=score is not None
        )
        return RevealResult(
            case=case,
            aggregate=aggregate,
            majority_index=majority.majority_index,
            majority_label=case.labels[majority.majority_index],
            percentages=majority.percentages,
            score=score,
            streak=streak,
            leaderboard=board,
        )

    async def archive(
        self, sub_id: str, user_id: str | None, rounds: int | None = None
    ) -> list[ArchiveEntry]:
        """Most recent revealed cases of a community that drew votes, newest first.

        Only scores already settled are attached; browsing the archive
        never settles an old case.
        """
        settings = self._settings
        limit = min(max(rounds or settings.archive_default_rounds, 1), settings.archive_max_rounds)

        entries: list[ArchiveEntry] = []
        for case_id in await self._cases.list_recent_ids(sub_id, limit + _UNREVEALED_SLACK):
            case = await self._cases.get(case_id)
            if case is None:
                continue
            case = await self._lifecycle.refresh(case)
            if case.status is not CaseStatus.REVEALED:
                continue

            aggregate = await self._tracker.get_aggregate(case_id)
            if aggregate is None:
                continue
            majority = compute_majority(aggregate.counts, aggregate.voters)
            score = await self._scores.get(case_id, user_id) if user_id else None
            entries.append(
                ArchiveEntry(case=case, aggregate=aggregate, majority=majority, score=score)
            )
            if len(entries) >= limit:
                break
        return entries

    async def weekly_leaderboard(self, sub_id: str, user_id: str | None) -> tuple[str, Leaderboard]:
        """The current ISO week's board and its week key."""
        week = week_key(date_key(self._clock.now_ms(), self._settings.timezone))
        board = await self._leaderboards.for_week(
            sub_id, week, user_id, limit=self._settings.weekly_leaderboard_size
        )
        return week, board
