"""Scoring engine.

A user's points for a revealed case are the sum of six independent
components:

    prediction match   60 if the predicted option is the majority
    verdict match      30 if the user's own verdict is the majority
    timing bonus       0..20, earlier correct predictions earn more
    influence bonus    15 if the user's verdict gained >= threshold
                       percentage points after their first comment
    streak bonus       0..10, the streak entering this reveal
    minigame bonus     0..10, one point per 50 minigame points

The arithmetic is pure (score_breakdown); ScoringEngine only gathers
the inputs from storage. All rounding is half-up.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from verdict.db.repositories import AggregateRepo, MinigameRepo, SnapshotRepo, VoteRepo
from verdict.models.domain import (
    VERDICT_OPTIONS,
    Aggregate,
    Case,
    Counts,
    Majority,
    ScoreBreakdown,
    Snapshot,
    Streak,
    Vote,
)

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger: structlog.stdlib.BoundLogger = structlog.get_logger()

PREDICTION_POINTS = 60
VERDICT_POINTS = 30
TIMING_MAX_POINTS = 20
INFLUENCE_POINTS = 15
STREAK_CAP = 10
MINIGAME_CAP = 10
MINIGAME_POINTS_PER_BONUS = 50


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def compute_majority(counts: Counts, voters: int) -> Majority:
    """Majority option and rounded percentages.

    The lowest index wins a tie. With zero voters every percentage is 0
    and the majority is option 0.
    """
    majority_index = 0
    max_count = 0
    for index, count in enumerate(counts):
        if count > max_count:
            max_count = count
            majority_index = index

    if voters > 0:
        percentages = tuple(round_half_up(c / voters * 100) for c in counts)
    else:
        percentages = (0,) * VERDICT_OPTIONS
    return Majority(majority_index=majority_index, percentages=percentages)  # type: ignore[arg-type]


def share_pct(counts: Counts, voters: int, index: int) -> float:
    """Share of ``index`` in percent of ``voters``; 0 with nobody voting."""
    if voters <= 0:
        return 0.0
    return counts[index] / voters * 100


def timing_bonus(*, open_ts: int, close_ts: int, vote_ts: int) -> int:
    """20 for a vote at open, 0 at or after close, linear in between."""
    open_duration = close_ts - open_ts
    if open_duration <= 0:
        return 0
    elapsed = min(max((vote_ts - open_ts) / open_duration, 0.0), 1.0)
    return round_half_up((1 - elapsed) * TIMING_MAX_POINTS)


def streak_bonus(current: int) -> int:
    return min(current, STREAK_CAP)


def minigame_bonus(best_score: int) -> int:
    return min(best_score // MINIGAME_POINTS_PER_BONUS, MINIGAME_CAP)


@dataclass(frozen=True)
class ScoringInputs:
    """Everything the score of one user on one case depends on."""

    case: Case
    vote: Vote
    aggregate: Aggregate
    snapshot: Snapshot | None
    streak_current: int
    minigame_score: int


def score_breakdown(inputs: ScoringInputs, *, influence_threshold_pct: float) -> ScoreBreakdown:
    """Pure score computation. Same inputs, same breakdown."""
    vote = inputs.vote
    aggregate = inputs.aggregate
    majority = compute_majority(aggregate.counts, aggregate.voters)

    prediction = PREDICTION_POINTS if vote.prediction_index == majority.majority_index else 0
    verdict = VERDICT_POINTS if vote.verdict_index == majority.majority_index else 0

    timing = 0
    if prediction > 0:
        timing = timing_bonus(
            open_ts=inputs.case.open_ts,
            close_ts=inputs.case.close_ts,
            vote_ts=vote.vote_ts,
        )

    influence = 0
    if vote.first_comment_ts is not None and inputs.snapshot is not None:
        before = share_pct(inputs.snapshot.counts, inputs.snapshot.voters, vote.verdict_index)
        after = share_pct(aggregate.counts, aggregate.voters, vote.verdict_index)
        if after - before >= influence_threshold_pct:
            influence = INFLUENCE_POINTS

    streak = streak_bonus(inputs.streak_current)
    minigame = minigame_bonus(inputs.minigame_score)

    return ScoreBreakdown(
        case_id=inputs.case.case_id,
        user_id=vote.user_id,
        prediction_match=prediction,
        verdict_match=verdict,
        timing_bonus=timing,
        influence_bonus=influence,
        streak_bonus=streak,
        mini_game_bonus=minigame,
        total=prediction + verdict + timing + influence + streak + minigame,
    )


class ScoringEngine:
    """Gathers scoring inputs from storage and runs score_breakdown()."""

    def __init__(self, redis: Redis, *, influence_threshold_pct: float) -> None:
        self._votes = VoteRepo(redis)
        self._aggregates = AggregateRepo(redis)
        self._snapshots = SnapshotRepo(redis)
        self._minigames = MinigameRepo(redis)
        self._threshold = influence_threshold_pct

    async def compute_score(
        self, case: Case, user_id: str, *, streak: Streak
    ) -> ScoreBreakdown | None:
        """Score ``user_id`` on ``case``; None when there is nothing to score yet.

        ``streak`` is the user's streak as it stood before this case's
        play is counted.
        """
        vote = await self._votes.get(case.case_id, user_id)
        if vote is None:
            return None

        aggregate = await self._aggregates.get(case.case_id)
        if aggregate is None or aggregate.voters == 0:
            return None

        snapshot = None
        if vote.first_comment_ts is not None:
            snapshot = await self._snapshots.first_at_or_after(case.case_id, vote.first_comment_ts)

        inputs = ScoringInputs(
            case=case,
            vote=vote,
            aggregate=aggregate,
            snapshot=snapshot,
            streak_current=streak.current,
            minigame_score=await self._minigames.get_best(case.case_id, user_id),
        )
        breakdown = score_breakdown(inputs, influence_threshold_pct=self._threshold)
        logger.debug("score_computed", case_id=case.case_id, user_id=user_id, total=breakdown.total)
        return breakdown
