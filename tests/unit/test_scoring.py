"""Tests for the scoring engine.

Covers: majority tie-breaking, percentage rounding, zero-voter safety,
timing bonus boundaries, influence threshold, streak and minigame caps,
and additivity of the breakdown.
"""

from __future__ import annotations

import random

import pytest
from pydantic import ValidationError

from tests.conftest import (
    MINUTE_MS,
    T0,
    make_aggregate,
    make_case,
    make_snapshot,
    make_vote,
)
from verdict.db.repositories import AggregateRepo, SnapshotRepo, VoteRepo
from verdict.models.domain import ScoreBreakdown, Streak
from verdict.services.scoring.engine import (
    INFLUENCE_POINTS,
    ScoringEngine,
    ScoringInputs,
    compute_majority,
    minigame_bonus,
    round_half_up,
    score_breakdown,
    streak_bonus,
    timing_bonus,
)


def _inputs(**overrides: object) -> ScoringInputs:
    defaults: dict[str, object] = {
        "case": make_case(),
        "vote": make_vote(),
        "aggregate": make_aggregate(),
        "snapshot": None,
        "streak_current": 0,
        "minigame_score": 0,
    }
    defaults.update(overrides)
    return ScoringInputs(**defaults)  # type: ignore[arg-type]


class TestComputeMajority:
    def test_four_way_tie_goes_to_first_index(self):
        assert compute_majority((25, 25, 25, 25), 100).majority_index == 0

    def test_clear_winner(self):
        assert compute_majority((10, 20, 60, 10), 100).majority_index == 2

    def test_later_tie_does_not_overwrite_earlier_max(self):
        assert compute_majority((0, 5, 1, 5), 11).majority_index == 1

    def test_percentages_round_each_share(self):
        assert compute_majority((33, 33, 33, 1), 100).percentages == (33, 33, 33, 1)

    def test_percentages_round_half_up(self):
        assert compute_majority((1, 7, 0, 0), 8).percentages == (13, 88, 0, 0)

    def test_zero_voters_is_safe(self):
        majority = compute_majority((0, 0, 0, 0), 0)
        assert majority.majority_index == 0
        assert majority.percentages == (0, 0, 0, 0)


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (0.0, 0)],
    )
    def test_halves_round_up(self, value, expected):
        assert round_half_up(value) == expected


class TestTimingBonus:
    def test_vote_at_open_earns_full_bonus(self):
        assert timing_bonus(open_ts=T0, close_ts=T0 + 4 * MINUTE_MS, vote_ts=T0) == 20

    def test_vote_at_close_earns_nothing(self):
        close = T0 + 4 * MINUTE_MS
        assert timing_bonus(open_ts=T0, close_ts=close, vote_ts=close) == 0

    def test_vote_after_close_earns_nothing(self):
        close = T0 + 4 * MINUTE_MS
        assert timing_bonus(open_ts=T0, close_ts=close, vote_ts=close + MINUTE_MS) == 0

    def test_vote_halfway_earns_half(self):
        assert timing_bonus(open_ts=T0, close_ts=T0 + 4 * MINUTE_MS, vote_ts=T0 + 2 * MINUTE_MS) == 10

    def test_zero_length_window(self):
        assert timing_bonus(open_ts=T0, close_ts=T0, vote_ts=T0) == 0

    def test_no_timing_bonus_without_correct_prediction(self):
        vote = make_vote(prediction_index=3, vote_ts=T0)
        breakdown = score_breakdown(_inputs(vote=vote), influence_threshold_pct=3.0)
        assert breakdown.prediction_match == 0
        assert breakdown.timing_bonus == 0


class TestStreakAndMinigameBonus:
    @pytest.mark.parametrize(
        ("current", "expected"),
        [(0, 0), (1, 1), (9, 9), (10, 10), (11, 10), (12, 10), (40, 10)],
    )
    def test_streak_bonus_caps_at_ten(self, current, expected):
        assert streak_bonus(current) == expected

    @pytest.mark.parametrize(
        ("score", "expected"),
        [(0, 0), (49, 0), (50, 1), (499, 9), (500, 10), (9999, 10)],
    )
    def test_minigame_bonus(self, score, expected):
        assert minigame_bonus(score) == expected


class TestInfluenceBonus:
    def test_share_gain_at_threshold_is_rewarded(self):
        vote = make_vote(verdict_index=1, first_comment_ts=T0 + MINUTE_MS)
        snapshot = make_snapshot(counts=(50, 0, 0, 0), voters=50)
        aggregate = make_aggregate(counts=(97, 3, 0, 0), voters=100)
        breakdown = score_breakdown(
            _inputs(vote=vote, snapshot=snapshot, aggregate=aggregate),
            influence_threshold_pct=3.0,
        )
        assert breakdown.influence_bonus == INFLUENCE_POINTS

    def test_share_gain_below_threshold_is_not(self):
        vote = make_vote(verdict_index=1, first_comment_ts=T0 + MINUTE_MS)
        snapshot = make_snapshot(counts=(50, 0, 0, 0), voters=50)
        aggregate = make_aggregate(counts=(98, 2, 0, 0), voters=100)
        breakdown = score_breakdown(
            _inputs(vote=vote, snapshot=snapshot, aggregate=aggregate),
            influence_threshold_pct=3.0,
        )
        assert breakdown.influence_bonus == 0

    def test_no_comment_no_influence(self):
        snapshot = make_snapshot(counts=(0, 0, 0, 0), voters=0)
        breakdown = score_breakdown(_inputs(snapshot=snapshot), influence_threshold_pct=3.0)
        assert breakdown.influence_bonus == 0

    def test_comment_without_later_snapshot_earns_nothing(self):
        vote = make_vote(first_comment_ts=T0 + MINUTE_MS)
        breakdown = score_breakdown(_inputs(vote=vote, snapshot=None), influence_threshold_pct=3.0)
        assert breakdown.influence_bonus == 0


class TestScoreBreakdown:
    def test_end_to_end_example(self):
        case = make_case()
        aggregate = make_aggregate(counts=(1, 1, 0, 0), voters=2)
        alice = make_vote(user_id="alice", verdict_index=0, prediction_index=0, vote_ts=T0)
        bob = make_vote(
            user_id="bob", verdict_index=1, prediction_index=0, vote_ts=T0 + 3 * MINUTE_MS
        )

        a = score_breakdown(
            _inputs(case=case, vote=alice, aggregate=aggregate), influence_threshold_pct=3.0
        )
        b = score_breakdown(
            _inputs(case=case, vote=bob, aggregate=aggregate), influence_threshold_pct=3.0
        )

        assert (a.prediction_match, a.verdict_match, a.timing_bonus) == (60, 30, 20)
        assert a.total == 110
        assert (b.prediction_match, b.verdict_match, b.timing_bonus) == (60, 0, 5)
        assert b.total == 65

    def test_total_is_sum_of_components_for_random_inputs(self):
        rng = random.Random(20260304)
        for _ in range(200):
            counts = tuple(rng.randint(0, 20) for _ in range(4))
            voters = sum(counts)
            if voters == 0:
                continue
            vote = make_vote(
                verdict_index=rng.randint(0, 3),
                prediction_index=rng.randint(0, 3),
                vote_ts=T0 + rng.randint(0, 5 * MINUTE_MS),
                first_comment_ts=rng.choice([None, T0 + MINUTE_MS]),
            )
            snap_counts = tuple(rng.randint(0, c) for c in counts)
            inputs = _inputs(
                vote=vote,
                aggregate=make_aggregate(counts=counts, voters=voters),
                snapshot=make_snapshot(counts=snap_counts, voters=sum(snap_counts)),
                streak_current=rng.randint(0, 15),
                minigame_score=rng.randint(0, 9999),
            )
            breakdown = score_breakdown(inputs, influence_threshold_pct=3.0)
            assert breakdown.total == breakdown.component_sum()
            assert 0 <= breakdown.total <= 60 + 30 + 20 + 15 + 10 + 10

    def test_same_inputs_same_breakdown(self):
        inputs = _inputs(streak_current=4, minigame_score=260)
        assert score_breakdown(inputs, influence_threshold_pct=3.0) == score_breakdown(
            inputs, influence_threshold_pct=3.0
        )

    def test_inconsistent_total_is_rejected(self):
        with pytest.raises(ValidationError, match="component sum"):
            ScoreBreakdown(case_id="c", user_id="u", prediction_match=60, total=50)


class TestScoringEngine:
    async def test_no_vote_means_no_score(self, redis):
        engine = ScoringEngine(redis, influence_threshold_pct=3.0)
        assert await engine.compute_score(make_case(), "alice", streak=Streak()) is None

    async def test_no_aggregate_means_no_score(self, redis):
        await VoteRepo(redis).create(make_vote())
        engine = ScoringEngine(redis, influence_threshold_pct=3.0)
        assert await engine.compute_score(make_case(), "alice", streak=Streak()) is None

    async def test_reads_snapshot_after_first_comment(self, redis):
        case = make_case()
        await VoteRepo(redis).create(make_vote(user_id="bob", verdict_index=1))
        await VoteRepo(redis).mark_first_comment(case.case_id, "bob", T0 + MINUTE_MS)
        aggregates = AggregateRepo(redis)
        await aggregates.increment(case.case_id, 0, T0)
        await aggregates.increment(case.case_id, 1, T0)
        snapshots = SnapshotRepo(redis)
        await snapshots.save(make_snapshot(ts=T0 + 30_000, counts=(1, 1, 0, 0), voters=2))
        await snapshots.save(make_snapshot(ts=T0 + 2 * MINUTE_MS, counts=(1, 0, 0, 0), voters=1))

        engine = ScoringEngine(redis, influence_threshold_pct=3.0)
        breakdown = await engine.compute_score(case, "bob", streak=Streak(current=3))

        assert breakdown is not None
        assert breakdown.influence_bonus == INFLUENCE_POINTS
        assert breakdown.streak_bonus == 3
