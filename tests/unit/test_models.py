"""Tests for domain models, enumerations, and request schemas.

Covers: status ordering, valid/invalid construction, frozen immutability,
score-total consistency, and request validation bounds.
"""

import pytest
from pydantic import ValidationError

from tests.conftest import MINUTE_MS, T0, make_case, make_vote
from verdict.models.domain import CaseStatus, ScoreBreakdown, Streak
from verdict.models.requests import MinigameScoreRequest, SubmitCaseRequest, VoteRequest

# ===================================================================
# Enumerations
# ===================================================================


class TestCaseStatus:
    def test_ranks_follow_lifecycle(self):
        ranks = [s.rank for s in (CaseStatus.OPEN, CaseStatus.CLOSED, CaseStatus.REVEALED)]
        assert ranks == [0, 1, 2]

    def test_values(self):
        assert {s.value for s in CaseStatus} == {"open", "closed", "revealed"}


# ===================================================================
# Case
# ===================================================================


class TestCase:
    def test_valid(self):
        case = make_case()
        assert case.status is CaseStatus.OPEN
        assert case.post_id is None

    def test_close_before_open_rejected(self):
        with pytest.raises(ValidationError, match="open_ts <= close_ts <= reveal_ts"):
            make_case(close_ts=T0 - 1)

    def test_reveal_before_close_rejected(self):
        with pytest.raises(ValidationError):
            make_case(reveal_ts=T0 + MINUTE_MS, close_ts=T0 + 2 * MINUTE_MS)

    def test_zero_length_window_allowed(self):
        case = make_case(close_ts=T0, reveal_ts=T0)
        assert case.open_ts == case.close_ts == case.reveal_ts

    def test_bad_date_key_rejected(self):
        with pytest.raises(ValidationError):
            make_case(date_key="2026-03-04")

    def test_label_count_enforced(self):
        with pytest.raises(ValidationError):
            make_case(labels=("Yes", "No"))

    def test_frozen(self):
        case = make_case()
        with pytest.raises(ValidationError):
            case.status = CaseStatus.CLOSED  # type: ignore[misc]

    def test_json_round_trip_keeps_status(self):
        case = make_case(status=CaseStatus.REVEALED, post_id="post-9")
        assert type(case).model_validate_json(case.model_dump_json()) == case


# ===================================================================
# Vote / ScoreBreakdown / Streak
# ===================================================================


class TestVote:
    @pytest.mark.parametrize("field", ["verdict_index", "prediction_index"])
    def test_index_out_of_range(self, field):
        with pytest.raises(ValidationError):
            make_vote(**{field: 4})

    def test_negative_index(self):
        with pytest.raises(ValidationError):
            make_vote(verdict_index=-1)


class TestScoreBreakdown:
    def test_total_must_match_components(self):
        with pytest.raises(ValidationError, match="does not equal component sum"):
            ScoreBreakdown(case_id="c", user_id="u", prediction_match=60, total=50)

    def test_consistent_total(self):
        score = ScoreBreakdown(
            case_id="c",
            user_id="u",
            prediction_match=60,
            verdict_match=30,
            timing_bonus=20,
            total=110,
        )
        assert score.component_sum() == 110

    def test_zero(self):
        zero = ScoreBreakdown.zero("c", "u")
        assert zero.total == 0
        assert zero.component_sum() == 0

    def test_negative_component_rejected(self):
        with pytest.raises(ValidationError):
            ScoreBreakdown(case_id="c", user_id="u", timing_bonus=-5, total=-5)


class TestStreak:
    def test_defaults(self):
        assert Streak() == Streak(current=0, best=0, last_played_date="")


# ===================================================================
# Requests
# ===================================================================


class TestRequests:
    def test_vote_request_bounds(self):
        with pytest.raises(ValidationError):
            VoteRequest(case_id="c", verdict_index=0, prediction_index=7)

    def test_vote_request_requires_case(self):
        with pytest.raises(ValidationError):
            VoteRequest(case_id="", verdict_index=0, prediction_index=0)

    def test_minigame_score_non_negative(self):
        with pytest.raises(ValidationError):
            MinigameScoreRequest(case_id="c", score=-0.5)

    def test_submit_title_length(self):
        with pytest.raises(ValidationError):
            SubmitCaseRequest(text="x" * 40, title="t" * 121)
