"""Core domain models and enumerations.

These are the canonical data shapes of the game. Every service produces
or consumes these types, never raw dicts. Frozen models are used for
records that are immutable once written; changes to a Case go through
``model_copy(update=...)`` so a stale copy is never mutated in place.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

VERDICT_OPTIONS = 4

Labels = tuple[str, str, str, str]
Counts = tuple[int, int, int, int]

DEFAULT_LABELS: Labels = ("Right Call", "Wrong Call", "It Depends", "Everyone's Wrong")

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class CaseStatus(StrEnum):
    """Lifecycle of a case. Only ever moves forward."""

    OPEN = "open"
    CLOSED = "closed"
    REVEALED = "revealed"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK = {CaseStatus.OPEN: 0, CaseStatus.CLOSED: 1, CaseStatus.REVEALED: 2}


class CaseSource(StrEnum):
    """Where the case text came from."""

    SEED = "seed"
    USER = "user"


class SubmissionStatus(StrEnum):
    """Review state of a community submission. Both outcomes are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ---------------------------------------------------------------------------
# Game records
# ---------------------------------------------------------------------------


class Case(BaseModel):
    """One round of the game, bound to a cycle of one community."""

    model_config = ConfigDict(frozen=True)

    case_id: str
    sub_id: str
    date_key: str = Field(..., pattern=r"^\d{8}$")
    cycle_key: str
    title: str
    text: str
    labels: Labels
    open_ts: int
    close_ts: int
    reveal_ts: int
    status: CaseStatus = CaseStatus.OPEN
    source: CaseSource = CaseSource.SEED
    created_by: str = "app"
    post_id: str | None = None

    @model_validator(mode="after")
    def _check_timeline(self) -> Case:
        if not (self.open_ts <= self.close_ts <= self.reveal_ts):
            msg = "Case timestamps must satisfy open_ts <= close_ts <= reveal_ts"
            raise ValueError(msg)
        return self


class Vote(BaseModel):
    """A user's verdict and majority prediction on a case."""

    model_config = ConfigDict(frozen=True)

    case_id: str
    user_id: str
    verdict_index: int = Field(..., ge=0, le=VERDICT_OPTIONS - 1)
    prediction_index: int = Field(..., ge=0, le=VERDICT_OPTIONS - 1)
    vote_ts: int
    first_comment_ts: int | None = None


class Aggregate(BaseModel):
    """Running per-verdict vote counts of a case."""

    model_config = ConfigDict(frozen=True)

    case_id: str
    counts: Counts = (0, 0, 0, 0)
    voters: int = Field(default=0, ge=0)
    last_updated_ts: int = 0


class Snapshot(BaseModel):
    """Frozen copy of an aggregate at a point in time."""

    model_config = ConfigDict(frozen=True)

    case_id: str
    ts: int
    counts: Counts
    voters: int = Field(..., ge=0)


class ScoreBreakdown(BaseModel):
    """Per-user points for one case, one field per scoring component."""

    model_config = ConfigDict(frozen=True)

    case_id: str
    user_id: str
    prediction_match: int = Field(default=0, ge=0)
    verdict_match: int = Field(default=0, ge=0)
    timing_bonus: int = Field(default=0, ge=0)
    influence_bonus: int = Field(default=0, ge=0)
    streak_bonus: int = Field(default=0, ge=0)
    mini_game_bonus: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_total(self) -> ScoreBreakdown:
        if self.total != self.component_sum():
            msg = f"total {self.total} does not equal component sum {self.component_sum()}"
            raise ValueError(msg)
        return self

    def component_sum(self) -> int:
        return (
            self.prediction_match
            + self.verdict_match
            + self.timing_bonus
            + self.influence_bonus
            + self.streak_bonus
            + self.mini_game_bonus
        )

    @classmethod
    def zero(cls, case_id: str, user_id: str) -> ScoreBreakdown:
        return cls(case_id=case_id, user_id=user_id)


class Streak(BaseModel):
    """Consecutive calendar days a user has played in a community."""

    model_config = ConfigDict(frozen=True)

    current: int = Field(default=0, ge=0)
    best: int = Field(default=0, ge=0)
    last_played_date: str = ""


class CaseSubmission(BaseModel):
    """A community-written case waiting for, or past, moderator review."""

    model_config = ConfigDict(frozen=True)

    submission_id: str
    sub_id: str
    user_id: str
    username: str
    text: str
    title: str | None = None
    labels_override: Labels | None = None
    status: SubmissionStatus = SubmissionStatus.PENDING
    submitted_at: int
    reviewed_at: int | None = None
    reviewed_by: str | None = None
    reject_reason: str | None = None
    assigned_date: str | None = None


class SeedCase(BaseModel):
    """Bundled case text used when no approved submission exists."""

    model_config = ConfigDict(frozen=True)

    title: str
    text: str
    labels: Labels = DEFAULT_LABELS


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------


class Majority(BaseModel):
    """Majority option and rounded percentage breakdown of an aggregate."""

    model_config = ConfigDict(frozen=True)

    majority_index: int
    percentages: Counts


class LeaderboardEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    rank: int = Field(..., ge=1)
    user_id: str
    username: str
    score: int


class Leaderboard(BaseModel):
    """Top-N entries plus the caller's own position."""

    model_config = ConfigDict(frozen=True)

    top: list[LeaderboardEntry]
    me: LeaderboardEntry | None = None
    total_players: int = Field(default=0, ge=0)


class RevealResult(BaseModel):
    """Everything shown to a player once a case is revealed."""

    model_config = ConfigDict(frozen=True)

    case: Case
    aggregate: Aggregate
    majority_index: int
    majority_label: str
    percentages: Counts
    score: ScoreBreakdown | None = None
    streak: Streak | None = None
    leaderboard: Leaderboard


class TodayState(BaseModel):
    """The current case as one caller sees it right now."""

    model_config = ConfigDict(frozen=True)

    case: Case
    vote: Vote | None = None
    aggregate: Aggregate | None = None
    majority: Majority | None = None
    score: ScoreBreakdown | None = None
    streak: Streak | None = None
    leaderboard: Leaderboard | None = None


class ArchiveEntry(BaseModel):
    """A past revealed case with its outcome and the caller's score."""

    model_config = ConfigDict(frozen=True)

    case: Case
    aggregate: Aggregate | None = None
    majority: Majority | None = None
    score: ScoreBreakdown | None = None
