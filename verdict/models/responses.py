"""API response schemas.

Every outbound response is serialized through one of these models or a
domain model. Structured error responses are included; the API never
leaks raw stack traces.
"""

from pydantic import BaseModel, ConfigDict, Field

from verdict.models.domain import (
    Aggregate,
    ArchiveEntry,
    Case,
    CaseSubmission,
    Leaderboard,
    Vote,
)

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class DependencyHealth(BaseModel):
    """Health status of a single infrastructure dependency."""

    model_config = ConfigDict(frozen=True)

    name: str
    status: str = Field(..., description="'healthy' or 'unhealthy'")
    latency_ms: float | None = None
    details: str | None = None


class HealthResponse(BaseModel):
    """Aggregate health check response."""

    model_config = ConfigDict(frozen=True)

    status: str = Field(..., description="'healthy', 'degraded', or 'unhealthy'")
    version: str
    uptime_seconds: float
    dependencies: list[DependencyHealth]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Body of every error the API returns."""

    model_config = ConfigDict(frozen=True)

    error: str
    message: str
    details: dict[str, object] = Field(default_factory=dict)
    request_id: str | None = None


# ---------------------------------------------------------------------------
# Game
# ---------------------------------------------------------------------------


class InitResponse(BaseModel):
    """Who the caller is, as far as the game is concerned."""

    model_config = ConfigDict(frozen=True)

    user_id: str | None
    username: str | None
    sub_id: str | None
    is_moderator: bool


class VoteResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    vote: Vote
    aggregate: Aggregate


class CommentMarkResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    case_id: str
    marked: bool = Field(..., description="False when already marked or no vote exists")


class MinigameScoreResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    case_id: str
    best_score: int


class ArchiveResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    cases: list[ArchiveEntry]


class WeeklyLeaderboardResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    week_key: str
    leaderboard: Leaderboard


# ---------------------------------------------------------------------------
# Submissions / moderation
# ---------------------------------------------------------------------------


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    submission: CaseSubmission


class PendingSubmissionsResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    submissions: list[CaseSubmission]


class DeleteCaseResponse(BaseModel):
    """The case as it stands after the override."""

    model_config = ConfigDict(frozen=True)

    case: Case


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


class SchedulerJobResponse(BaseModel):
    """Outcome of one scheduler sweep."""

    model_config = ConfigDict(frozen=True)

    job: str
    count: int = Field(default=0, ge=0)
    message: str
    case_id: str | None = None
    post_id: str | None = None
