"""API request schemas.

Every inbound request body is validated through one of these models.
No raw dicts ever reach the service layer. Content rules for submitted
text (length, prohibited patterns) live in the submission validators so
their messages reach the author verbatim.
"""

from pydantic import BaseModel, ConfigDict, Field

from verdict.models.domain import VERDICT_OPTIONS

# ---------------------------------------------------------------------------
# Game
# ---------------------------------------------------------------------------


class VoteRequest(BaseModel):
    """Cast a verdict and a majority prediction on an open case."""

    model_config = ConfigDict(frozen=True)

    case_id: str = Field(..., min_length=1)
    verdict_index: int = Field(..., ge=0, le=VERDICT_OPTIONS - 1)
    prediction_index: int = Field(
        ...,
        ge=0,
        le=VERDICT_OPTIONS - 1,
        description="The option the caller expects the majority to pick",
    )


class CaseRefRequest(BaseModel):
    """A request that only names a case."""

    model_config = ConfigDict(frozen=True)

    case_id: str = Field(..., min_length=1)


class MinigameScoreRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    case_id: str = Field(..., min_length=1)
    score: float = Field(..., ge=0, allow_inf_nan=False)


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------


class SubmitCaseRequest(BaseModel):
    """A community-written case for moderator review."""

    model_config = ConfigDict(frozen=True)

    text: str
    title: str | None = Field(default=None, max_length=120)
    labels_override: list[str] | None = Field(
        default=None,
        description="Exactly four custom verdict labels",
    )


class ApproveSubmissionRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    submission_id: str = Field(..., min_length=1)
    date_key: str = Field(..., description="Calendar date (YYYYMMDD) the case runs on")


class RejectSubmissionRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    submission_id: str = Field(..., min_length=1)
    reason: str = Field(default="", max_length=500)
