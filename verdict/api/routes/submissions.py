"""Case submission and moderation endpoints.

POST /submit-case      - submit a case for review (3 per day per user)
GET  /mod/pending      - pending submissions, oldest first
POST /mod/approve      - approve a submission for a calendar date
POST /mod/reject       - reject a submission
POST /mod/delete-case  - replace an open case with its date's seed case
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from verdict.api.dependencies import (
    Caller,
    get_caller,
    get_lifecycle,
    get_submissions,
    require_community,
    require_moderator,
    require_user,
)
from verdict.core.exceptions import NotFoundError
from verdict.models.requests import (  # noqa: TC001
    ApproveSubmissionRequest,
    CaseRefRequest,
    RejectSubmissionRequest,
    SubmitCaseRequest,
)
from verdict.models.responses import (
    DeleteCaseResponse,
    PendingSubmissionsResponse,
    SubmissionResponse,
)
from verdict.services.cases.lifecycle import CaseLifecycle  # noqa: TC001
from verdict.services.submissions.workflow import SubmissionService  # noqa: TC001

router = APIRouter(tags=["submissions"])


@router.post(
    "/submit-case",
    response_model=SubmissionResponse,
    status_code=201,
    summary="Submit a case",
)
async def submit_case(
    request: SubmitCaseRequest,
    user_id: str = Depends(require_user),
    sub_id: str = Depends(require_community),
    caller: Caller = Depends(get_caller),
    submissions: SubmissionService = Depends(get_submissions),
) -> SubmissionResponse:
    submission = await submissions.submit(
        sub_id=sub_id,
        user_id=user_id,
        username=caller.username or user_id,
        text=request.text,
        title=request.title,
        labels_override=request.labels_override,
    )
    return SubmissionResponse(submission=submission)


@router.get("/mod/pending", response_model=PendingSubmissionsResponse, summary="Pending queue")
async def pending_submissions(
    _moderator: str = Depends(require_moderator),
    sub_id: str = Depends(require_community),
    submissions: SubmissionService = Depends(get_submissions),
) -> PendingSubmissionsResponse:
    return PendingSubmissionsResponse(submissions=await submissions.list_pending(sub_id))


@router.post("/mod/approve", response_model=SubmissionResponse, summary="Approve a submission")
async def approve_submission(
    request: ApproveSubmissionRequest,
    moderator: str = Depends(require_moderator),
    sub_id: str = Depends(require_community),
    submissions: SubmissionService = Depends(get_submissions),
) -> SubmissionResponse:
    await _ensure_community(submissions, request.submission_id, sub_id)
    submission = await submissions.approve(
        request.submission_id, assigned_date=request.date_key, reviewer=moderator
    )
    return SubmissionResponse(submission=submission)


@router.post("/mod/reject", response_model=SubmissionResponse, summary="Reject a submission")
async def reject_submission(
    request: RejectSubmissionRequest,
    moderator: str = Depends(require_moderator),
    sub_id: str = Depends(require_community),
    submissions: SubmissionService = Depends(get_submissions),
) -> SubmissionResponse:
    await _ensure_community(submissions, request.submission_id, sub_id)
    submission = await submissions.reject(
        request.submission_id, reason=request.reason, reviewer=moderator
    )
    return SubmissionResponse(submission=submission)


@router.post("/mod/delete-case", response_model=DeleteCaseResponse, summary="Replace a case")
async def delete_case(
    request: CaseRefRequest,
    _moderator: str = Depends(require_moderator),
    sub_id: str = Depends(require_community),
    lifecycle: CaseLifecycle = Depends(get_lifecycle),
) -> DeleteCaseResponse:
    case = await lifecycle.get(request.case_id)
    if case.sub_id != sub_id:
        msg = f"Case {request.case_id} not found"
        raise NotFoundError(msg, details={"case_id": request.case_id})
    return DeleteCaseResponse(case=await lifecycle.replace_with_seed(request.case_id))


async def _ensure_community(
    submissions: SubmissionService, submission_id: str, sub_id: str
) -> None:
    """Moderators only review their own community's queue."""
    submission = await submissions.get(submission_id)
    if submission is None or submission.sub_id != sub_id:
        msg = f"Submission {submission_id} not found"
        raise NotFoundError(msg, details={"submission_id": submission_id})
