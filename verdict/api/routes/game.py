"""Player-facing game endpoints.

GET  /init                - caller identity and moderator flag
GET  /today               - the current case as the caller sees it
POST /vote                - cast a verdict and a majority prediction
POST /comment-mark        - stamp the caller's first comment on a case
GET  /reveal              - results, score, streak and case leaderboard
GET  /archive             - recent revealed cases
GET  /case/{case_id}      - one case, status brought up to date
POST /minigame-score      - record a capped best minigame score
GET  /leaderboard/weekly  - current ISO week board
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query

from verdict.api.dependencies import (
    Caller,
    get_caller,
    get_lifecycle,
    get_platform_client,
    get_results,
    get_settings_from_app,
    get_vote_tracker,
    require_community,
    require_user,
)
from verdict.core.config import Settings  # noqa: TC001
from verdict.core.exceptions import PlatformError, RateLimitError
from verdict.models.domain import Case, RevealResult, TodayState
from verdict.models.requests import (  # noqa: TC001
    CaseRefRequest,
    MinigameScoreRequest,
    VoteRequest,
)
from verdict.models.responses import (
    ArchiveResponse,
    CommentMarkResponse,
    InitResponse,
    MinigameScoreResponse,
    VoteResponse,
    WeeklyLeaderboardResponse,
)
from verdict.services.cases.lifecycle import CaseLifecycle  # noqa: TC001
from verdict.services.platform.client import PlatformClient  # noqa: TC001
from verdict.services.results.settlement import ResultsService  # noqa: TC001
from verdict.services.voting.tracker import VoteTracker  # noqa: TC001

logger: structlog.stdlib.BoundLogger = structlog.get_logger()

router = APIRouter(tags=["game"])


@router.get("/init", response_model=InitResponse, summary="Caller identity")
async def init(
    caller: Caller = Depends(get_caller),
    platform: PlatformClient = Depends(get_platform_client),
) -> InitResponse:
    """Identify the caller. A failed moderator lookup reads as not a moderator."""
    is_moderator = False
    if caller.user_id and caller.sub_id:
        try:
            is_moderator = await platform.is_moderator(caller.user_id, caller.sub_id)
        except (PlatformError, RateLimitError) as exc:
            logger.warning("moderator_lookup_failed", user_id=caller.user_id, error=exc.message)
    return InitResponse(
        user_id=caller.user_id,
        username=caller.username,
        sub_id=caller.sub_id,
        is_moderator=is_moderator,
    )


@router.get("/today", response_model=TodayState, summary="Current case state")
async def today(
    caller: Caller = Depends(get_caller),
    sub_id: str = Depends(require_community),
    results: ResultsService = Depends(get_results),
) -> TodayState:
    """Current case, the caller's vote, and results once revealed."""
    return await results.today_state(sub_id, caller.user_id)


@router.post("/vote", response_model=VoteResponse, summary="Cast a vote")
async def vote(
    request: VoteRequest,
    user_id: str = Depends(require_user),
    lifecycle: CaseLifecycle = Depends(get_lifecycle),
    tracker: VoteTracker = Depends(get_vote_tracker),
) -> VoteResponse:
    case = await lifecycle.get(request.case_id)
    saved, aggregate = await tracker.cast_vote(
        case,
        user_id=user_id,
        verdict_index=request.verdict_index,
        prediction_index=request.prediction_index,
    )
    return VoteResponse(vote=saved, aggregate=aggregate)


@router.post("/comment-mark", response_model=CommentMarkResponse, summary="Mark first comment")
async def comment_mark(
    request: CaseRefRequest,
    user_id: str = Depends(require_user),
    lifecycle: CaseLifecycle = Depends(get_lifecycle),
    tracker: VoteTracker = Depends(get_vote_tracker),
) -> CommentMarkResponse:
    await lifecycle.get(request.case_id)
    marked = await tracker.mark_first_comment(request.case_id, user_id)
    return CommentMarkResponse(case_id=request.case_id, marked=marked)


@router.get("/reveal", response_model=RevealResult, summary="Reveal results")
async def reveal(
    case_id: str = Query(..., min_length=1),
    user_id: str = Depends(require_user),
    results: ResultsService = Depends(get_results),
) -> RevealResult:
    return await results.reveal(case_id, user_id)


@router.get("/archive", response_model=ArchiveResponse, summary="Recent revealed cases")
async def archive(
    rounds: int | None = Query(default=None, ge=1),
    caller: Caller = Depends(get_caller),
    sub_id: str = Depends(require_community),
    results: ResultsService = Depends(get_results),
) -> ArchiveResponse:
    entries = await results.archive(sub_id, caller.user_id, rounds)
    return ArchiveResponse(cases=entries)


@router.get("/case/{case_id}", response_model=Case, summary="Get one case")
async def get_case(
    case_id: str,
    lifecycle: CaseLifecycle = Depends(get_lifecycle),
) -> Case:
    return await lifecycle.get(case_id)


@router.post(
    "/minigame-score",
    response_model=MinigameScoreResponse,
    summary="Record a minigame score",
)
async def minigame_score(
    request: MinigameScoreRequest,
    user_id: str = Depends(require_user),
    lifecycle: CaseLifecycle = Depends(get_lifecycle),
    tracker: VoteTracker = Depends(get_vote_tracker),
    settings: Settings = Depends(get_settings_from_app),
) -> MinigameScoreResponse:
    """Keep the best score the caller ever posted for the case."""
    await lifecycle.get(request.case_id)
    best = await tracker.record_minigame_score(
        request.case_id,
        user_id,
        request.score,
        cap=settings.minigame_score_cap,
    )
    return MinigameScoreResponse(case_id=request.case_id, best_score=best)


@router.get(
    "/leaderboard/weekly",
    response_model=WeeklyLeaderboardResponse,
    summary="Weekly leaderboard",
)
async def weekly_leaderboard(
    caller: Caller = Depends(get_caller),
    sub_id: str = Depends(require_community),
    results: ResultsService = Depends(get_results),
) -> WeeklyLeaderboardResponse:
    week, board = await results.weekly_leaderboard(sub_id, caller.user_id)
    return WeeklyLeaderboardResponse(week_key=week, leaderboard=board)
