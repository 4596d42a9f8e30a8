"""Internal scheduler endpoints, called by an external cron.

POST /internal/scheduler/cycle-post  - current case plus its post
POST /internal/scheduler/snapshots   - snapshot every open case
POST /internal/scheduler/close       - close due cases
POST /internal/scheduler/reveal      - reveal due cases
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from verdict.api.dependencies import (
    get_scheduler_jobs,
    get_settings_from_app,
    require_community,
    require_internal,
)
from verdict.core.config import Settings  # noqa: TC001
from verdict.models.responses import SchedulerJobResponse
from verdict.services.scheduler.jobs import SchedulerJobs  # noqa: TC001

router = APIRouter(
    prefix="/internal/scheduler",
    tags=["scheduler"],
    dependencies=[Depends(require_internal)],
)


@router.post("/cycle-post", response_model=SchedulerJobResponse)
async def cycle_post(
    sub_id: str = Depends(require_community),
    jobs: SchedulerJobs = Depends(get_scheduler_jobs),
) -> SchedulerJobResponse:
    case = await jobs.cycle_post(sub_id)
    return SchedulerJobResponse(
        job="cycle-post",
        count=1,
        message=f"Case {case.case_id} is live",
        case_id=case.case_id,
        post_id=case.post_id,
    )


@router.post("/snapshots", response_model=SchedulerJobResponse)
async def snapshots(jobs: SchedulerJobs = Depends(get_scheduler_jobs)) -> SchedulerJobResponse:
    taken = await jobs.snapshot_open_cases()
    return SchedulerJobResponse(job="snapshots", count=taken, message=f"Took {taken} snapshots")


@router.post("/close", response_model=SchedulerJobResponse)
async def close(jobs: SchedulerJobs = Depends(get_scheduler_jobs)) -> SchedulerJobResponse:
    closed = await jobs.close_due_cases()
    return SchedulerJobResponse(job="close", count=closed, message=f"Closed {closed} cases")


@router.post("/reveal", response_model=SchedulerJobResponse)
async def reveal(
    jobs: SchedulerJobs = Depends(get_scheduler_jobs),
    settings: Settings = Depends(get_settings_from_app),
) -> SchedulerJobResponse:
    revealed = await jobs.reveal_due_cases(settings.reveal_scan_limit)
    return SchedulerJobResponse(
        job="reveal", count=revealed, message=f"Revealed {revealed} cases"
    )
