"""FastAPI application factory and lifespan management.

create_app() builds the fully configured application: logging,
middleware, exception handlers, and routes. The lifespan context
manager opens the shared Redis and platform clients, optionally starts
the in-process scheduler, and tears all of it down on shutdown.
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from verdict.api.dependencies import get_settings
from verdict.api.middleware import RequestTracingMiddleware, register_exception_handlers
from verdict.api.routes import api_router
from verdict.core.clock import SystemClock
from verdict.core.config import APP_VERSION, Settings
from verdict.core.logging import setup_logging
from verdict.db.redis import create_redis
from verdict.services.cases.lifecycle import CaseLifecycle
from verdict.services.platform.client import PlatformClient
from verdict.services.scheduler.jobs import SchedulerJobs, run_scheduler

logger: structlog.stdlib.BoundLogger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown."""
    settings: Settings = app.state.settings
    logger.info("application_starting", version=APP_VERSION, debug=settings.debug)

    redis = create_redis(settings)
    clock = SystemClock()
    platform = PlatformClient(settings)
    app.state.redis = redis
    app.state.clock = clock
    app.state.platform_client = platform

    stop = asyncio.Event()
    scheduler_task: asyncio.Task[None] | None = None
    if settings.scheduler_enabled:
        jobs = SchedulerJobs(
            redis,
            clock=clock,
            lifecycle=CaseLifecycle(redis, settings=settings, clock=clock),
            platform=platform,
        )
        scheduler_task = asyncio.create_task(run_scheduler(jobs, settings, stop))

    yield

    logger.info("application_shutting_down")
    if scheduler_task is not None:
        stop.set()
        with contextlib.suppress(asyncio.CancelledError):
            await scheduler_task
    await platform.close()
    await redis.aclose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build and return a fully configured FastAPI application."""
    if settings is None:
        settings = get_settings()

    setup_logging(settings)

    app = FastAPI(
        title="Daily Verdict",
        description="Recurring case voting game: votes, reveals, scores and leaderboards",
        version=APP_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.settings = settings

    app.add_middleware(RequestTracingMiddleware)

    register_exception_handlers(app)

    app.include_router(api_router, prefix=settings.api_prefix)

    return app
