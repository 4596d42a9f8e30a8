"""FastAPI dependency injection providers.

Every external resource the API layer needs is accessed through a
Depends() callable defined here. Shared clients (Redis, platform, clock)
are resolved from app.state, which the lifespan populates at startup;
services are cheap wrappers built per request around them.
"""

from dataclasses import dataclass
from functools import lru_cache

import structlog
from fastapi import Depends, Header, Request
from redis.asyncio import Redis

from verdict.core.clock import Clock
from verdict.core.config import Settings
from verdict.core.exceptions import (
    AuthenticationRequiredError,
    InvalidInputError,
    ModeratorRequiredError,
)
from verdict.services.cases.lifecycle import CaseLifecycle
from verdict.services.platform.client import PlatformClient
from verdict.services.results.settlement import ResultsService
from verdict.services.scheduler.jobs import SchedulerJobs
from verdict.services.scoring.leaderboard import LeaderboardService, UsernameResolver
from verdict.services.submissions.workflow import SubmissionService
from verdict.services.voting.tracker import VoteTracker


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached application settings singleton."""
    return Settings()


def get_settings_from_app(request: Request) -> Settings:
    """Retrieve settings stored on the running app instance.

    Preferred over the cached version inside route handlers since
    it respects the settings the app was actually started with
    (important for tests that override config).
    """
    settings: Settings = request.app.state.settings
    return settings


def get_redis(request: Request) -> Redis:
    """Retrieve the shared Redis client from app state."""
    redis: Redis = request.app.state.redis
    return redis


def get_clock(request: Request) -> Clock:
    clock: Clock = request.app.state.clock
    return clock


def get_platform_client(request: Request) -> PlatformClient:
    """Retrieve the shared hosting-platform client from app state."""
    client: PlatformClient = request.app.state.platform_client
    return client


# ---------------------------------------------------------------------------
# Caller identity
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Caller:
    """Identity forwarded by the platform gateway. Anonymous without a user id."""

    user_id: str | None
    username: str | None
    sub_id: str | None


async def get_caller(
    x_user_id: str | None = Header(default=None),
    x_username: str | None = Header(default=None),
    x_community_id: str | None = Header(default=None),
    redis: Redis = Depends(get_redis),
) -> Caller:
    """Read the caller from gateway headers and refresh the name cache."""
    user_id = x_user_id or None
    username = x_username or None
    if user_id and username:
        await UsernameResolver(redis).remember(user_id, username)
    if user_id:
        structlog.contextvars.bind_contextvars(user_id=user_id)
    return Caller(user_id=user_id, username=username, sub_id=x_community_id or None)


def require_user(caller: Caller = Depends(get_caller)) -> str:
    """User id of a logged-in caller."""
    if caller.user_id is None:
        raise AuthenticationRequiredError("You must be logged in")
    return caller.user_id


def require_community(caller: Caller = Depends(get_caller)) -> str:
    if caller.sub_id is None:
        raise InvalidInputError("Missing community context")
    return caller.sub_id


async def require_moderator(
    user_id: str = Depends(require_user),
    sub_id: str = Depends(require_community),
    platform: PlatformClient = Depends(get_platform_client),
) -> str:
    """User id of a caller holding moderator permission in their community."""
    if not await platform.is_moderator(user_id, sub_id):
        raise ModeratorRequiredError("Moderator permission required")
    return user_id


def require_internal(
    x_internal_token: str | None = Header(default=None),
    settings: Settings = Depends(get_settings_from_app),
) -> None:
    """Gate scheduler endpoints when an internal token is configured."""
    if settings.internal_api_token and x_internal_token != settings.internal_api_token:
        raise AuthenticationRequiredError("Internal token required")


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def get_lifecycle(
    redis: Redis = Depends(get_redis),
    settings: Settings = Depends(get_settings_from_app),
    clock: Clock = Depends(get_clock),
) -> CaseLifecycle:
    return CaseLifecycle(redis, settings=settings, clock=clock)


def get_vote_tracker(
    redis: Redis = Depends(get_redis),
    clock: Clock = Depends(get_clock),
) -> VoteTracker:
    return VoteTracker(redis, clock=clock)


def get_leaderboards(
    redis: Redis = Depends(get_redis),
    platform: PlatformClient = Depends(get_platform_client),
) -> LeaderboardService:
    return LeaderboardService(redis, usernames=UsernameResolver(redis, platform))


def get_results(
    redis: Redis = Depends(get_redis),
    settings: Settings = Depends(get_settings_from_app),
    clock: Clock = Depends(get_clock),
    lifecycle: CaseLifecycle = Depends(get_lifecycle),
    leaderboards: LeaderboardService = Depends(get_leaderboards),
) -> ResultsService:
    return ResultsService(
        redis,
        settings=settings,
        clock=clock,
        lifecycle=lifecycle,
        leaderboards=leaderboards,
    )


def get_submissions(
    redis: Redis = Depends(get_redis),
    settings: Settings = Depends(get_settings_from_app),
    clock: Clock = Depends(get_clock),
) -> SubmissionService:
    return SubmissionService(redis, settings=settings, clock=clock)


def get_scheduler_jobs(
    redis: Redis = Depends(get_redis),
    clock: Clock = Depends(get_clock),
    lifecycle: CaseLifecycle = Depends(get_lifecycle),
    platform: PlatformClient = Depends(get_platform_client),
) -> SchedulerJobs:
    return SchedulerJobs(redis, clock=clock, lifecycle=lifecycle, platform=platform)
