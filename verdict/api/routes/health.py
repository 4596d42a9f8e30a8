"""Health check and Prometheus metrics endpoints.

/health checks every infrastructure dependency (Redis, the hosting
platform API), measures per-dependency latency, and reports aggregate status.
Checks run concurrently to minimise total latency.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import APIRouter, Depends
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from redis.asyncio import Redis
from starlette.responses import Response

from verdict.api.dependencies import get_platform_client, get_redis
from verdict.core.config import APP_VERSION
from verdict.models.responses import DependencyHealth, HealthResponse
from verdict.services.platform.client import PlatformClient

router = APIRouter(tags=["observability"])
logger: structlog.stdlib.BoundLogger = structlog.get_logger()

_CHECK_TIMEOUT_SECONDS = 3.0
_start_time: float = time.time()


# ---------------------------------------------------------------------------
# Dependency checks
# ---------------------------------------------------------------------------


async def _check_dependency(name: str, check: Callable[[], Awaitable[object]]) -> DependencyHealth:
    """Run one check and time it. Any failure marks the dependency unhealthy."""
    start = time.perf_counter()
    try:
        await asyncio.wait_for(check(), timeout=_CHECK_TIMEOUT_SECONDS)
    except Exception as exc:
        latency = (time.perf_counter() - start) * 1000
        logger.warning("health_check_failed", dependency=name, error=str(exc)[:200])
        return DependencyHealth(
            name=name,
            status="unhealthy",
            latency_ms=round(latency, 2),
            details=str(exc)[:200],
        )
    latency = (time.perf_counter() - start) * 1000
    return DependencyHealth(name=name, status="healthy", latency_ms=round(latency, 2))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
async def health_check(
    redis: Redis = Depends(get_redis),
    platform: PlatformClient = Depends(get_platform_client),
) -> HealthResponse:
    """Check API and infrastructure dependency health.

    Redis is required; the platform only degrades the game (no posts,
    no moderator checks, anonymous leaderboard names).
    """
    redis_health, platform_health = await asyncio.gather(
        _check_dependency("redis", redis.ping),
        _check_dependency("platform", platform.ping),
    )

    if redis_health.status == "unhealthy":
        status = "unhealthy"
    elif platform_health.status == "unhealthy":
        status = "degraded"
    else:
        status = "healthy"

    return HealthResponse(
        status=status,
        version=APP_VERSION,
        uptime_seconds=round(time.time() - _start_time, 2),
        dependencies=[redis_health, platform_health],
    )


@router.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics for scraping."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
