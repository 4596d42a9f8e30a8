"""Shared test fixtures and factory functions.

Factories return valid domain objects with sensible defaults. Override
any field via keyword arguments to create specific test scenarios
without repeating boilerplate. Storage is an in-process fakeredis
server, fresh per test; time comes from a hand-driven clock.
"""

from collections.abc import AsyncIterator
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest
from fakeredis import FakeAsyncRedis, FakeServer
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from verdict.api.app import create_app
from verdict.api.dependencies import get_clock, get_platform_client, get_redis
from verdict.core.config import Settings
from verdict.models.domain import (
    DEFAULT_LABELS,
    Aggregate,
    Case,
    CaseSubmission,
    Snapshot,
    Vote,
)
from verdict.services.platform.client import PlatformClient

SUB_ID = "testsub"
MINUTE_MS = 60_000

# Wednesday 2026-03-04 10:00:00 UTC, the start of a 5-minute cycle.
T0 = int(datetime(2026, 3, 4, 10, 0, tzinfo=UTC).timestamp() * 1000)
T0_DATE_KEY = "20260304"
T0_CYCLE_KEY = "20260304-1000"
T0_CASE_ID = f"{SUB_ID}:{T0_CYCLE_KEY}"


class FakeClock:
    """Clock that only moves when a test says so."""

    def __init__(self, start_ms: int = T0) -> None:
        self.now = start_ms

    def now_ms(self) -> int:
        return self.now

    def advance(self, *, minutes: float = 0, ms: int = 0) -> None:
        self.now += int(minutes * MINUTE_MS) + ms


# ---------------------------------------------------------------------------
# Settings / storage / clock / platform
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing: console logs, debug enabled."""
    return Settings(
        debug=True,
        redis_url="redis://localhost:6379/15",
        platform_api_url="http://platform.test",
        log_format="console",
        log_level="DEBUG",
    )


@pytest.fixture
async def redis() -> AsyncIterator[FakeAsyncRedis]:
    """A private in-process Redis server per test."""
    client = FakeAsyncRedis(server=FakeServer(), decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def platform() -> AsyncMock:
    """Platform client double: nobody is a moderator, names are unknown."""
    mock = AsyncMock(spec=PlatformClient)
    mock.is_moderator.return_value = False
    mock.get_username.return_value = None
    mock.create_post.return_value = "post-1"
    mock.ping.return_value = None
    return mock


# ---------------------------------------------------------------------------
# App / client
# ---------------------------------------------------------------------------


@pytest.fixture
def app(
    test_settings: Settings,
    redis: FakeAsyncRedis,
    clock: FakeClock,
    platform: AsyncMock,
) -> FastAPI:
    """FastAPI application wired with test settings and fake collaborators."""
    application = create_app(test_settings)
    application.dependency_overrides[get_redis] = lambda: redis
    application.dependency_overrides[get_clock] = lambda: clock
    application.dependency_overrides[get_platform_client] = lambda: platform
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Async HTTP client bound to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


def player_headers(
    user_id: str, username: str | None = None, sub_id: str = SUB_ID
) -> dict[str, str]:
    """Gateway identity headers for a logged-in player."""
    return {
        "X-User-Id": user_id,
        "X-Username": username or f"{user_id}-name",
        "X-Community-Id": sub_id,
    }


# ---------------------------------------------------------------------------
# Domain model factories
# ---------------------------------------------------------------------------


def make_case(**overrides: object) -> Case:
    """Build a valid open Case with a 4-minute window and 1-minute reveal delay."""
    defaults: dict[str, object] = {
        "case_id": T0_CASE_ID,
        "sub_id": SUB_ID,
        "date_key": T0_DATE_KEY,
        "cycle_key": T0_CYCLE_KEY,
        "title": "The Loud Neighbor",
        "text": "Your neighbor plays loud music every night until 2am.",
        "labels": DEFAULT_LABELS,
        "open_ts": T0,
        "close_ts": T0 + 4 * MINUTE_MS,
        "reveal_ts": T0 + 5 * MINUTE_MS,
    }
    defaults.update(overrides)
    return Case(**defaults)  # type: ignore[arg-type]


def make_vote(**overrides: object) -> Vote:
    defaults: dict[str, object] = {
        "case_id": T0_CASE_ID,
        "user_id": "alice",
        "verdict_index": 0,
        "prediction_index": 0,
        "vote_ts": T0,
    }
    defaults.update(overrides)
    return Vote(**defaults)  # type: ignore[arg-type]


def make_aggregate(**overrides: object) -> Aggregate:
    defaults: dict[str, object] = {
        "case_id": T0_CASE_ID,
        "counts": (1, 1, 0, 0),
        "voters": 2,
        "last_updated_ts": T0 + 3 * MINUTE_MS,
    }
    defaults.update(overrides)
    return Aggregate(**defaults)  # type: ignore[arg-type]


def make_snapshot(**overrides: object) -> Snapshot:
    defaults: dict[str, object] = {
        "case_id": T0_CASE_ID,
        "ts": T0 + MINUTE_MS,
        "counts": (1, 0, 0, 0),
        "voters": 1,
    }
    defaults.update(overrides)
    return Snapshot(**defaults)  # type: ignore[arg-type]


def make_submission(**overrides: object) -> CaseSubmission:
    defaults: dict[str, object] = {
        "submission_id": "sub-1",
        "sub_id": SUB_ID,
        "user_id": "carol",
        "username": "carol-name",
        "text": "My roommate keeps eating my labeled leftovers and denies it every time.",
        "title": "The Leftovers",
        "submitted_at": T0,
    }
    defaults.update(overrides)
    return CaseSubmission(**defaults)  # type: ignore[arg-type]
