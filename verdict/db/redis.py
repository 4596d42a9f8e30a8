"""Async Redis client factory.

The key-value store is the only shared mutable resource of the game.
One client (and its connection pool) is created per process at startup
and handed to repositories; responses are decoded to ``str``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import redis.asyncio as aioredis

if TYPE_CHECKING:
    from verdict.core.config import Settings


def create_redis(settings: Settings) -> aioredis.Redis:
    """Build a Redis client from application settings."""
    return aioredis.from_url(
        settings.redis_url,
        decode_responses=True,
        health_check_interval=30,
    )
