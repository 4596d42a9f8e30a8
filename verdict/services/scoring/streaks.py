"""Consecutive-day play streaks, per user per community."""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

from verdict.core.clock import previous_date_key
from verdict.db.repositories import StreakRepo
from verdict.models.domain import Streak

if TYPE_CHECKING:
    from redis.asyncio import Redis


def advance_streak(streak: Streak, date_key: str) -> Streak:
    """Count a play on ``date_key``.

    Playing again on the same date changes nothing. Playing the calendar
    day after the last play extends the streak; any other gap restarts
    it at 1. A play dated before the last counted one (a late reveal of
    an older case) leaves the streak alone.
    """
    if streak.last_played_date and date_key <= streak.last_played_date:
        return streak
    if streak.last_played_date and streak.last_played_date == previous_date_key(date_key):
        current = streak.current + 1
    else:
        current = 1
    return Streak(current=current, best=max(streak.best, current), last_played_date=date_key)


class StreakTracker:
    def __init__(self, redis: Redis) -> None:
        self._streaks = StreakRepo(redis)

    async def get(self, sub_id: str, user_id: str) -> Streak:
        return await self._streaks.get(sub_id, user_id)

    async def touch(self, sub_id: str, user_id: str, date_key: str) -> Streak:
        return await self._streaks.update(sub_id, user_id, partial(advance_streak, date_key=date_key))
