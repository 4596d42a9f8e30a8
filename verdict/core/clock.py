"""Wall-clock access and calendar keys.

Every time comparison in the game takes ``now`` from an injected Clock,
so request handlers, scheduler jobs and tests agree on one source of
time. Timestamps are epoch milliseconds throughout.

Keys:
    date key   ``YYYYMMDD``       calendar date in the configured zone
    cycle key  ``YYYYMMDD-HHMM``  start of the cycle bucket
    week key   ``YYYY-Www``       ISO calendar week
"""

from __future__ import annotations

import time
from datetime import UTC, date, datetime, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """Source of the current time in epoch milliseconds."""

    def now_ms(self) -> int: ...


class SystemClock:
    """Clock backed by the host's wall clock."""

    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000


def _local(ts_ms: int, tz: str) -> datetime:
    return datetime.fromtimestamp(ts_ms / 1000, tz=UTC).astimezone(ZoneInfo(tz))


def format_date_key(d: date) -> str:
    return d.strftime("%Y%m%d")


def parse_date_key(date_key: str) -> date:
    """Parse a ``YYYYMMDD`` key, raising ValueError on anything else."""
    if len(date_key) != 8 or not date_key.isdigit():
        msg = f"Invalid date key: {date_key!r}"
        raise ValueError(msg)
    return date(int(date_key[:4]), int(date_key[4:6]), int(date_key[6:8]))


def date_key(ts_ms: int, tz: str = "UTC") -> str:
    """Calendar date of ``ts_ms`` in zone ``tz``."""
    return format_date_key(_local(ts_ms, tz).date())


def cycle_key(ts_ms: int, cycle_minutes: int, tz: str = "UTC") -> str:
    """Identify the cycle bucket ``ts_ms`` falls into.

    Buckets are aligned to local midnight so every day starts a fresh
    sequence of cycles; a trailing partial bucket is allowed when the
    cycle length does not divide the day.
    """
    local = _local(ts_ms, tz)
    minute_of_day = local.hour * 60 + local.minute
    start = minute_of_day - minute_of_day % cycle_minutes
    return f"{format_date_key(local.date())}-{start // 60:02d}{start % 60:02d}"


def previous_date_key(key: str) -> str:
    """The calendar day before ``key`` (handles month and year rollover)."""
    return format_date_key(parse_date_key(key) - timedelta(days=1))


def week_key(key: str) -> str:
    """ISO week containing the date ``key``."""
    iso = parse_date_key(key).isocalendar()
    return f"{iso.year}-W{iso.week:02d}"
