"""Tests for consecutive-day streaks and calendar keys."""

from __future__ import annotations

import asyncio

import pytest

from tests.conftest import SUB_ID, T0
from verdict.core.clock import cycle_key, date_key, parse_date_key, previous_date_key, week_key
from verdict.models.domain import Streak
from verdict.services.scoring.streaks import StreakTracker, advance_streak


class TestAdvanceStreak:
    def test_first_play_starts_at_one(self):
        assert advance_streak(Streak(), "20260304") == Streak(
            current=1, best=1, last_played_date="20260304"
        )

    def test_consecutive_day_extends(self):
        streak = Streak(current=3, best=5, last_played_date="20260303")
        assert advance_streak(streak, "20260304") == Streak(
            current=4, best=5, last_played_date="20260304"
        )

    def test_same_day_is_counted_once(self):
        streak = Streak(current=3, best=3, last_played_date="20260304")
        assert advance_streak(streak, "20260304") == streak

    def test_one_missed_day_resets(self):
        streak = Streak(current=7, best=7, last_played_date="20260302")
        assert advance_streak(streak, "20260304") == Streak(
            current=1, best=7, last_played_date="20260304"
        )

    def test_best_tracks_new_high(self):
        streak = Streak(current=5, best=5, last_played_date="20260303")
        assert advance_streak(streak, "20260304").best == 6

    def test_month_and_year_rollover(self):
        end_of_feb = Streak(current=1, best=1, last_played_date="20260228")
        end_of_year = Streak(current=1, best=1, last_played_date="20251231")
        assert advance_streak(end_of_feb, "20260301").current == 2
        assert advance_streak(end_of_year, "20260101").current == 2

    def test_older_date_does_not_rewind(self):
        streak = Streak(current=4, best=4, last_played_date="20260304")
        assert advance_streak(streak, "20260301") == streak


class TestStreakTracker:
    async def test_touch_persists(self, redis):
        tracker = StreakTracker(redis)
        await tracker.touch(SUB_ID, "alice", "20260303")
        await tracker.touch(SUB_ID, "alice", "20260304")
        assert await tracker.get(SUB_ID, "alice") == Streak(
            current=2, best=2, last_played_date="20260304"
        )

    async def test_streaks_are_per_community(self, redis):
        tracker = StreakTracker(redis)
        await tracker.touch(SUB_ID, "alice", "20260304")
        assert await tracker.get("othersub", "alice") == Streak()

    async def test_concurrent_touches_count_once(self, redis):
        tracker = StreakTracker(redis)
        await tracker.touch(SUB_ID, "alice", "20260303")
        await asyncio.gather(*(tracker.touch(SUB_ID, "alice", "20260304") for _ in range(10)))
        streak = await tracker.get(SUB_ID, "alice")
        assert streak.current == 2


class TestClockKeys:
    def test_date_key(self):
        assert date_key(T0) == "20260304"

    def test_date_key_respects_timezone(self):
        # 10:00 UTC is 02:00 in Los Angeles and 19:00 in Tokyo.
        assert date_key(T0, "America/Los_Angeles") == "20260304"
        assert date_key(T0 + 15 * 3600 * 1000, "Asia/Tokyo") == "20260305"

    def test_cycle_key_buckets_from_midnight(self):
        assert cycle_key(T0, 5) == "20260304-1000"
        assert cycle_key(T0 + 4 * 60_000 + 59_000, 5) == "20260304-1000"
        assert cycle_key(T0 + 5 * 60_000, 5) == "20260304-1005"
        assert cycle_key(T0, 120) == "20260304-1000"
        assert cycle_key(T0 + 60 * 60_000, 120) == "20260304-1000"

    def test_previous_date_key(self):
        assert previous_date_key("20260301") == "20260228"
        assert previous_date_key("20240301") == "20240229"

    def test_week_key_is_iso_week(self):
        assert week_key("20260304") == "2026-W10"
        assert week_key("20210103") == "2020-W53"

    @pytest.mark.parametrize("bad", ["2026034", "2026-03-04", "20261301", "abcdefgh"])
    def test_parse_rejects_bad_keys(self, bad):
        with pytest.raises(ValueError):
            parse_date_key(bad)
