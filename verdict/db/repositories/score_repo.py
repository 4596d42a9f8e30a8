"""Repository for memoized score breakdowns.

The first breakdown saved for a (case, user) is authoritative. Saving
runs in a WATCH/MULTI transaction that writes the breakdown, the
per-case board entry and the weekly increment together, so a racing
second writer neither overwrites the score nor double-counts the week.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from verdict.db import keys
from verdict.db.repositories.leaderboard_repo import encode_case_rank
from verdict.models.domain import ScoreBreakdown

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.client import Pipeline


class ScoreRepo:
    """Async repository for score breakdowns."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    async def get(self, case_id: str, user_id: str) -> ScoreBreakdown | None:
        raw = await self._redis.get(keys.score(case_id, user_id))
        return ScoreBreakdown.model_validate_json(raw) if raw else None

    async def save_if_absent(
        self,
        score: ScoreBreakdown,
        *,
        sub_id: str,
        week_key: str,
        saved_ts: int,
    ) -> tuple[ScoreBreakdown, bool]:
        """Persist ``score`` and feed both leaderboards, exactly once.

        Returns the stored breakdown and whether this call wrote it.
        """
        key = keys.score(score.case_id, score.user_id)

        async def _apply(pipe: Pipeline) -> tuple[ScoreBreakdown, bool]:
            raw = await pipe.get(key)
            if raw is not None:
                return ScoreBreakdown.model_validate_json(raw), False
            pipe.multi()
            pipe.set(key, score.model_dump_json())
            pipe.zadd(
                keys.case_leaderboard(score.case_id),
                {score.user_id: encode_case_rank(score.total, saved_ts)},
            )
            pipe.zincrby(keys.weekly_leaderboard(sub_id, week_key), score.total, score.user_id)
            return score, True

        result: tuple[ScoreBreakdown, bool] = await self._redis.transaction(
            _apply, key, value_from_callable=True
        )
        return result
