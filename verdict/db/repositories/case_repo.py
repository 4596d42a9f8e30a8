"""Repository for case records and the working sets that index them.

A case is stored as one JSON document. Creation is a conditional
``SET NX`` keyed by the deterministic case id, so concurrent creators
for the same cycle converge on a single record. Status changes run
inside a WATCH/MULTI transaction that only ever moves one step forward.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from verdict.core.exceptions import StorageError
from verdict.db import keys
from verdict.models.domain import Case, CaseStatus

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.client import Pipeline


class CaseRepo:
    """Async repository for cases."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    async def get(self, case_id: str) -> Case | None:
        raw = await self._redis.get(keys.case(case_id))
        return Case.model_validate_json(raw) if raw else None

    async def create_if_absent(self, case: Case) -> tuple[Case, bool]:
        """Store ``case`` unless one with the same id exists.

        Returns the stored case and whether this call created it. A
        losing concurrent creator receives the winner's record.
        """
        created = await self._redis.set(keys.case(case.case_id), case.model_dump_json(), nx=True)
        if not created:
            existing = await self.get(case.case_id)
            if existing is None:
                msg = f"Case {case.case_id} vanished during creation"
                raise StorageError(msg, details={"case_id": case.case_id})
            return existing, False

        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.zadd(keys.open_cases(), {case.case_id: case.close_ts})
            pipe.zadd(keys.community_cases(case.sub_id), {case.case_id: case.open_ts})
            await pipe.execute()
        return case, True

    async def replace(self, case: Case) -> None:
        """Overwrite a case with a fresh open window (moderator override)."""
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.set(keys.case(case.case_id), case.model_dump_json())
            pipe.zrem(keys.closed_cases(), case.case_id)
            pipe.zadd(keys.open_cases(), {case.case_id: case.close_ts})
            pipe.zadd(keys.community_cases(case.sub_id), {case.case_id: case.open_ts})
            await pipe.execute()

    async def advance_status(self, case_id: str, target: CaseStatus) -> tuple[Case | None, bool]:
        """Move a case one step forward to ``target``.

        No-op when the case is already at or past ``target``; refuses to
        skip a state. Returns the stored case and whether it changed.
        """
        key = keys.case(case_id)

        async def _apply(pipe: Pipeline) -> tuple[Case | None, bool]:
            raw = await pipe.get(key)
            if raw is None:
                return None, False
            case = Case.model_validate_json(raw)
            if case.status.rank != target.rank - 1:
                return case, False

            updated = case.model_copy(update={"status": target})
            pipe.multi()
            pipe.set(key, updated.model_dump_json())
            pipe.zrem(keys.open_cases(), case_id)
            if target is CaseStatus.CLOSED:
                pipe.zadd(keys.closed_cases(), {case_id: case.reveal_ts})
            else:
                pipe.zrem(keys.closed_cases(), case_id)
            return updated, True

        result: tuple[Case | None, bool] = await self._redis.transaction(
            _apply, key, value_from_callable=True
        )
        return result

    async def set_post_id(self, case_id: str, post_id: str) -> Case | None:
        """Attach the published post id. The first writer wins."""
        key = keys.case(case_id)

        async def _apply(pipe: Pipeline) -> Case | None:
            raw = await pipe.get(key)
            if raw is None:
                return None
            case = Case.model_validate_json(raw)
            if case.post_id is not None:
                return case
            updated = case.model_copy(update={"post_id": post_id})
            pipe.multi()
            pipe.set(key, updated.model_dump_json())
            return updated

        result: Case | None = await self._redis.transaction(_apply, key, value_from_callable=True)
        return result

    async def claim_post(self, case_id: str, ttl_seconds: int) -> bool:
        """Take the short-lived right to publish the post of a case."""
        claimed = await self._redis.set(keys.post_claim(case_id), "1", nx=True, ex=ttl_seconds)
        return bool(claimed)

    async def release_post_claim(self, case_id: str) -> None:
        await self._redis.delete(keys.post_claim(case_id))

    async def list_open_ids(self) -> list[str]:
        """Ids in the open working set, soonest close first."""
        ids: list[str] = await self._redis.zrange(keys.open_cases(), 0, -1)
        return ids

    async def list_reveal_due_ids(self, now: int, limit: int) -> list[str]:
        """Closed cases whose reveal time is at or before ``now``."""
        ids: list[str] = await self._redis.zrangebyscore(
            keys.closed_cases(), "-inf", now, start=0, num=limit
        )
        return ids

    async def list_recent_ids(self, sub_id: str, limit: int) -> list[str]:
        """Most recently opened case ids of a community, newest first."""
        ids: list[str] = await self._redis.zrevrange(keys.community_cases(sub_id), 0, limit - 1)
        return ids
