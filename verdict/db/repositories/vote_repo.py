"""Repository for votes.

A vote is written once with ``SET NX``, which makes "one vote per user
per case" a property of the store rather than of a check-then-set in
the caller. The first-comment timestamp lives beside the vote under its
own ``SET NX`` key, so it is first-write-wins as well.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from verdict.db import keys
from verdict.models.domain import Vote

if TYPE_CHECKING:
    from redis.asyncio import Redis


class VoteRepo:
    """Async repository for votes."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    async def get(self, case_id: str, user_id: str) -> Vote | None:
        raw, comment_ts = await self._redis.mget(
            keys.vote(case_id, user_id),
            keys.vote_comment(case_id, user_id),
        )
        if raw is None:
            return None
        vote = Vote.model_validate_json(raw)
        if comment_ts is not None:
            vote = vote.model_copy(update={"first_comment_ts": int(comment_ts)})
        return vote

    async def create(self, vote: Vote) -> bool:
        """Persist ``vote`` if the user has none on this case. Returns False otherwise."""
        created = await self._redis.set(
            keys.vote(vote.case_id, vote.user_id),
            vote.model_dump_json(exclude={"first_comment_ts"}),
            nx=True,
        )
        return bool(created)

    async def mark_first_comment(self, case_id: str, user_id: str, ts: int) -> bool:
        """Record the first comment time. No-op without a vote or when already set."""
        if not await self._redis.exists(keys.vote(case_id, user_id)):
            return False
        created = await self._redis.set(keys.vote_comment(case_id, user_id), ts, nx=True)
        return bool(created)

    async def purge_case(self, case_id: str) -> int:
        """Delete every vote (and comment mark) of a case."""
        doomed = [key async for key in self._redis.scan_iter(match=keys.vote_pattern(case_id))]
        if not doomed:
            return 0
        deleted: int = await self._redis.delete(*doomed)
        return deleted
