"""Redis key layout.

Every key the game writes is built here so the layout can be read in
one place.
"""

from __future__ import annotations


def case(case_id: str) -> str:
    return f"case:{case_id}"


def open_cases() -> str:
    return "cases:open"


def closed_cases() -> str:
    return "cases:closed"


def community_cases(sub_id: str) -> str:
    return f"cases:sub:{sub_id}"


def vote(case_id: str, user_id: str) -> str:
    return f"vote:{case_id}:{user_id}"


def vote_comment(case_id: str, user_id: str) -> str:
    return f"vote:{case_id}:{user_id}:comment"


def vote_pattern(case_id: str) -> str:
    return f"vote:{case_id}:*"


def aggregate(case_id: str) -> str:
    return f"agg:{case_id}"


def snapshot(case_id: str, ts: int) -> str:
    return f"snap:{case_id}:{ts}"


def snapshot_index(case_id: str) -> str:
    return f"snapidx:{case_id}"


def score(case_id: str, user_id: str) -> str:
    return f"score:{case_id}:{user_id}"


def case_leaderboard(case_id: str) -> str:
    return f"lb:case:{case_id}"


def weekly_leaderboard(sub_id: str, week_key: str) -> str:
    return f"lb:sub:{sub_id}:week:{week_key}"


def streak(sub_id: str, user_id: str) -> str:
    return f"streak:{sub_id}:{user_id}"


def minigame(case_id: str) -> str:
    return f"minigame:{case_id}"


def submission(submission_id: str) -> str:
    return f"submission:{submission_id}"


def pending_submissions(sub_id: str) -> str:
    return f"submissions:pending:{sub_id}"


def approved_submission(sub_id: str, date_key: str) -> str:
    return f"submissions:approved:{sub_id}:{date_key}"


def submission_count(sub_id: str, user_id: str, date_key: str) -> str:
    return f"submissions:count:{sub_id}:{user_id}:{date_key}"


def username(user_id: str) -> str:
    return f"username:{user_id}"


def post_claim(case_id: str) -> str:
    return f"case:{case_id}:post-claim"
