"""Redis repository layer - one repo per stored record type."""

from verdict.db.repositories.aggregate_repo import AggregateRepo
from verdict.db.repositories.case_repo import CaseRepo
from verdict.db.repositories.leaderboard_repo import LeaderboardRepo
from verdict.db.repositories.minigame_repo import MinigameRepo
from verdict.db.repositories.score_repo import ScoreRepo
from verdict.db.repositories.snapshot_repo import SnapshotRepo
from verdict.db.repositories.streak_repo import StreakRepo
from verdict.db.repositories.submission_repo import SubmissionRepo
from verdict.db.repositories.username_repo import UsernameRepo
from verdict.db.repositories.vote_repo import VoteRepo

__all__ = [
    "AggregateRepo",
    "CaseRepo",
    "LeaderboardRepo",
    "MinigameRepo",
    "ScoreRepo",
    "SnapshotRepo",
    "StreakRepo",
    "SubmissionRepo",
    "UsernameRepo",
    "VoteRepo",
]
