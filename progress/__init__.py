"""
Points, levels, badges, challenges and leaderboard.

level = total_points // 500 + 1, derived from the point total on every read.
"""

from .engine import (
    InMemoryProgressStore,
    InvalidPointsError,
    Leaderboard,
    ProgressEngine,
    ProgressError,
    ProgressStore,
)
from .models import Challenge, LeaderboardEntry, ProgressRecord, level_for

__all__ = [
    "InMemoryProgressStore",
    "InvalidPointsError",
    "Leaderboard",
    "ProgressEngine",
    "ProgressError",
    "ProgressStore",
    "Challenge",
    "LeaderboardEntry",
    "ProgressRecord",
    "level_for",
]
