from .player import TrackedPlayer
from .trophy import DailyStats, TrophyEvent

__all__ = [
    "TrackedPlayer",
    "TrophyEvent",
    "DailyStats",
]
