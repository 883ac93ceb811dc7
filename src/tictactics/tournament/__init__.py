"""Tournament orchestration: registry, brackets, match lifecycle and ratings."""

from .ratings import expected_score, update_ratings
from .system import PlayerAnalytics, TournamentSystem
from .types import (
    EventSink,
    Match,
    MatchResult,
    PlayerRecord,
    Tournament,
    TournamentConfig,
    TournamentFormat,
)

__all__ = [
    "EventSink",
    "Match",
    "MatchResult",
    "PlayerAnalytics",
    "PlayerRecord",
    "Tournament",
    "TournamentConfig",
    "TournamentFormat",
    "TournamentSystem",
    "expected_score",
    "update_ratings",
]
