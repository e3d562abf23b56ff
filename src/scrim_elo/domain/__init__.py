"""Domain types, Elo math and engine errors."""

from scrim_elo.domain.common import (
    League,
    MatchRecord,
    MatchStatus,
    ParticipantRecord,
    RatingHistoryEntry,
    RatingRecord,
    TeamSlot,
)
from scrim_elo.domain.elo import EloParameters, RatingChange, TeamAverageEloCalculator, TeamMatchRatings
from scrim_elo.domain.errors import (
    EngineError,
    InvalidMatchStateError,
    MatchNotFoundError,
    MissingWinnerError,
)

__all__ = [
    "EloParameters",
    "EngineError",
    "InvalidMatchStateError",
    "League",
    "MatchNotFoundError",
    "MatchRecord",
    "MatchStatus",
    "MissingWinnerError",
    "ParticipantRecord",
    "RatingChange",
    "RatingHistoryEntry",
    "RatingRecord",
    "TeamAverageEloCalculator",
    "TeamMatchRatings",
    "TeamSlot",
]
