"""ORM models."""

from scrim_elo.models.base import Base
from scrim_elo.models.match import Match, MatchParticipant
from scrim_elo.models.rating import EloHistory, EloRating

__all__ = [
    "Base",
    "EloHistory",
    "EloRating",
    "Match",
    "MatchParticipant",
]
