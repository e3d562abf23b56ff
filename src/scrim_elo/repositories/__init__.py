"""Repository layer for matches, ratings and rating history."""

from scrim_elo.repositories.history import HistoryLedger
from scrim_elo.repositories.matches import MatchRegistry
from scrim_elo.repositories.ratings import RatingStore

__all__ = ["HistoryLedger", "MatchRegistry", "RatingStore"]
