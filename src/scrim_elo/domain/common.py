"""Shared types for match rating."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum


class League(str, Enum):
    """Independent rating namespaces; a player holds one rating per league."""

    ACADEMY = "Academy"
    CHAMPION = "Champion"
    MASTER = "Master"


class MatchStatus(str, Enum):
    """Lifecycle status written by the ingestion side."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TeamSlot(IntEnum):
    """One of the two team slots of a match."""

    A = 1
    B = 2

    @property
    def opponent(self) -> TeamSlot:
        return TeamSlot.B if self is TeamSlot.A else TeamSlot.A


@dataclass(frozen=True)
class MatchRecord:
    """Rating-relevant view of one match row."""

    match_id: int
    status: MatchStatus
    league: League
    winning_team: TeamSlot | None
    rating_processed: bool


@dataclass(frozen=True)
class ParticipantRecord:
    """One player's presence in a match; ``team_slot`` is None until assigned upstream."""

    match_id: int
    player_id: int
    team_slot: TeamSlot | None


@dataclass(frozen=True)
class RatingRecord:
    player_id: int
    league: League
    rating: int
    wins: int
    losses: int
    updated_at: datetime | None = None


@dataclass(frozen=True)
class RatingHistoryEntry:
    match_id: int
    player_id: int
    league: League
    old_rating: int
    new_rating: int
    change_amount: int
    created_at: datetime | None = None


def parse_team_slot(value: int | None) -> TeamSlot | None:
    """Convert a raw team column into a TeamSlot, keeping NULL as None."""
    if value is None:
        return None
    return TeamSlot(int(value))


__all__ = [
    "League",
    "MatchRecord",
    "MatchStatus",
    "ParticipantRecord",
    "RatingHistoryEntry",
    "RatingRecord",
    "TeamSlot",
    "parse_team_slot",
]
