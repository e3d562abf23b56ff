"""matches and match_participants table models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from scrim_elo.models.base import Base

LEAGUE_CHECK = "league IN ('Academy', 'Champion', 'Master')"


class Match(Base):
    """One scrim. Written by ingestion; only ``rating_processed`` is set by the engine."""

    __tablename__ = "matches"
    __table_args__ = (
        CheckConstraint(LEAGUE_CHECK, name="ck_matches_league"),
        CheckConstraint("winning_team IN (1, 2)", name="ck_matches_winning_team"),
        Index("idx_matches_rating_scan", "status", "rating_processed"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    status: Mapped[str] = mapped_column(
        Enum(
            "pending",
            "in_progress",
            "completed",
            "cancelled",
            name="match_status",
            native_enum=False,
        ),
        nullable=False,
        default="pending",
    )
    league: Mapped[str] = mapped_column(String(50), nullable=False)
    winning_team: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rating_processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )


class MatchParticipant(Base):
    """Player-to-match association with an optional team slot."""

    __tablename__ = "match_participants"
    __table_args__ = (
        UniqueConstraint("match_id", "player_id", name="uq_match_participants_match_player"),
        CheckConstraint("team_slot IN (1, 2)", name="ck_match_participants_team_slot"),
        Index("idx_match_participants_match", "match_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    match_id: Mapped[int] = mapped_column(ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    player_id: Mapped[int] = mapped_column(Integer, nullable=False)
    team_slot: Mapped[int | None] = mapped_column(Integer, nullable=True)
