"""elo_ratings and elo_history table models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from scrim_elo.models.base import Base
from scrim_elo.models.match import LEAGUE_CHECK


class EloRating(Base):
    """Current rating and win/loss counters per (player, league)."""

    __tablename__ = "elo_ratings"
    __table_args__ = (
        UniqueConstraint("player_id", "league", name="uq_elo_ratings_player_league"),
        CheckConstraint(LEAGUE_CHECK, name="ck_elo_ratings_league"),
        CheckConstraint("wins >= 0 AND losses >= 0", name="ck_elo_ratings_counters"),
        Index("idx_elo_ratings_league_rating", "league", "rating"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    player_id: Mapped[int] = mapped_column(Integer, nullable=False)
    league: Mapped[str] = mapped_column(String(50), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False, default=1000)
    wins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    losses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )


class EloHistory(Base):
    """Append-only ledger of rating changes (one row per player per match)."""

    __tablename__ = "elo_history"
    __table_args__ = (
        UniqueConstraint("match_id", "player_id", name="uq_elo_history_match_player"),
        CheckConstraint("change_amount = new_rating - old_rating", name="ck_elo_history_change"),
        Index("idx_elo_history_player", "player_id", "created_at"),
        Index("idx_elo_history_match", "match_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    match_id: Mapped[int] = mapped_column(ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    player_id: Mapped[int] = mapped_column(Integer, nullable=False)
    league: Mapped[str] = mapped_column(String(50), nullable=False)
    old_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    new_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    change_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
