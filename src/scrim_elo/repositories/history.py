"""History ledger: append-only record of rating changes."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import insert, select
from sqlalchemy.orm import Session

from scrim_elo.domain.common import League, RatingHistoryEntry
from scrim_elo.models import EloHistory


def _to_history_entry(row: EloHistory) -> RatingHistoryEntry:
    return RatingHistoryEntry(
        match_id=row.match_id,
        player_id=row.player_id,
        league=League(row.league),
        old_rating=int(row.old_rating),
        new_rating=int(row.new_rating),
        change_amount=int(row.change_amount),
        created_at=row.created_at,
    )


class HistoryLedger:
    """Writes and reads ``elo_history``. Rows are never updated or deleted here."""

    def append_history(
        self,
        session: Session,
        *,
        match_id: int,
        player_id: int,
        league: League,
        old_rating: int,
        new_rating: int,
    ) -> None:
        session.execute(
            insert(EloHistory).values(
                match_id=match_id,
                player_id=player_id,
                league=league.value,
                old_rating=old_rating,
                new_rating=new_rating,
                change_amount=new_rating - old_rating,
                created_at=datetime.now(UTC).replace(tzinfo=None),
            )
        )

    def list_for_match(self, session: Session, match_id: int) -> list[RatingHistoryEntry]:
        rows = session.execute(
            select(EloHistory).where(EloHistory.match_id == match_id).order_by(EloHistory.player_id)
        ).scalars()
        return [_to_history_entry(row) for row in rows]

    def list_for_player(
        self,
        session: Session,
        player_id: int,
        *,
        league: League | None = None,
        limit: int | None = None,
    ) -> list[RatingHistoryEntry]:
        """Newest entries first."""
        statement = select(EloHistory).where(EloHistory.player_id == player_id)
        if league is not None:
            statement = statement.where(EloHistory.league == league.value)
        statement = statement.order_by(EloHistory.created_at.desc(), EloHistory.id.desc())
        if limit is not None:
            statement = statement.limit(limit)
        return [_to_history_entry(row) for row in session.execute(statement).scalars()]


__all__ = ["HistoryLedger"]
