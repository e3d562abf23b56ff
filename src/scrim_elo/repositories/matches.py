"""Match registry: match and participant reads plus the one-way processed flag."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from scrim_elo.domain.common import (
    League,
    MatchRecord,
    MatchStatus,
    ParticipantRecord,
    parse_team_slot,
)
from scrim_elo.models import Match, MatchParticipant


def _to_match_record(row: Match) -> MatchRecord:
    return MatchRecord(
        match_id=row.id,
        status=MatchStatus(row.status),
        league=League(row.league),
        winning_team=parse_team_slot(row.winning_team),
        rating_processed=bool(row.rating_processed),
    )


class MatchRegistry:
    """Reads match state and flips ``rating_processed`` from false to true."""

    def get_match(self, session: Session, match_id: int, *, for_update: bool = False) -> MatchRecord | None:
        """Fetch one match; ``for_update`` holds its row lock until the session ends."""
        statement = select(Match).where(Match.id == match_id)
        if for_update:
            statement = statement.with_for_update()
        row = session.execute(statement).scalar_one_or_none()
        if row is None:
            return None
        return _to_match_record(row)

    def get_participants(self, session: Session, match_id: int) -> list[ParticipantRecord]:
        rows = session.execute(
            select(MatchParticipant.player_id, MatchParticipant.team_slot)
            .where(MatchParticipant.match_id == match_id)
            .order_by(MatchParticipant.player_id)
        ).all()
        return [
            ParticipantRecord(
                match_id=match_id,
                player_id=int(row.player_id),
                team_slot=parse_team_slot(row.team_slot),
            )
            for row in rows
        ]

    def mark_processed(self, session: Session, match_id: int) -> bool:
        """Set the processed flag if still false; return whether this call flipped it."""
        result = session.execute(
            update(Match)
            .where(Match.id == match_id, Match.rating_processed.is_(False))
            .values(
                rating_processed=True,
                updated_at=datetime.now(UTC).replace(tzinfo=None),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def find_unprocessed_match_ids(self, session: Session, *, limit: int | None = None) -> list[int]:
        """Completed, unprocessed matches with a declared winner, oldest id first."""
        statement = (
            select(Match.id)
            .where(
                Match.status == MatchStatus.COMPLETED.value,
                Match.rating_processed.is_(False),
                Match.winning_team.is_not(None),
            )
            .order_by(Match.id)
        )
        if limit is not None:
            statement = statement.limit(limit)
        return [int(match_id) for match_id in session.scalars(statement)]


__all__ = ["MatchRegistry"]
