"""Rating store: current (player, league) ratings and win/loss counters."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from scrim_elo.domain.common import League, RatingRecord
from scrim_elo.models import EloRating

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _to_rating_record(row: EloRating) -> RatingRecord:
    return RatingRecord(
        player_id=row.player_id,
        league=League(row.league),
        rating=int(row.rating),
        wins=int(row.wins),
        losses=int(row.losses),
        updated_at=row.updated_at,
    )


class RatingStore:
    """Persistence for ``elo_ratings``; one row per (player, league)."""

    def get_rating(
        self,
        session: Session,
        player_id: int,
        league: League,
        *,
        for_update: bool = False,
    ) -> RatingRecord | None:
        return self.get_ratings(session, [player_id], league, for_update=for_update).get(player_id)

    def get_ratings(
        self,
        session: Session,
        player_ids: Iterable[int],
        league: League,
        *,
        for_update: bool = False,
    ) -> dict[int, RatingRecord]:
        """Fetch existing ratings keyed by player id; absent players are simply missing."""
        ids = sorted(set(player_ids))
        if not ids:
            return {}
        # Lock rows in player-id order so overlapping matches cannot deadlock.
        statement = (
            select(EloRating)
            .where(EloRating.league == league.value, EloRating.player_id.in_(ids))
            .order_by(EloRating.player_id)
        )
        if for_update:
            statement = statement.with_for_update()
        rows = session.execute(statement).scalars().all()
        return {row.player_id: _to_rating_record(row) for row in rows}

    def upsert_rating(
        self,
        session: Session,
        *,
        player_id: int,
        league: League,
        new_rating: int,
        win_increment: int,
        loss_increment: int,
    ) -> None:
        """Overwrite the rating and add the increments to the win/loss counters."""
        now = datetime.now(UTC).replace(tzinfo=None)
        insert_fn = _UPSERT_DIALECTS.get(session.get_bind().dialect.name)
        if insert_fn is None:
            self._upsert_generic(
                session,
                player_id=player_id,
                league=league,
                new_rating=new_rating,
                win_increment=win_increment,
                loss_increment=loss_increment,
                now=now,
            )
            return

        table = EloRating.__table__
        statement = insert_fn(table).values(
            player_id=player_id,
            league=league.value,
            rating=new_rating,
            wins=win_increment,
            losses=loss_increment,
            updated_at=now,
        )
        statement = statement.on_conflict_do_update(
            index_elements=[table.c.player_id, table.c.league],
            set_={
                "rating": statement.excluded.rating,
                "wins": table.c.wins + statement.excluded.wins,
                "losses": table.c.losses + statement.excluded.losses,
                "updated_at": statement.excluded.updated_at,
            },
        )
        session.execute(statement)

    def _upsert_generic(
        self,
        session: Session,
        *,
        player_id: int,
        league: League,
        new_rating: int,
        win_increment: int,
        loss_increment: int,
        now: datetime,
    ) -> None:
        row = session.execute(
            select(EloRating)
            .where(EloRating.player_id == player_id, EloRating.league == league.value)
            .with_for_update()
        ).scalar_one_or_none()
        if row is None:
            session.add(
                EloRating(
                    player_id=player_id,
                    league=league.value,
                    rating=new_rating,
                    wins=win_increment,
                    losses=loss_increment,
                    updated_at=now,
                )
            )
        else:
            row.rating = new_rating
            row.wins = row.wins + win_increment
            row.losses = row.losses + loss_increment
            row.updated_at = now
        session.flush()

    def leaderboard(self, session: Session, league: League, *, limit: int = 10) -> list[RatingRecord]:
        """Highest ratings in one league; ties broken by more wins, then player id."""
        if limit <= 0:
            raise ValueError("limit must be greater than 0")
        rows = session.execute(
            select(EloRating)
            .where(EloRating.league == league.value)
            .order_by(EloRating.rating.desc(), EloRating.wins.desc(), EloRating.player_id)
            .limit(limit)
        ).scalars()
        return [_to_rating_record(row) for row in rows]


__all__ = ["RatingStore"]
