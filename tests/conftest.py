"""Shared fixtures: a file-backed SQLite database per test."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from scrim_elo.db import create_db_engine, create_session_factory, ensure_schema
from scrim_elo.models import EloRating, Match, MatchParticipant

AddMatchFn = Callable[..., int]


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return f"sqlite+pysqlite:///{tmp_path / 'ratings.db'}"


@pytest.fixture
def db_engine(db_url: str) -> Iterator[Engine]:
    engine = create_db_engine(db_url)
    ensure_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(db_engine)


@pytest.fixture
def add_match(session_factory: sessionmaker[Session]) -> AddMatchFn:
    """Insert a match plus participants; ``teams`` maps player id to team slot (or None)."""

    def _add_match(
        teams: dict[int, int | None],
        *,
        winning_team: int | None = 1,
        status: str = "completed",
        league: str = "Champion",
        rating_processed: bool = False,
    ) -> int:
        with session_factory() as session:
            match = Match(
                status=status,
                league=league,
                winning_team=winning_team,
                rating_processed=rating_processed,
            )
            session.add(match)
            session.flush()
            for player_id, team_slot in teams.items():
                session.add(MatchParticipant(match_id=match.id, player_id=player_id, team_slot=team_slot))
            session.commit()
            return match.id

    return _add_match


@pytest.fixture
def add_rating(session_factory: sessionmaker[Session]) -> Callable[..., None]:
    def _add_rating(player_id: int, rating: int, *, league: str = "Champion", wins: int = 0, losses: int = 0) -> None:
        with session_factory() as session:
            session.add(
                EloRating(player_id=player_id, league=league, rating=rating, wins=wins, losses=losses)
            )
            session.commit()

    return _add_rating
