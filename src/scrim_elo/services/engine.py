"""Rating engine: turns one completed match into committed rating changes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from sqlalchemy.orm import Session, sessionmaker

from scrim_elo.domain.common import MatchStatus, ParticipantRecord, TeamSlot
from scrim_elo.domain.elo import EloParameters, RatingChange, TeamAverageEloCalculator, TeamMatchRatings
from scrim_elo.domain.errors import InvalidMatchStateError, MatchNotFoundError, MissingWinnerError
from scrim_elo.repositories import HistoryLedger, MatchRegistry, RatingStore

logger = logging.getLogger(__name__)


class ProcessOutcome(str, Enum):
    PROCESSED = "processed"
    ALREADY_PROCESSED = "already_processed"
    SKIPPED_INCOMPLETE_TEAMS = "skipped_incomplete_teams"


@dataclass(frozen=True)
class MatchProcessingResult:
    """Terminal outcome of one ``process_match`` call."""

    match_id: int
    outcome: ProcessOutcome
    changes: tuple[RatingChange, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TeamPartition:
    team_a: tuple[int, ...]
    team_b: tuple[int, ...]
    unassigned: tuple[int, ...]

    @property
    def is_complete(self) -> bool:
        return bool(self.team_a) and bool(self.team_b)


def partition_participants(participants: list[ParticipantRecord]) -> TeamPartition:
    team_a: list[int] = []
    team_b: list[int] = []
    unassigned: list[int] = []
    for participant in participants:
        if participant.team_slot is TeamSlot.A:
            team_a.append(participant.player_id)
        elif participant.team_slot is TeamSlot.B:
            team_b.append(participant.player_id)
        else:
            unassigned.append(participant.player_id)
    return TeamPartition(team_a=tuple(team_a), team_b=tuple(team_b), unassigned=tuple(unassigned))


class RatingEngine:
    """Processes matches exactly once.

    Every call opens its own session, which is the unit of work passed to
    each store operation. The session is committed only on ``PROCESSED``;
    every other outcome and every exception rolls it back, so the processed
    flag, ratings and history are written together or not at all.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        matches: MatchRegistry | None = None,
        ratings: RatingStore | None = None,
        history: HistoryLedger | None = None,
        params: EloParameters | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.matches = matches or MatchRegistry()
        self.ratings = ratings or RatingStore()
        self.history = history or HistoryLedger()
        self.params = params or EloParameters()
        self.calculator = TeamAverageEloCalculator(self.params)

    def process_match(self, match_id: int) -> MatchProcessingResult:
        with self.session_factory() as session:
            try:
                result = self._process_in_session(session, match_id)
                if result.outcome is ProcessOutcome.PROCESSED:
                    session.commit()
                else:
                    session.rollback()
            except Exception:
                session.rollback()
                raise

        if result.outcome is ProcessOutcome.PROCESSED:
            logger.info(
                "Ratings processed for match_id=%s players=%d",
                match_id,
                len(result.changes),
            )
        elif result.outcome is ProcessOutcome.ALREADY_PROCESSED:
            logger.info("Ratings already processed for match_id=%s", match_id)
        else:
            logger.warning("Missing team assignments for match_id=%s, skipping rating update", match_id)
        return result

    def _process_in_session(self, session: Session, match_id: int) -> MatchProcessingResult:
        match = self.matches.get_match(session, match_id, for_update=True)
        if match is None:
            raise MatchNotFoundError(match_id)
        if match.status is not MatchStatus.COMPLETED:
            raise InvalidMatchStateError(match_id, match.status)
        if match.rating_processed:
            return MatchProcessingResult(match_id=match_id, outcome=ProcessOutcome.ALREADY_PROCESSED)
        if match.winning_team is None:
            raise MissingWinnerError(match_id)

        partition = partition_participants(self.matches.get_participants(session, match_id))
        if not partition.is_complete:
            return MatchProcessingResult(
                match_id=match_id,
                outcome=ProcessOutcome.SKIPPED_INCOMPLETE_TEAMS,
            )
        if partition.unassigned:
            logger.warning(
                "match_id=%s has participants without a team, not rating them: %s",
                match_id,
                list(partition.unassigned),
            )

        # Claim first: a concurrent attempt that got past the read guard stops here.
        if not self.matches.mark_processed(session, match_id):
            return MatchProcessingResult(match_id=match_id, outcome=ProcessOutcome.ALREADY_PROCESSED)

        rated_ids = partition.team_a + partition.team_b
        existing = self.ratings.get_ratings(session, rated_ids, match.league, for_update=True)
        pre_ratings = {
            player_id: existing[player_id].rating if player_id in existing else self.params.initial_rating
            for player_id in rated_ids
        }

        changes = self.calculator.process_match(
            TeamMatchRatings(
                match_id=match_id,
                winning_team=match.winning_team,
                team_a={player_id: pre_ratings[player_id] for player_id in partition.team_a},
                team_b={player_id: pre_ratings[player_id] for player_id in partition.team_b},
            )
        )

        for change in changes:
            self.ratings.upsert_rating(
                session,
                player_id=change.player_id,
                league=match.league,
                new_rating=change.new_rating,
                win_increment=1 if change.won else 0,
                loss_increment=0 if change.won else 1,
            )
            self.history.append_history(
                session,
                match_id=match_id,
                player_id=change.player_id,
                league=match.league,
                old_rating=change.old_rating,
                new_rating=change.new_rating,
            )

        return MatchProcessingResult(
            match_id=match_id,
            outcome=ProcessOutcome.PROCESSED,
            changes=tuple(changes),
        )


__all__ = [
    "MatchProcessingResult",
    "ProcessOutcome",
    "RatingEngine",
    "TeamPartition",
    "partition_participants",
]
