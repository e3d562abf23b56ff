"""Team-average Elo logic for two-team matches."""

from __future__ import annotations

from dataclasses import dataclass
from math import floor

from scrim_elo.domain.common import TeamSlot


@dataclass(frozen=True)
class EloParameters:
    initial_rating: int = 1000
    k_factor: float = 32.0
    scale_factor: float = 400.0


@dataclass(frozen=True)
class TeamMatchRatings:
    """Pre-match ratings of both rosters plus the declared winner."""

    match_id: int
    winning_team: TeamSlot
    team_a: dict[int, int]
    team_b: dict[int, int]

    def roster(self, slot: TeamSlot) -> dict[int, int]:
        return self.team_a if slot is TeamSlot.A else self.team_b


@dataclass(frozen=True)
class RatingChange:
    player_id: int
    team_slot: TeamSlot
    won: bool
    actual_score: float
    expected_score: float
    opponent_average: float
    old_rating: int
    new_rating: int

    @property
    def change_amount(self) -> int:
        return self.new_rating - self.old_rating


def calculate_expected_score(rating: float, opponent_rating: float, scale_factor: float = 400.0) -> float:
    """Compute the Elo expected score for one side."""
    return 1.0 / (1.0 + 10.0 ** ((opponent_rating - rating) / scale_factor))


def round_half_up(value: float) -> int:
    # Ratings round .5 upward, also for negative deltas (1015.5 -> 1016, 983.5 -> 984).
    return int(floor(value + 0.5))


def calculate_new_rating(
    rating: int,
    opponent_rating: float,
    actual_score: float,
    *,
    k_factor: float = 32.0,
    scale_factor: float = 400.0,
) -> int:
    expected = calculate_expected_score(rating, opponent_rating, scale_factor)
    return round_half_up(rating + k_factor * (actual_score - expected))


def average_rating(roster: dict[int, int]) -> float:
    return sum(roster.values()) / float(len(roster))


class TeamAverageEloCalculator:
    """Scores every player against the mean pre-match rating of the opposing team.

    Each player is updated independently, so the sum of deltas across both
    teams is not zero unless all players share a rating.
    """

    def __init__(self, params: EloParameters | None = None) -> None:
        self.params = params or EloParameters()

    def process_match(self, match: TeamMatchRatings) -> list[RatingChange]:
        if not match.team_a or not match.team_b:
            raise ValueError(f"match_id={match.match_id} is missing players for one or both teams")
        overlap = set(match.team_a) & set(match.team_b)
        if overlap:
            raise ValueError(
                f"match_id={match.match_id} has players on both teams: {sorted(overlap)}"
            )

        averages = {
            TeamSlot.A: average_rating(match.team_a),
            TeamSlot.B: average_rating(match.team_b),
        }

        changes: list[RatingChange] = []
        for slot in (TeamSlot.A, TeamSlot.B):
            won = slot is match.winning_team
            actual = 1.0 if won else 0.0
            opponent_average = averages[slot.opponent]
            for player_id, rating in sorted(match.roster(slot).items()):
                expected = calculate_expected_score(
                    rating=rating,
                    opponent_rating=opponent_average,
                    scale_factor=self.params.scale_factor,
                )
                new_rating = round_half_up(rating + self.params.k_factor * (actual - expected))
                changes.append(
                    RatingChange(
                        player_id=player_id,
                        team_slot=slot,
                        won=won,
                        actual_score=actual,
                        expected_score=expected,
                        opponent_average=opponent_average,
                        old_rating=rating,
                        new_rating=new_rating,
                    )
                )
        return changes


__all__ = [
    "EloParameters",
    "RatingChange",
    "TeamAverageEloCalculator",
    "TeamMatchRatings",
    "average_rating",
    "calculate_expected_score",
    "calculate_new_rating",
    "round_half_up",
]
