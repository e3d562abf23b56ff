"""Errors raised by the rating engine."""

from __future__ import annotations

from scrim_elo.domain.common import MatchStatus


class EngineError(Exception):
    """Base class for precondition failures; no writes happened when raised."""

    def __init__(self, match_id: int, message: str) -> None:
        super().__init__(message)
        self.match_id = match_id


class MatchNotFoundError(EngineError):
    def __init__(self, match_id: int) -> None:
        super().__init__(match_id, f"match_id={match_id} not found")


class InvalidMatchStateError(EngineError):
    def __init__(self, match_id: int, status: MatchStatus) -> None:
        super().__init__(match_id, f"match_id={match_id} is not completed (status={status.value})")
        self.status = status


class MissingWinnerError(EngineError):
    def __init__(self, match_id: int) -> None:
        super().__init__(match_id, f"match_id={match_id} has no winning team set")


__all__ = [
    "EngineError",
    "InvalidMatchStateError",
    "MatchNotFoundError",
    "MissingWinnerError",
]
