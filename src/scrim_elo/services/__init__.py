"""Rating engine and its triggers."""

from scrim_elo.services.dispatcher import PollingScheduler, ScanSummary, TriggerDispatcher
from scrim_elo.services.engine import MatchProcessingResult, ProcessOutcome, RatingEngine

__all__ = [
    "MatchProcessingResult",
    "PollingScheduler",
    "ProcessOutcome",
    "RatingEngine",
    "ScanSummary",
    "TriggerDispatcher",
]
