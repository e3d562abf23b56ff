"""Explicit and periodic triggers for the rating engine."""

from __future__ import annotations

import concurrent.futures as cf
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from sqlalchemy.orm import Session, sessionmaker

from scrim_elo.repositories import MatchRegistry
from scrim_elo.services.engine import MatchProcessingResult, ProcessOutcome, RatingEngine

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 60.0


@dataclass(frozen=True)
class ScanSummary:
    """Counts for one scan cycle."""

    discovered: int
    processed: int
    already_processed: int
    skipped: int
    failed: int
    failed_match_ids: tuple[int, ...] = field(default_factory=tuple)


class TriggerDispatcher:
    """Routes on-demand requests and scan cycles to one shared ``RatingEngine``."""

    def __init__(
        self,
        engine: RatingEngine,
        session_factory: sessionmaker[Session],
        *,
        matches: MatchRegistry | None = None,
        max_workers: int = 1,
        scan_limit: int | None = None,
    ) -> None:
        if max_workers <= 0:
            raise ValueError("max_workers must be greater than 0")
        self.engine = engine
        self.session_factory = session_factory
        self.matches = matches or engine.matches
        self.max_workers = max_workers
        self.scan_limit = scan_limit

    def process_now(self, match_id: int) -> MatchProcessingResult:
        """Explicit path: errors are logged and re-raised to the caller."""
        try:
            return self.engine.process_match(match_id)
        except Exception:
            logger.exception("Error processing ratings for match_id=%s", match_id)
            raise

    def discover(self) -> list[int]:
        with self.session_factory() as session:
            return self.matches.find_unprocessed_match_ids(session, limit=self.scan_limit)

    def scan_once(self) -> ScanSummary:
        """Process every pending match once; one failing match never aborts the cycle."""
        match_ids = self.discover()
        if match_ids:
            logger.info("Found %d unprocessed completed matches", len(match_ids))

        outcomes: dict[int, ProcessOutcome | None] = {}
        if self.max_workers == 1 or len(match_ids) <= 1:
            for match_id in match_ids:
                outcomes[match_id] = self._process_logged(match_id)
        else:
            with cf.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = {executor.submit(self._process_logged, match_id): match_id for match_id in match_ids}
                for future in cf.as_completed(futures):
                    outcomes[futures[future]] = future.result()

        failed = tuple(sorted(match_id for match_id, outcome in outcomes.items() if outcome is None))
        summary = ScanSummary(
            discovered=len(match_ids),
            processed=sum(1 for outcome in outcomes.values() if outcome is ProcessOutcome.PROCESSED),
            already_processed=sum(
                1 for outcome in outcomes.values() if outcome is ProcessOutcome.ALREADY_PROCESSED
            ),
            skipped=sum(
                1 for outcome in outcomes.values() if outcome is ProcessOutcome.SKIPPED_INCOMPLETE_TEAMS
            ),
            failed=len(failed),
            failed_match_ids=failed,
        )
        if summary.discovered:
            logger.info(
                "Scan finished discovered=%d processed=%d already=%d skipped=%d failed=%d",
                summary.discovered,
                summary.processed,
                summary.already_processed,
                summary.skipped,
                summary.failed,
            )
        return summary

    def _process_logged(self, match_id: int) -> ProcessOutcome | None:
        try:
            return self.engine.process_match(match_id).outcome
        except Exception:
            logger.exception("Error processing ratings for match_id=%s", match_id)
            return None


class PollingScheduler:
    """Runs ``callback`` every ``interval_seconds`` on a daemon thread until stopped."""

    def __init__(
        self,
        callback: Callable[[], object],
        *,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        run_immediately: bool = False,
        name: str = "rating-scan",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than 0")
        self.callback = callback
        self.interval_seconds = interval_seconds
        self.run_immediately = run_immediately
        self.name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
            self._thread.start()
        logger.info("Started %s scheduler interval_seconds=%s", self.name, self.interval_seconds)

    def stop(self, timeout: float | None = None) -> None:
        """Signal the loop to exit and wait for the in-flight cycle to finish."""
        self._stop_event.set()
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        logger.info("Stopped %s scheduler", self.name)

    def run_once(self) -> None:
        """Run one cycle on the calling thread, logging instead of raising."""
        try:
            self.callback()
        except Exception:
            logger.exception("Error in %s cycle", self.name)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until ``stop`` is called; return True if it was."""
        return self._stop_event.wait(timeout)

    def _loop(self) -> None:
        if self.run_immediately:
            self.run_once()
        while not self._stop_event.wait(self.interval_seconds):
            self.run_once()


__all__ = [
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "PollingScheduler",
    "ScanSummary",
    "TriggerDispatcher",
]
