"""Tests for the explicit/periodic triggers and the polling scheduler."""

from __future__ import annotations

import threading

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from scrim_elo.domain import MissingWinnerError
from scrim_elo.models import EloHistory, EloRating
from scrim_elo.services import PollingScheduler, ProcessOutcome, RatingEngine, TriggerDispatcher
from scrim_elo.services.engine import MatchProcessingResult

TWO_VS_TWO = {1: 1, 2: 1, 3: 2, 4: 2}


class FlakyEngine(RatingEngine):
    def __init__(self, session_factory: sessionmaker[Session], failing_ids: set[int]) -> None:
        super().__init__(session_factory)
        self.failing_ids = failing_ids

    def process_match(self, match_id: int) -> MatchProcessingResult:
        if match_id in self.failing_ids:
            raise RuntimeError(f"store unavailable for match_id={match_id}")
        return super().process_match(match_id)


def test_scan_discovers_only_completed_unprocessed_matches_with_winner(session_factory, add_match) -> None:
    eligible = add_match(TWO_VS_TWO)
    add_match(TWO_VS_TWO, status="pending")
    add_match(TWO_VS_TWO, winning_team=None)
    add_match(TWO_VS_TWO, rating_processed=True)
    dispatcher = TriggerDispatcher(RatingEngine(session_factory), session_factory)

    assert dispatcher.discover() == [eligible]

    summary = dispatcher.scan_once()
    assert summary.discovered == 1
    assert summary.processed == 1
    assert dispatcher.discover() == []


def test_scan_with_nothing_to_do(session_factory) -> None:
    summary = TriggerDispatcher(RatingEngine(session_factory), session_factory).scan_once()
    assert summary.discovered == 0
    assert summary.failed == 0


def test_scan_continues_after_a_failing_match(session_factory, add_match) -> None:
    add_match(TWO_VS_TWO)
    broken = add_match(TWO_VS_TWO)
    add_match(TWO_VS_TWO)
    dispatcher = TriggerDispatcher(FlakyEngine(session_factory, {broken}), session_factory)

    summary = dispatcher.scan_once()

    assert summary.processed == 2
    assert summary.failed == 1
    assert summary.failed_match_ids == (broken,)
    assert dispatcher.discover() == [broken]


def test_skipped_matches_are_rediscovered_every_cycle(session_factory, add_match) -> None:
    match_id = add_match({1: 1, 2: 1})
    dispatcher = TriggerDispatcher(RatingEngine(session_factory), session_factory)

    for _ in range(3):
        summary = dispatcher.scan_once()
        assert summary.skipped == 1
        assert summary.processed == 0

    assert dispatcher.discover() == [match_id]


def test_scan_limit_caps_one_cycle(session_factory, add_match) -> None:
    ids = [add_match(TWO_VS_TWO) for _ in range(3)]
    dispatcher = TriggerDispatcher(RatingEngine(session_factory), session_factory, scan_limit=2)

    assert dispatcher.scan_once().processed == 2
    assert dispatcher.discover() == ids[2:]


def test_scan_with_worker_pool_processes_every_match(session_factory, add_match) -> None:
    ids = [add_match({10 * index + 1: 1, 10 * index + 2: 2}) for index in range(4)]
    dispatcher = TriggerDispatcher(RatingEngine(session_factory), session_factory, max_workers=3)

    summary = dispatcher.scan_once()

    assert summary.discovered == len(ids)
    assert summary.processed + summary.failed == len(ids)
    while dispatcher.discover():
        dispatcher.scan_once()
    with session_factory() as session:
        assert session.scalar(select(func.count()).select_from(EloHistory)) == 8


def test_invalid_max_workers_is_rejected(session_factory) -> None:
    with pytest.raises(ValueError):
        TriggerDispatcher(RatingEngine(session_factory), session_factory, max_workers=0)


def test_process_now_returns_outcome(session_factory, add_match) -> None:
    match_id = add_match(TWO_VS_TWO)
    dispatcher = TriggerDispatcher(RatingEngine(session_factory), session_factory)

    assert dispatcher.process_now(match_id).outcome is ProcessOutcome.PROCESSED
    assert dispatcher.process_now(match_id).outcome is ProcessOutcome.ALREADY_PROCESSED


def test_process_now_surfaces_errors_to_caller(session_factory, add_match) -> None:
    match_id = add_match(TWO_VS_TWO, winning_team=None)
    dispatcher = TriggerDispatcher(RatingEngine(session_factory), session_factory)

    with pytest.raises(MissingWinnerError):
        dispatcher.process_now(match_id)


def test_concurrent_calls_for_same_match_apply_once(session_factory, add_match) -> None:
    match_id = add_match(TWO_VS_TWO)
    engine = RatingEngine(session_factory)
    barrier = threading.Barrier(2)
    outcomes: list[ProcessOutcome] = []
    errors: list[Exception] = []
    lock = threading.Lock()

    def worker() -> None:
        barrier.wait()
        try:
            result = engine.process_match(match_id)
        except Exception as exc:  # store conflict is an acceptable loser outcome
            with lock:
                errors.append(exc)
            return
        with lock:
            outcomes.append(result.outcome)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert outcomes.count(ProcessOutcome.PROCESSED) == 1
    assert len(outcomes) + len(errors) == 2
    with session_factory() as session:
        assert session.scalar(select(func.count()).select_from(EloHistory)) == 4
        rows = session.execute(select(EloRating)).scalars().all()
    assert sorted((row.player_id, row.wins, row.losses) for row in rows) == [
        (1, 1, 0),
        (2, 1, 0),
        (3, 0, 1),
        (4, 0, 1),
    ]


def test_scheduler_run_once_swallows_errors() -> None:
    calls: list[int] = []

    def callback() -> None:
        calls.append(1)
        raise RuntimeError("boom")

    scheduler = PollingScheduler(callback, interval_seconds=60)
    scheduler.run_once()
    scheduler.run_once()

    assert len(calls) == 2
    assert not scheduler.running


def test_scheduler_fires_until_stopped() -> None:
    fired = threading.Event()
    calls: list[int] = []

    def callback() -> None:
        calls.append(1)
        if len(calls) >= 3:
            fired.set()

    scheduler = PollingScheduler(callback, interval_seconds=0.01)
    scheduler.start()
    assert scheduler.running
    assert fired.wait(timeout=5)
    scheduler.stop(timeout=5)

    assert not scheduler.running
    assert len(calls) >= 3
    assert scheduler.wait(timeout=0)


def test_scheduler_run_immediately_does_not_wait_for_interval() -> None:
    fired = threading.Event()
    scheduler = PollingScheduler(fired.set, interval_seconds=3600, run_immediately=True)

    scheduler.start()
    try:
        assert fired.wait(timeout=5)
    finally:
        scheduler.stop(timeout=5)
    assert not scheduler.running


def test_scheduler_can_restart_after_stop() -> None:
    fired = threading.Event()
    scheduler = PollingScheduler(fired.set, interval_seconds=0.01)

    scheduler.start()
    scheduler.stop(timeout=5)
    fired.clear()
    scheduler.start()
    try:
        assert fired.wait(timeout=5)
    finally:
        scheduler.stop(timeout=5)


def test_scheduler_rejects_non_positive_interval() -> None:
    with pytest.raises(ValueError):
        PollingScheduler(lambda: None, interval_seconds=0)


def test_scheduler_drives_dispatcher_scan(session_factory, add_match) -> None:
    match_id = add_match(TWO_VS_TWO)
    dispatcher = TriggerDispatcher(RatingEngine(session_factory), session_factory)
    scheduler = PollingScheduler(dispatcher.scan_once, interval_seconds=60)

    scheduler.run_once()

    assert dispatcher.process_now(match_id).outcome is ProcessOutcome.ALREADY_PROCESSED
