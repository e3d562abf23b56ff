#!/usr/bin/env python3
"""CLI for processing scrim ratings on demand or on a polling schedule."""

from __future__ import annotations

import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Annotated

import typer
from sqlalchemy.engine import Engine

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from scrim_elo.config import ServiceConfig, load_service_config
from scrim_elo.db import check_connection, create_db_engine, create_session_factory, ensure_schema
from scrim_elo.domain import EngineError, League
from scrim_elo.repositories import HistoryLedger, RatingStore
from scrim_elo.services import PollingScheduler, RatingEngine, TriggerDispatcher

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Scrim Elo rating commands.",
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Optional TOML config file (for example: config/default.toml)."),
]
DbUrlOption = Annotated[
    str | None,
    typer.Option("--db-url", help="Database URL. Overrides [database].url from the config file."),
]
LogLevelOption = Annotated[
    str,
    typer.Option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)."),
]


def _setup(config_path: Path | None, db_url: str | None, log_level: str) -> ServiceConfig:
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = load_service_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc
    if db_url is not None:
        config = replace(config, db_url=db_url)
    return config


def _build_dispatcher(config: ServiceConfig, engine: Engine | None = None) -> TriggerDispatcher:
    session_factory = create_session_factory(engine or create_db_engine(config.db_url))
    rating_engine = RatingEngine(session_factory, params=config.elo)
    return TriggerDispatcher(
        rating_engine,
        session_factory,
        max_workers=config.max_workers,
        scan_limit=config.scan_limit,
    )


@app.command()
def init_db(
    config_path: ConfigOption = None,
    db_url: DbUrlOption = None,
    log_level: LogLevelOption = "INFO",
) -> None:
    """Create the match, participant, rating and history tables if missing."""
    config = _setup(config_path, db_url, log_level)
    ensure_schema(create_db_engine(config.db_url))
    typer.echo("schema ready")


@app.command()
def process(
    match_id: Annotated[int, typer.Argument(help="Match id to rate.")],
    config_path: ConfigOption = None,
    db_url: DbUrlOption = None,
    log_level: LogLevelOption = "INFO",
) -> None:
    """Rate one match now and print the per-player changes."""
    config = _setup(config_path, db_url, log_level)
    dispatcher = _build_dispatcher(config)
    try:
        result = dispatcher.process_now(match_id)
    except EngineError as exc:
        typer.echo(f"error match_id={match_id} reason={exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"match_id={result.match_id} outcome={result.outcome.value}")
    for change in result.changes:
        typer.echo(
            f"player_id={change.player_id} "
            f"team={int(change.team_slot)} "
            f"won={change.won} "
            f"old_rating={change.old_rating} "
            f"new_rating={change.new_rating} "
            f"change={change.change_amount:+d}"
        )


@app.command()
def scan(
    config_path: ConfigOption = None,
    db_url: DbUrlOption = None,
    log_level: LogLevelOption = "INFO",
) -> None:
    """Run a single scan cycle over unprocessed completed matches."""
    config = _setup(config_path, db_url, log_level)
    summary = _build_dispatcher(config).scan_once()
    typer.echo(
        f"discovered={summary.discovered} "
        f"processed={summary.processed} "
        f"already_processed={summary.already_processed} "
        f"skipped={summary.skipped} "
        f"failed={summary.failed}"
    )
    if summary.failed:
        raise typer.Exit(code=1)


@app.command()
def watch(
    config_path: ConfigOption = None,
    db_url: DbUrlOption = None,
    interval: Annotated[
        float | None,
        typer.Option("--interval", help="Poll interval in seconds. Overrides the config file."),
    ] = None,
    log_level: LogLevelOption = "INFO",
) -> None:
    """Scan for unprocessed matches on a fixed interval until interrupted."""
    config = _setup(config_path, db_url, log_level)
    db_engine = create_db_engine(config.db_url)
    if not check_connection(db_engine):
        typer.echo("database health check failed", err=True)
        raise typer.Exit(code=1)
    dispatcher = _build_dispatcher(config, db_engine)

    poll_interval = interval if interval is not None else config.poll_interval_seconds
    if poll_interval <= 0:
        raise typer.BadParameter("--interval must be greater than 0")

    scheduler = PollingScheduler(dispatcher.scan_once, interval_seconds=poll_interval, run_immediately=True)
    scheduler.start()
    typer.echo(f"watching interval_seconds={poll_interval} max_workers={config.max_workers}")
    try:
        scheduler.wait()
    except KeyboardInterrupt:
        typer.echo("shutting down")
    finally:
        scheduler.stop()


@app.command()
def leaderboard(
    league: Annotated[League, typer.Argument(help="League to rank.")],
    limit: Annotated[int, typer.Option("--limit", help="Number of players to show.")] = 10,
    config_path: ConfigOption = None,
    db_url: DbUrlOption = None,
    log_level: LogLevelOption = "WARNING",
) -> None:
    """Print the top-rated players in one league."""
    if limit <= 0:
        raise typer.BadParameter("--limit must be greater than 0")
    config = _setup(config_path, db_url, log_level)
    session_factory = create_session_factory(create_db_engine(config.db_url))
    with session_factory() as session:
        records = RatingStore().leaderboard(session, league, limit=limit)

    if not records:
        typer.echo(f"no ratings for league={league.value}")
        return
    for rank, record in enumerate(records, start=1):
        typer.echo(
            f"rank={rank} player_id={record.player_id} rating={record.rating} "
            f"wins={record.wins} losses={record.losses}"
        )


@app.command()
def history(
    player_id: Annotated[int, typer.Argument(help="Player id.")],
    league: Annotated[League | None, typer.Option("--league", help="Only one league.")] = None,
    limit: Annotated[int, typer.Option("--limit", help="Number of entries to show.")] = 20,
    config_path: ConfigOption = None,
    db_url: DbUrlOption = None,
    log_level: LogLevelOption = "WARNING",
) -> None:
    """Print a player's most recent rating changes."""
    config = _setup(config_path, db_url, log_level)
    session_factory = create_session_factory(create_db_engine(config.db_url))
    with session_factory() as session:
        entries = HistoryLedger().list_for_player(session, player_id, league=league, limit=limit)

    if not entries:
        typer.echo(f"no history for player_id={player_id}")
        return
    for entry in entries:
        typer.echo(
            f"match_id={entry.match_id} league={entry.league.value} "
            f"old_rating={entry.old_rating} new_rating={entry.new_rating} "
            f"change={entry.change_amount:+d}"
        )


if __name__ == "__main__":
    app()
