"""Tests for the typer CLI in scripts/elo_ratings.py."""

from __future__ import annotations

from typer.testing import CliRunner

from elo_ratings import app

runner = CliRunner()

TWO_VS_TWO = {1: 1, 2: 1, 3: 2, 4: 2}


def test_init_db_creates_schema(tmp_path) -> None:
    db_url = f"sqlite+pysqlite:///{tmp_path / 'fresh.db'}"
    result = runner.invoke(app, ["init-db", "--db-url", db_url])
    assert result.exit_code == 0, result.output
    assert "schema ready" in result.output


def test_process_prints_changes(db_url, add_match) -> None:
    match_id = add_match(TWO_VS_TWO)

    result = runner.invoke(app, ["process", str(match_id), "--db-url", db_url])

    assert result.exit_code == 0, result.output
    assert f"match_id={match_id} outcome=processed" in result.output
    assert "player_id=1 team=1 won=True old_rating=1000 new_rating=1016 change=+16" in result.output
    assert "player_id=3 team=2 won=False old_rating=1000 new_rating=984 change=-16" in result.output


def test_process_reports_engine_errors(db_url, db_engine) -> None:
    result = runner.invoke(app, ["process", "404", "--db-url", db_url])
    assert result.exit_code == 1
    assert "error match_id=404" in result.output


def test_scan_then_leaderboard_and_history(db_url, add_match) -> None:
    match_id = add_match(TWO_VS_TWO, league="Master")

    scan = runner.invoke(app, ["scan", "--db-url", db_url])
    assert scan.exit_code == 0, scan.output
    assert "discovered=1 processed=1" in scan.output

    board = runner.invoke(app, ["leaderboard", "Master", "--limit", "2", "--db-url", db_url])
    assert board.exit_code == 0, board.output
    assert "rank=1 player_id=1 rating=1016" in board.output
    assert "rank=2 player_id=2 rating=1016" in board.output

    history = runner.invoke(app, ["history", "3", "--db-url", db_url])
    assert history.exit_code == 0, history.output
    assert f"match_id={match_id} league=Master old_rating=1000 new_rating=984 change=-16" in history.output


def test_leaderboard_empty_league(db_url, db_engine) -> None:
    result = runner.invoke(app, ["leaderboard", "Academy", "--db-url", db_url])
    assert result.exit_code == 0, result.output
    assert "no ratings for league=Academy" in result.output
