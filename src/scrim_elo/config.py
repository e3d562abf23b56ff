"""Load the rating service configuration from a TOML file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
import tomllib

from scrim_elo.db import DEFAULT_DB_URL
from scrim_elo.domain.elo import EloParameters
from scrim_elo.services.dispatcher import DEFAULT_POLL_INTERVAL_SECONDS


@dataclass(frozen=True)
class ServiceConfig:
    """Database, scheduler and Elo settings for one rating worker."""

    db_url: str = DEFAULT_DB_URL
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    max_workers: int = 1
    scan_limit: int | None = None
    elo: EloParameters = field(default_factory=EloParameters)
    file_path: Path | None = None

    def as_config_json(self) -> dict[str, Any]:
        return {
            "poll_interval_seconds": self.poll_interval_seconds,
            "max_workers": self.max_workers,
            "scan_limit": self.scan_limit,
            "initial_rating": self.elo.initial_rating,
            "k_factor": self.elo.k_factor,
            "scale_factor": self.elo.scale_factor,
        }


def load_service_config(file_path: Path | None) -> ServiceConfig:
    """Read ``file_path``; None yields the built-in defaults."""
    if file_path is None:
        return ServiceConfig()
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")
    if not file_path.is_file():
        raise ValueError(f"Config path is not a file: {file_path}")

    with file_path.open("rb") as file:
        raw = tomllib.load(file)
    return _parse_service_config(raw, file_path)


def _parse_service_config(raw: dict[str, Any], file_path: Path) -> ServiceConfig:
    database_raw = raw.get("database", {})
    scheduler_raw = raw.get("scheduler", {})
    elo_raw = raw.get("elo", {})

    db_url = str(database_raw.get("url", DEFAULT_DB_URL)).strip()
    if not db_url:
        raise ValueError(f"{file_path}: [database].url must not be empty")

    poll_interval_seconds = float(scheduler_raw.get("poll_interval_seconds", DEFAULT_POLL_INTERVAL_SECONDS))
    if poll_interval_seconds <= 0.0:
        raise ValueError(f"{file_path}: [scheduler].poll_interval_seconds must be > 0")

    max_workers = int(scheduler_raw.get("max_workers", 1))
    if max_workers <= 0:
        raise ValueError(f"{file_path}: [scheduler].max_workers must be > 0")

    scan_limit_value = scheduler_raw.get("scan_limit")
    scan_limit = None if scan_limit_value is None else int(scan_limit_value)
    if scan_limit is not None and scan_limit <= 0:
        raise ValueError(f"{file_path}: [scheduler].scan_limit must be > 0")

    elo = EloParameters(
        initial_rating=int(elo_raw.get("initial_rating", 1000)),
        k_factor=float(elo_raw.get("k_factor", 32.0)),
        scale_factor=float(elo_raw.get("scale_factor", 400.0)),
    )
    if elo.initial_rating <= 0:
        raise ValueError(f"{file_path}: [elo].initial_rating must be > 0")
    if elo.k_factor <= 0.0:
        raise ValueError(f"{file_path}: [elo].k_factor must be > 0")
    if elo.scale_factor <= 0.0:
        raise ValueError(f"{file_path}: [elo].scale_factor must be > 0")

    return ServiceConfig(
        db_url=db_url,
        poll_interval_seconds=poll_interval_seconds,
        max_workers=max_workers,
        scan_limit=scan_limit,
        elo=elo,
        file_path=file_path,
    )


__all__ = ["ServiceConfig", "load_service_config"]
