"""Settings loader for Jotter."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_file: str
    autosave_interval_s: float
    autosave_grace_s: float
    log_level: str


def load_settings() -> Settings:
    load_dotenv(find_dotenv(usecwd=True))
    data_dir = Path(os.environ.get("JOTTER_DATA_DIR", "~/.jotter")).expanduser()
    db_file = os.environ.get("JOTTER_DB_FILE", "notesapp.db")
    autosave_interval_s = _parse_positive_float(
        os.environ.get("JOTTER_AUTOSAVE_INTERVAL_S", "30"),
        "JOTTER_AUTOSAVE_INTERVAL_S",
    )
    autosave_grace_s = _parse_positive_float(
        os.environ.get("JOTTER_AUTOSAVE_GRACE_S", "5"), "JOTTER_AUTOSAVE_GRACE_S"
    )
    log_level = os.environ.get("JOTTER_LOG_LEVEL", "INFO").strip().upper()

    return Settings(
        data_dir=data_dir,
        db_file=db_file,
        autosave_interval_s=autosave_interval_s,
        autosave_grace_s=autosave_grace_s,
        log_level=log_level,
    )


def db_path(settings: Settings) -> Path:
    candidate = Path(settings.db_file).expanduser()
    if candidate.is_absolute():
        return candidate
    return settings.data_dir / candidate


def _parse_positive_float(value: str, name: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ValueError(f"Invalid float for {name}: {value}") from exc
    if parsed <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return parsed
