"""SQLite database helpers."""

from __future__ import annotations

import sqlite3
from pathlib import Path

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def connect(db_path_value: Path) -> sqlite3.Connection:
    # Shared across the UI loop and worker threads; callers serialize access.
    conn = sqlite3.connect(db_path_value, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def initialize_db(conn: sqlite3.Connection) -> int:
    """Bring the schema up to date; returns the resulting schema version."""
    return _apply_migrations(conn, MIGRATIONS_DIR)


def schema_version(conn: sqlite3.Connection) -> int:
    return int(conn.execute("PRAGMA user_version").fetchone()[0])


def _apply_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> int:
    scripts = sorted(migrations_dir.glob("*.sql"))
    if not scripts:
        raise FileNotFoundError(f"No schema migrations in {migrations_dir}")
    # Files are numbered from 1; user_version records the last one applied.
    version = schema_version(conn)
    for number, script in enumerate(scripts, start=1):
        if number <= version:
            continue
        conn.executescript(script.read_text(encoding="utf-8"))
        conn.execute(f"PRAGMA user_version = {number:d}")
        version = number
    conn.commit()
    return version
