from __future__ import annotations

"""Applies numbered SQL files from migrations/ in order, recording each in
schema_version so a file runs at most once per database."""

import logging
import sqlite3
from pathlib import Path

from .connection import strip_pragmas

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def current_version(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT MAX(version) AS v FROM schema_version").fetchone()
    return row["v"] if row["v"] is not None else 0


def pending_migrations(after_version: int) -> list[tuple[int, Path]]:
    """Numbered migration files newer than ``after_version``, oldest first."""
    if not MIGRATIONS_DIR.exists():
        return []

    pending = []
    for mf in sorted(MIGRATIONS_DIR.glob("*.sql")):
        # Filenames look like 001_description.sql
        try:
            version = int(mf.stem.split("_")[0])
        except (ValueError, IndexError):
            logger.warning(f"Skipping non-numbered migration file: {mf.name}")
            continue
        if version > after_version:
            pending.append((version, mf))
    return pending


def run_migrations(conn: sqlite3.Connection) -> int:
    """Run all pending migrations. Returns how many were applied."""
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS schema_version (
            version     INTEGER PRIMARY KEY,
            description TEXT NOT NULL,
            applied_at  TEXT NOT NULL DEFAULT (datetime('now'))
        );
    """)

    applied = 0
    for version, mf in pending_migrations(current_version(conn)):
        logger.info(f"Applying migration {version}: {mf.name}")
        conn.executescript(strip_pragmas(mf.read_text()))
        conn.execute(
            "INSERT INTO schema_version (version, description) VALUES (?, ?)",
            (version, mf.stem),
        )
        conn.commit()
        applied += 1

    if applied:
        logger.info(f"Schema now at version {current_version(conn)}")
    return applied
