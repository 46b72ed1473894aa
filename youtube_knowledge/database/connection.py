import sqlite3
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"


def strip_pragmas(sql: str) -> str:
    """Drop PRAGMA lines; get_connection() already sets them per connection."""
    return "\n".join(
        line for line in sql.splitlines() if not line.strip().upper().startswith("PRAGMA")
    )


def get_connection(db_path: str) -> sqlite3.Connection:
    """Create a SQLite connection with WAL mode and foreign keys enabled.

    The connection may be shared with the Flask worker threads; callers
    serialize writes through Repository.
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, timeout=30, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_database(db_path: str) -> sqlite3.Connection:
    """Create the analysis tables and indexes, then apply pending migrations."""
    conn = get_connection(db_path)
    conn.executescript(strip_pragmas(SCHEMA_PATH.read_text()))

    from .migrator import run_migrations
    run_migrations(conn)

    logger.info(f"Database initialized at {db_path}")
    return conn
