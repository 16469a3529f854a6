"""SQLite access for the record store."""

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from agentsync.config import get_settings

_PRAGMAS = (
    "PRAGMA foreign_keys = ON",
    "PRAGMA journal_mode = WAL",
    "PRAGMA busy_timeout = 30000",
)


def connect(db_path: str | None = None) -> sqlite3.Connection:
    path = Path(db_path or get_settings().app_db)
    path.parent.mkdir(parents=True, exist_ok=True)
    # Autocommit; writers open their own IMMEDIATE transaction through open_db.
    conn = sqlite3.connect(path, timeout=30.0, isolation_level=None)
    conn.row_factory = sqlite3.Row
    for pragma in _PRAGMAS:
        conn.execute(pragma)
    return conn


@contextmanager
def open_db(db_path: str | None = None, *, write: bool = False) -> Iterator[sqlite3.Connection]:
    """Yield a connection; with ``write`` the block runs as one IMMEDIATE transaction."""
    conn = connect(db_path)
    try:
        if not write:
            yield conn
            return
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")
    finally:
        conn.close()
