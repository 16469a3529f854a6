"""Simple SQL migration runner."""

import logging
import sqlite3
from pathlib import Path

from agentsync.db.connection import open_db

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent


def apply_migrations(conn: sqlite3.Connection) -> list[str]:
    """Apply every pending ``*.sql`` file; the caller owns the transaction."""
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_migrations("
        "name TEXT PRIMARY KEY, "
        "applied_at TEXT NOT NULL)"
    )
    applied = {row[0] for row in conn.execute("SELECT name FROM schema_migrations").fetchall()}
    newly_applied: list[str] = []
    for file in sorted(MIGRATIONS_DIR.glob("*.sql")):
        if file.name in applied:
            continue
        for statement in file.read_text(encoding="utf-8").split(";"):
            if statement.strip():
                conn.execute(statement)
        conn.execute(
            "INSERT INTO schema_migrations(name, applied_at) VALUES(?, datetime('now'))",
            (file.name,),
        )
        newly_applied.append(file.name)
    if newly_applied:
        logger.info("Applied migrations: %s", ", ".join(newly_applied))
    return newly_applied


def run_migrations(db_path: str | None = None) -> list[str]:
    with open_db(db_path, write=True) as conn:
        return apply_migrations(conn)


if __name__ == "__main__":
    run_migrations()
