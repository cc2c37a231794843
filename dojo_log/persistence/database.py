"""SQLite database primitives for the training log."""

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)


async def open_connection(db_path: Path) -> aiosqlite.Connection:
    """Open (or create) the log database and ensure the schema exists.

    Returns an ``aiosqlite.Connection`` in WAL mode with ``Row`` rows and the
    ``casefold`` SQL function registered. The caller owns the connection.
    """
    if str(db_path) != ":memory:":
        db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = await aiosqlite.connect(str(db_path))
    try:
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.create_function("casefold", 1, _casefold)
        await init_schema(conn)
    except BaseException:
        await conn.close()
        raise
    return conn


async def init_schema(conn: aiosqlite.Connection) -> None:
    """Create the ``logs`` table and its ordering index if missing."""
    await conn.executescript(_SCHEMA_SQL)
    await conn.commit()
    logger.info("Log schema ready")


def _casefold(value):
    if value is None:
        return None
    return str(value).casefold()


_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL,
    technique_name TEXT NOT NULL,
    notes TEXT,
    teacher TEXT,
    partner TEXT,
    source TEXT CHECK (source IS NULL OR source IN ('manual', 'voice'))
);

CREATE INDEX IF NOT EXISTS idx_logs_date ON logs(date DESC, id DESC);
"""


__all__ = ["open_connection", "init_schema"]
