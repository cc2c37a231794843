"""Transactional access to persisted training logs."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Optional

import aiosqlite

from contracts.v1 import LogEntryInput
from dojo_log.config import DEFAULT_LIST_LIMIT
from dojo_log.errors import InsertFailed, QueryFailed, StorageUnavailable
from dojo_log.models import LogEntry

from . import database

logger = logging.getLogger(__name__)

_ORDER_BY = "ORDER BY date DESC, id DESC"


class LogStore:
    """Single source of truth for persisted logs.

    The connection is opened lazily by the first operation (or an explicit
    :meth:`initialize`) and shared by every caller in the process. Storage
    errors propagate to the immediate caller; nothing is retried here.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._conn: Optional[aiosqlite.Connection] = None
        self._init_error: Optional[StorageUnavailable] = None
        self._init_lock = asyncio.Lock()
        self._op_lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._conn is not None

    async def initialize(self) -> None:
        """Open the database and ensure the schema exists, at most once.

        Concurrent callers queue behind the first one and observe its
        outcome. A failed open is cached and re-raised on every later call.
        """
        if self._conn is not None:
            return
        async with self._init_lock:
            if self._conn is not None:
                return
            if self._init_error is not None:
                raise self._init_error
            try:
                self._conn = await database.open_connection(self.db_path)
            except (sqlite3.Error, OSError) as e:
                logger.error("Cannot open log database %s: %s", self.db_path, e)
                self._init_error = StorageUnavailable(
                    f"Cannot open log database {self.db_path}: {e}"
                )
                raise self._init_error from e

    async def _connection(self) -> aiosqlite.Connection:
        await self.initialize()
        return self._conn

    async def insert(self, entry: LogEntryInput) -> int:
        """Persist one entry atomically and return its new id."""
        conn = await self._connection()
        async with self._op_lock:
            try:
                cursor = await conn.execute(
                    """INSERT INTO logs
                       (date, technique_name, notes, teacher, partner, source)
                       VALUES (?, ?, ?, ?, ?, ?)""",
                    (entry.date, entry.technique_name, entry.notes,
                     entry.teacher, entry.partner, entry.source),
                )
                await conn.commit()
            except sqlite3.Error as e:
                await conn.rollback()
                logger.warning("Insert of %r failed: %s", entry.technique_name, e)
                raise InsertFailed(f"Could not save log: {e}", cause=e) from e
        logger.info("Inserted log #%d (%s)", cursor.lastrowid, entry.technique_name)
        return cursor.lastrowid

    async def list(self, limit: Optional[int] = DEFAULT_LIST_LIMIT) -> list[LogEntry]:
        """Return up to *limit* entries, newest first. ``None`` means unbounded."""
        return await self._select("SELECT * FROM logs", (), limit)

    async def search(self, query: str, limit: Optional[int] = None) -> list[LogEntry]:
        """Case-insensitive substring match over technique name and notes.

        A blank query matches every row.
        """
        needle = (query or "").strip().casefold()
        if not needle:
            return await self._select("SELECT * FROM logs", (), limit)
        return await self._select(
            """SELECT * FROM logs
               WHERE instr(casefold(technique_name), ?) > 0
                  OR instr(casefold(coalesce(notes, '')), ?) > 0""",
            (needle, needle),
            limit,
        )

    async def get(self, entry_id: int) -> Optional[LogEntry]:
        """Load a single entry by id."""
        rows = await self._select("SELECT * FROM logs WHERE id = ?", (entry_id,), None)
        return rows[0] if rows else None

    async def count(self) -> int:
        conn = await self._connection()
        async with self._op_lock:
            try:
                async with conn.execute("SELECT COUNT(*) FROM logs") as cursor:
                    row = await cursor.fetchone()
            except sqlite3.Error as e:
                raise QueryFailed(f"Could not count logs: {e}", cause=e) from e
        return row[0]

    async def delete(self, entry_id: int) -> bool:
        """Delete one entry. Returns True if a row was deleted.

        Deleting an unknown id is a successful no-op.
        """
        conn = await self._connection()
        async with self._op_lock:
            try:
                cursor = await conn.execute("DELETE FROM logs WHERE id = ?", (entry_id,))
                await conn.commit()
            except sqlite3.Error as e:
                await conn.rollback()
                raise QueryFailed(f"Could not delete log #{entry_id}: {e}", cause=e) from e
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Deleted log #%d", entry_id)
        return deleted

    async def close(self) -> None:
        """Close the shared connection. Safe to call when never opened."""
        async with self._init_lock:
            if self._conn is not None:
                await self._conn.close()
                self._conn = None

    async def _select(self, sql: str, params: tuple, limit: Optional[int]) -> list[LogEntry]:
        if limit is not None and limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit}")
        conn = await self._connection()
        sql = f"{sql} {_ORDER_BY} LIMIT ?"
        params = params + (-1 if limit is None else limit,)
        async with self._op_lock:
            try:
                async with conn.execute(sql, params) as cursor:
                    rows = await cursor.fetchall()
            except sqlite3.Error as e:
                raise QueryFailed(f"Could not read logs: {e}", cause=e) from e
        return [LogEntry.from_row(r) for r in rows]


__all__ = ["LogStore"]
