"""SQLite implementation of the Database protocol.

Thin wrapper around aiosqlite.Connection; no SQL translation needed.
A single connection is shared, so one ``asyncio.Lock`` serialises
transactions and standalone statements; readers never see a transaction
that is halfway applied.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from personal_diary.errors import StorageError

if TYPE_CHECKING:
    import aiosqlite

    from personal_diary.db.backend import Cursor, Row

logger = logging.getLogger(__name__)


class SQLiteCursor:
    """Buffered result of one statement, satisfying the Cursor protocol."""

    def __init__(self, rows: list[Row], rowcount: int) -> None:
        """Initialize with already-fetched rows."""
        self._rows = rows
        self._index = 0
        self._rowcount = rowcount

    @property
    def rowcount(self) -> int:
        """Number of rows affected by the last operation."""
        return self._rowcount

    async def fetchone(self) -> Row | None:
        """Fetch the next row, or None if exhausted."""
        if self._index >= len(self._rows):
            return None
        row = self._rows[self._index]
        self._index += 1
        return row

    async def fetchall(self) -> list[Row]:
        """Fetch all remaining rows."""
        remaining = self._rows[self._index :]
        self._index = len(self._rows)
        return remaining


class SQLiteBackend:
    """SQLite implementation of the Database protocol.

    The raw connection is exposed as ``_conn`` for SQLite-specific
    operations (PRAGMA, etc.) that only run during connection setup.
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        """Initialize with an aiosqlite connection."""
        self._conn = conn
        self._lock = asyncio.Lock()
        self._tx_owner: asyncio.Task[Any] | None = None

    def _in_transaction(self) -> bool:
        task = asyncio.current_task()
        return task is not None and task is self._tx_owner

    async def execute(self, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> Cursor:
        """Execute a single SQL statement and return a cursor."""
        if self._in_transaction():
            return await self._execute(sql, params)
        async with self._lock:
            return await self._execute(sql, params)

    async def _execute(self, sql: str, params: tuple[Any, ...] | list[Any]) -> Cursor:
        try:
            cursor = await self._conn.execute(sql, params)
            rows = list(await cursor.fetchall())
            rowcount = cursor.rowcount if cursor.rowcount is not None else -1
            await cursor.close()
        except sqlite3.Error as e:
            raise StorageError(f"SQLite error: {e}") from e
        return SQLiteCursor(rows, rowcount)

    async def executemany(self, sql: str, params_seq: list[tuple[Any, ...] | list[Any]]) -> None:
        """Execute a SQL statement for each set of parameters."""
        try:
            if self._in_transaction():
                await self._conn.executemany(sql, params_seq)
                return
            async with self._lock:
                await self._conn.executemany(sql, params_seq)
        except sqlite3.Error as e:
            raise StorageError(f"SQLite error: {e}") from e

    async def executescript(self, sql: str) -> None:
        """Execute multiple SQL statements (DDL, migrations, VACUUM)."""
        try:
            async with self._lock:
                await self._conn.executescript(sql)
        except sqlite3.Error as e:
            raise StorageError(f"SQLite error: {e}") from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Hold the connection for one task; commit on success, roll back on error."""
        if self._in_transaction():
            yield
            return
        async with self._lock:
            self._tx_owner = asyncio.current_task()
            try:
                yield
                await self.commit()
            except BaseException:
                await self._rollback_after_failure()
                raise
            finally:
                self._tx_owner = None

    async def _rollback_after_failure(self) -> None:
        try:
            await self._conn.rollback()
        except sqlite3.Error:
            logger.warning("Rollback failed", exc_info=True)

    async def commit(self) -> None:
        """Commit the current transaction."""
        try:
            await self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"SQLite commit failed: {e}") from e

    async def rollback(self) -> None:
        """Discard the current transaction."""
        try:
            await self._conn.rollback()
        except sqlite3.Error as e:
            raise StorageError(f"SQLite rollback failed: {e}") from e

    async def close(self) -> None:
        """Close the database connection."""
        await self._conn.close()

    # -- Maintenance --

    async def vacuum(self) -> str:
        """Run PRAGMA optimize and VACUUM. Returns status string."""
        await self.execute("PRAGMA optimize")
        await self.executescript("VACUUM;")

        size_info = ""
        cursor = await self.execute("PRAGMA database_list")
        db_row = await cursor.fetchone()
        if db_row and db_row[2]:
            try:
                size = os.path.getsize(db_row[2])
                if size < 1024 * 1024:
                    size_info = f" Database size: {size / 1024:.1f} KB"
                else:
                    size_info = f" Database size: {size / (1024 * 1024):.1f} MB"
            except OSError:
                logger.debug("Could not stat database file %s", db_row[2])

        return f"Vacuum complete.{size_info}"

    # -- Schema --

    async def apply_schema(self) -> None:
        """Apply SQLite DDL and migrations."""
        from personal_diary.db.schema import apply_schema

        await apply_schema(self)
