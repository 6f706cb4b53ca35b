"""PostgreSQL implementation of the Database protocol.

Uses asyncpg for async access. All application SQL uses ``?``
placeholders; this backend translates them to ``$N`` at execute time.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import asyncpg

from personal_diary.errors import StorageError

if TYPE_CHECKING:
    from personal_diary.db.backend import Cursor, Row

logger = logging.getLogger(__name__)

# Pre-compiled regex for placeholder translation
_PLACEHOLDER_RE = re.compile(r"\?")

_DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def _translate_placeholders(sql: str) -> str:
    """Convert ``?`` placeholders to ``$1, $2, ...`` for asyncpg."""
    counter = 0

    def _replace(_match: re.Match[str]) -> str:
        nonlocal counter
        counter += 1
        return f"${counter}"

    return _PLACEHOLDER_RE.sub(_replace, sql)


class PostgresRow:
    """Wraps asyncpg.Record to satisfy the Row protocol."""

    def __init__(self, record: asyncpg.Record) -> None:
        """Initialize with an asyncpg Record."""
        self._record = record

    def __getitem__(self, key: str | int) -> Any:
        """Get a column value by name or position."""
        return self._record[key]

    def keys(self) -> list[str]:
        """Return column names."""
        return list(self._record.keys())


class PostgresCursor:
    """Wraps a list of asyncpg.Record as a Cursor.

    asyncpg returns results eagerly; there's no server-side cursor for
    simple queries. This wraps the result list to match the Cursor protocol.
    """

    def __init__(self, rows: list[asyncpg.Record], status: str | None = None) -> None:
        """Initialize with result rows and optional status string."""
        self._rows = rows
        self._index = 0
        self._rowcount = self._parse_rowcount(status)

    @property
    def rowcount(self) -> int:
        """Number of rows affected by the last operation."""
        return self._rowcount

    async def fetchone(self) -> Row | None:
        """Fetch the next row, or None if exhausted."""
        if self._index >= len(self._rows):
            return None
        row = PostgresRow(self._rows[self._index])
        self._index += 1
        return row

    async def fetchall(self) -> list[Row]:
        """Fetch all remaining rows."""
        remaining: list[Row] = [PostgresRow(r) for r in self._rows[self._index :]]
        self._index = len(self._rows)
        return remaining

    @staticmethod
    def _parse_rowcount(status: str | None) -> int:
        """Parse affected row count from asyncpg status string.

        Examples: "INSERT 0 1" → 1, "UPDATE 3" → 3, "DELETE 0" → 0.
        """
        if not status:
            return -1
        parts = status.split()
        if len(parts) >= 2:
            try:
                return int(parts[-1])
            except ValueError:
                return -1
        return -1


class PostgresBackend:
    """PostgreSQL implementation of the Database protocol.

    Outside a transaction each ``execute()`` borrows a pooled connection
    and asyncpg auto-commits. Inside ``transaction()`` the task keeps one
    connection until the block exits.
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        """Initialize with an asyncpg connection pool."""
        self._pool = pool
        self._tx_conns: dict[asyncio.Task[Any] | None, asyncpg.Connection] = {}

    @classmethod
    async def create(cls, url: str) -> PostgresBackend:
        """Create a PostgresBackend from a connection URL."""
        try:
            pool = await asyncpg.create_pool(url, min_size=2, max_size=10)
        except _DRIVER_ERRORS as e:
            raise StorageError(f"Could not connect to PostgreSQL: {e}") from e
        return cls(pool)

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
        conn = self._tx_conns.get(asyncio.current_task())
        if conn is not None:
            yield conn
            return
        async with self._pool.acquire() as pooled:
            yield pooled

    async def execute(self, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> Cursor:
        """Execute a single SQL statement and return a cursor."""
        pg_sql = _translate_placeholders(sql)
        try:
            async with self._connection() as conn:
                stmt = await conn.prepare(pg_sql)
                if stmt.get_attributes():
                    rows = await conn.fetch(pg_sql, *params)
                    return PostgresCursor(rows)
                status = await conn.execute(pg_sql, *params)
                return PostgresCursor([], status=status)
        except _DRIVER_ERRORS as e:
            raise StorageError(f"PostgreSQL error: {e}") from e

    async def executemany(self, sql: str, params_seq: list[tuple[Any, ...] | list[Any]]) -> None:
        """Execute a SQL statement for each set of parameters."""
        pg_sql = _translate_placeholders(sql)
        try:
            async with self._connection() as conn:
                await conn.executemany(pg_sql, params_seq)
        except _DRIVER_ERRORS as e:
            raise StorageError(f"PostgreSQL error: {e}") from e

    async def executescript(self, sql: str) -> None:
        """Execute multiple SQL statements."""
        try:
            async with self._connection() as conn:
                await conn.execute(sql)
        except _DRIVER_ERRORS as e:
            raise StorageError(f"PostgreSQL error: {e}") from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Pin a pooled connection to this task inside a server-side transaction."""
        task = asyncio.current_task()
        if task in self._tx_conns:
            yield
            return
        try:
            async with self._pool.acquire() as conn, conn.transaction():
                self._tx_conns[task] = conn
                try:
                    yield
                finally:
                    del self._tx_conns[task]
        except _DRIVER_ERRORS as e:
            raise StorageError(f"PostgreSQL transaction failed: {e}") from e

    async def commit(self) -> None:
        """No-op: statements auto-commit or commit with their transaction block."""

    async def rollback(self) -> None:
        """No-op: a failing transaction block rolls back on exit."""

    async def close(self) -> None:
        """Close the connection pool."""
        await self._pool.close()

    # -- Maintenance --

    async def vacuum(self) -> str:
        """Run ANALYZE (Postgres equivalent of PRAGMA optimize + VACUUM)."""
        await self.execute("ANALYZE")
        return "Vacuum complete (ANALYZE)."

    # -- Schema --

    async def apply_schema(self) -> None:
        """Apply all PostgreSQL DDL."""
        await self.executescript("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS entries (
                seq BIGSERIAL PRIMARY KEY,
                id TEXT NOT NULL UNIQUE,
                user_id TEXT NOT NULL,
                title TEXT NOT NULL,
                content TEXT NOT NULL DEFAULT '',
                summary TEXT NOT NULL DEFAULT '',
                images TEXT NOT NULL DEFAULT '[]',
                version INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_entries_user ON entries(user_id);

            CREATE TABLE IF NOT EXISTS entry_history (
                id TEXT PRIMARY KEY,
                entry_id TEXT NOT NULL REFERENCES entries(id),
                user_id TEXT NOT NULL,
                title TEXT NOT NULL,
                content TEXT NOT NULL,
                version INTEGER NOT NULL,
                updated_at TEXT NOT NULL,
                UNIQUE(entry_id, version)
            );

            CREATE TABLE IF NOT EXISTS tags (
                seq BIGSERIAL PRIMARY KEY,
                id TEXT NOT NULL UNIQUE,
                user_id TEXT NOT NULL,
                name TEXT NOT NULL,
                name_key TEXT NOT NULL,
                color TEXT NOT NULL,
                created_at TEXT NOT NULL,
                UNIQUE(user_id, name_key)
            );

            CREATE TABLE IF NOT EXISTS entry_tags (
                entry_id TEXT NOT NULL REFERENCES entries(id),
                position INTEGER NOT NULL,
                name TEXT NOT NULL,
                name_key TEXT NOT NULL,
                PRIMARY KEY (entry_id, position)
            );
            CREATE INDEX IF NOT EXISTS idx_entry_tags_key ON entry_tags(name_key);
        """)

        async with self.transaction():
            cursor = await self.execute("SELECT version FROM schema_version")
            if await cursor.fetchone() is None:
                await self.execute("INSERT INTO schema_version (version) VALUES (?)", (1,))
