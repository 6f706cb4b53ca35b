"""Shared test fixtures."""

from datetime import UTC, datetime, timedelta

import pytest_asyncio

from personal_diary.db.connection import create_connection
from personal_diary.db.retry import RetryPolicy
from personal_diary.errors import StorageError
from personal_diary.identity import StaticIdentity
from personal_diary.store.entry_store import EntryStore
from personal_diary.store.recent import RecentAccessTracker
from personal_diary.store.tag_store import TagStore

START = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)


class FakeClock:
    """Deterministic clock that advances by ``step`` on every call."""

    def __init__(self, start: datetime = START, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def now(self) -> datetime:
        value = self.current
        self.current += self.step
        return value


class FlakyDatabase:
    """Database wrapper that fails statements containing ``pattern``.

    The first ``failures`` matching statements raise StorageError; later
    ones go through. Everything else is delegated to the wrapped backend.
    """

    def __init__(self, inner, pattern: str, failures: int = 1):
        self.inner = inner
        self.pattern = pattern
        self.failures = failures
        self.raised = 0

    def _maybe_fail(self, sql: str) -> None:
        if self.pattern in sql and self.raised < self.failures:
            self.raised += 1
            raise StorageError(f"injected failure #{self.raised}")

    async def execute(self, sql, params=()):
        self._maybe_fail(sql)
        return await self.inner.execute(sql, params)

    async def executemany(self, sql, params_seq):
        self._maybe_fail(sql)
        await self.inner.executemany(sql, params_seq)

    async def executescript(self, sql):
        await self.inner.executescript(sql)

    def transaction(self):
        return self.inner.transaction()

    async def commit(self):
        await self.inner.commit()

    async def rollback(self):
        await self.inner.rollback()

    async def close(self):
        await self.inner.close()

    async def vacuum(self):
        return await self.inner.vacuum()


NO_DELAY = RetryPolicy(attempts=3, delay=0)


@pytest_asyncio.fixture
async def db():
    """In-memory database with full schema."""
    conn = await create_connection(":memory:")
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def clock():
    """Fake clock starting at 2024-03-01 09:00 UTC."""
    return FakeClock()


@pytest_asyncio.fixture
async def identity():
    """Signed-in user."""
    return StaticIdentity("user-1")


@pytest_asyncio.fixture
async def tracker():
    """Recent-access tracker with the default capacity."""
    return RecentAccessTracker()


@pytest_asyncio.fixture
async def tag_store(db, identity, clock):
    """Tag store backed by in-memory DB."""
    return TagStore(db, identity, clock=clock, retry=NO_DELAY)


@pytest_asyncio.fixture
async def store(db, tag_store, identity, clock, tracker):
    """Entry store backed by in-memory DB."""
    return EntryStore(db, tag_store, identity, clock=clock, tracker=tracker, retry=NO_DELAY)


def make_store(db, identity, clock=None, tracker=None) -> EntryStore:
    """Entry store over ``db`` (e.g. a FlakyDatabase) sharing its tag store's settings."""
    clock = clock or FakeClock()
    tags = TagStore(db, identity, clock=clock, retry=NO_DELAY)
    return EntryStore(db, tags, identity, clock=clock, tracker=tracker, retry=NO_DELAY)
