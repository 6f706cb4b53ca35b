"""Tests for SQLiteBackend transactions and error translation."""

import asyncio

import pytest

from personal_diary.errors import StorageError


@pytest.mark.asyncio
async def test_transaction_commits(db):
    async with db.transaction():
        await db.execute("INSERT INTO schema_version (version) VALUES (?)", (99,))
    cursor = await db.execute("SELECT COUNT(*) FROM schema_version WHERE version = 99")
    assert (await cursor.fetchone())[0] == 1


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_error(db):
    with pytest.raises(RuntimeError):
        async with db.transaction():
            await db.execute("INSERT INTO schema_version (version) VALUES (?)", (42,))
            raise RuntimeError("boom")
    cursor = await db.execute("SELECT COUNT(*) FROM schema_version WHERE version = 42")
    assert (await cursor.fetchone())[0] == 0


@pytest.mark.asyncio
async def test_nested_transaction_joins_outer(db):
    with pytest.raises(RuntimeError):
        async with db.transaction():
            async with db.transaction():
                await db.execute("INSERT INTO schema_version (version) VALUES (?)", (7,))
            raise RuntimeError("outer fails after inner finished")
    cursor = await db.execute("SELECT COUNT(*) FROM schema_version WHERE version = 7")
    assert (await cursor.fetchone())[0] == 0


@pytest.mark.asyncio
async def test_sql_error_becomes_storage_error(db):
    with pytest.raises(StorageError):
        await db.execute("SELECT * FROM no_such_table")


@pytest.mark.asyncio
async def test_executemany_error_becomes_storage_error(db):
    with pytest.raises(StorageError):
        await db.executemany("INSERT INTO no_such_table VALUES (?)", [(1,), (2,)])


@pytest.mark.asyncio
async def test_reader_waits_for_transaction(db):
    """A concurrent reader sees the state before or after a transaction, never between."""
    inserted = asyncio.Event()
    release = asyncio.Event()

    async def writer():
        async with db.transaction():
            await db.execute("INSERT INTO schema_version (version) VALUES (?)", (5,))
            inserted.set()
            await release.wait()
            await db.execute("INSERT INTO schema_version (version) VALUES (?)", (6,))

    async def reader():
        await inserted.wait()
        cursor = await db.execute("SELECT COUNT(*) FROM schema_version WHERE version IN (5, 6)")
        return (await cursor.fetchone())[0]

    writer_task = asyncio.create_task(writer())
    reader_task = asyncio.create_task(reader())
    await inserted.wait()
    await asyncio.sleep(0)
    assert not reader_task.done()
    release.set()
    await writer_task
    assert await reader_task == 2


@pytest.mark.asyncio
async def test_vacuum_in_memory(db):
    result = await db.vacuum()
    assert result.startswith("Vacuum complete.")


@pytest.mark.asyncio
async def test_cursor_fetchone_then_fetchall(db):
    cursor = await db.execute("SELECT 1 UNION ALL SELECT 2 UNION ALL SELECT 3")
    first = await cursor.fetchone()
    assert first[0] == 1
    rest = await cursor.fetchall()
    assert [r[0] for r in rest] == [2, 3]
    assert await cursor.fetchone() is None
