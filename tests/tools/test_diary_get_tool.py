"""Tests for the diary_get MCP tool."""

import pytest

from personal_diary.tools.diary_get import _MAX_IDS, get_entries


@pytest.mark.asyncio
async def test_get_single_entry(store):
    entry = await store.create("Day one", "Full content here", tags=["life"])
    result = await get_entries(store, [entry.id])
    assert entry.id in result
    assert "Full content here" in result
    assert "#life" in result
    assert "1 result(s)" in result


@pytest.mark.asyncio
async def test_get_multiple_with_missing(store):
    a = await store.create("A", "alpha")
    b = await store.create("B", "beta")
    result = await get_entries(store, [a.id, "nope", b.id])
    assert "alpha" in result
    assert "beta" in result
    assert "[nope] not found" in result
    assert "3 result(s)" in result


@pytest.mark.asyncio
async def test_get_shows_history_count(store):
    entry = await store.create("Edited", "v1")
    await store.update(entry.id, content="v2")
    result = await get_entries(store, [entry.id])
    assert "(v2)" in result
    assert "1 earlier version(s)" in result


@pytest.mark.asyncio
async def test_get_touches_recent(store, tracker):
    a = await store.create("A")
    b = await store.create("B")
    await get_entries(store, [a.id, b.id, "nope"])
    assert tracker.ids() == [b.id, a.id]


@pytest.mark.asyncio
async def test_too_many_ids(store):
    ids = [f"id-{i}" for i in range(_MAX_IDS + 1)]
    result = await get_entries(store, ids)
    assert result == f"Error: Maximum {_MAX_IDS} IDs per request (got {_MAX_IDS + 1})."
