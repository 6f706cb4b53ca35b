"""Tests for the entry store."""

from datetime import timedelta

import pytest

from personal_diary.errors import AuthRequiredError, StorageError, ValidationError
from personal_diary.identity import StaticIdentity
from personal_diary.store.entry_store import EntryStore
from personal_diary.store.recent import RecentAccessTracker
from personal_diary.store.summary import SUMMARY_LENGTH
from personal_diary.store.tag_store import TagStore
from tests.conftest import START, FakeClock, FlakyDatabase, make_store


@pytest.mark.asyncio
async def test_create_entry(store):
    entry = await store.create(
        "First day", "Started the **new** job.", tags=["Work"], images=["https://x/a.png"]
    )
    assert entry.title == "First day"
    assert entry.content == "Started the **new** job."
    assert entry.summary == "Started the new job."
    assert entry.tags == ["Work"]
    assert entry.images == ["https://x/a.png"]
    assert entry.version == 1
    assert entry.history == []
    assert entry.created_at == entry.updated_at
    assert entry.created_at >= START


@pytest.mark.asyncio
async def test_create_assigns_unique_ids(store):
    a = await store.create("A")
    b = await store.create("B")
    assert a.id != b.id


@pytest.mark.asyncio
async def test_create_persists(store):
    entry = await store.create("Persisted", "body", tags=["home"])
    loaded = await store.get_by_id(entry.id)
    assert loaded is not None
    assert loaded.title == "Persisted"
    assert loaded.content == "body"
    assert loaded.tags == ["home"]
    assert loaded.version == 1
    assert loaded.history == []


@pytest.mark.asyncio
@pytest.mark.parametrize("title", ["", "   ", "\n\t"])
async def test_create_rejects_blank_title(store, title):
    with pytest.raises(ValidationError):
        await store.create(title, "content")
    assert await store.list_entries() == []


@pytest.mark.asyncio
async def test_create_strips_title(store):
    entry = await store.create("  Padded  ")
    assert entry.title == "Padded"


@pytest.mark.asyncio
async def test_create_resolves_tags_case_insensitively(store, tag_store):
    first = await store.create("One", tags=["Work"])
    second = await store.create("Two", tags=["work"])

    tags = await tag_store.list_tags()
    assert len(tags) == 1
    assert tags[0].name == "Work"
    assert first.tags == ["Work"]
    # Canonical spelling of the existing tag wins
    assert second.tags == ["Work"]


@pytest.mark.asyncio
async def test_create_dedupes_tags(store):
    entry = await store.create("Dupes", tags=["travel", " Travel ", "food", "TRAVEL"])
    assert entry.tags == ["travel", "food"]


@pytest.mark.asyncio
async def test_update_content_bumps_version_and_snapshots(store):
    entry = await store.create("Alpha", "v1 content")
    updated = await store.update(entry.id, content="v2 content")

    assert updated is not None
    assert updated.version == 2
    assert updated.content == "v2 content"
    assert updated.summary == "v2 content"
    assert updated.title == "Alpha"
    assert updated.created_at == entry.created_at
    assert updated.updated_at > entry.updated_at
    assert len(updated.history) == 1
    snap = updated.history[0]
    assert snap.version == 1
    assert snap.content == "v1 content"
    assert snap.title == "Alpha"
    assert snap.updated_at == entry.updated_at


@pytest.mark.asyncio
async def test_three_updates_build_ordered_history(store):
    entry = await store.create("Alpha", "c0")
    for i in range(1, 4):
        await store.update(entry.id, content=f"c{i}")

    loaded = await store.get_by_id(entry.id)
    assert loaded is not None
    assert loaded.version == 4
    assert [h.version for h in loaded.history] == [1, 2, 3]
    assert [h.content for h in loaded.history] == ["c0", "c1", "c2"]
    assert loaded.content == "c3"


@pytest.mark.asyncio
async def test_version_matches_history_length(store):
    entry = await store.create("Counting", "x")
    await store.update(entry.id, title="Counting 2")
    await store.update(entry.id, tags=["a"])
    await store.update(entry.id, images=[])
    await store.update(entry.id)

    loaded = await store.get_by_id(entry.id)
    assert loaded is not None
    assert loaded.version == len(loaded.history) + 1 == 5


@pytest.mark.asyncio
async def test_update_leaves_unprovided_fields(store):
    entry = await store.create("Keep", "body text", tags=["t1"], images=["img"])
    updated = await store.update(entry.id, title="Renamed")

    assert updated is not None
    assert updated.title == "Renamed"
    assert updated.content == "body text"
    assert updated.summary == entry.summary
    assert updated.tags == ["t1"]
    assert updated.images == ["img"]


@pytest.mark.asyncio
async def test_update_title_only_keeps_summary(store):
    entry = await store.create("Title", "# Heading\n\nParagraph")
    updated = await store.update(entry.id, title="Other")
    assert updated is not None
    assert updated.summary == entry.summary == "Heading Paragraph"


@pytest.mark.asyncio
async def test_update_replaces_tags_and_creates_missing(store, tag_store):
    entry = await store.create("Tagged", tags=["old"])
    updated = await store.update(entry.id, tags=["new", "OLD"])

    assert updated is not None
    assert updated.tags == ["new", "old"]
    assert {t.name for t in await tag_store.list_tags()} == {"old", "new"}
    loaded = await store.get_by_id(entry.id)
    assert loaded is not None
    assert loaded.tags == ["new", "old"]


@pytest.mark.asyncio
async def test_update_with_empty_tags_clears_them(store):
    entry = await store.create("Tagged", tags=["a", "b"])
    updated = await store.update(entry.id, tags=[])
    assert updated is not None
    assert updated.tags == []


@pytest.mark.asyncio
async def test_update_missing_returns_none(store):
    assert await store.update("nope", content="x") is None


@pytest.mark.asyncio
async def test_update_rejects_blank_title(store):
    entry = await store.create("Valid")
    with pytest.raises(ValidationError):
        await store.update(entry.id, title="  ")
    loaded = await store.get_by_id(entry.id)
    assert loaded is not None
    assert loaded.version == 1


@pytest.mark.asyncio
async def test_summary_truncated(store):
    entry = await store.create("Long", "word " * 100)
    assert len(entry.summary) == SUMMARY_LENGTH + len("...")
    assert entry.summary.endswith("...")


@pytest.mark.asyncio
async def test_delete_cascades(store, db):
    entry = await store.create("Doomed", "a", tags=["x"])
    await store.update(entry.id, content="b")

    assert await store.delete(entry.id) is True
    assert await store.get_by_id(entry.id) is None

    cursor = await db.execute("SELECT COUNT(*) FROM entry_history WHERE entry_id = ?", (entry.id,))
    assert (await cursor.fetchone())[0] == 0
    cursor = await db.execute("SELECT COUNT(*) FROM entry_tags WHERE entry_id = ?", (entry.id,))
    assert (await cursor.fetchone())[0] == 0


@pytest.mark.asyncio
async def test_delete_keeps_tags(store, tag_store):
    entry = await store.create("Doomed", tags=["keeper"])
    await store.delete(entry.id)
    assert await tag_store.get_by_name("keeper") is not None


@pytest.mark.asyncio
async def test_delete_missing_returns_false(store):
    assert await store.delete("nope") is False


@pytest.mark.asyncio
async def test_delete_removes_from_recent(store, tracker):
    keep = await store.create("Keep")
    doomed = await store.create("Doomed")
    await store.select(keep.id)
    await store.select(doomed.id)
    assert tracker.ids() == [doomed.id, keep.id]

    await store.delete(doomed.id)
    assert tracker.ids() == [keep.id]


@pytest.mark.asyncio
async def test_get_by_id_without_history(store):
    entry = await store.create("Lean", "a")
    await store.update(entry.id, content="b")
    loaded = await store.get_by_id(entry.id, include_history=False)
    assert loaded is not None
    assert loaded.version == 2
    assert loaded.history == []


@pytest.mark.asyncio
async def test_get_by_id_missing(store):
    assert await store.get_by_id("missing") is None


@pytest.mark.asyncio
async def test_select_touches_tracker(store, tracker):
    entry = await store.create("Open me")
    assert await store.select("missing") is None
    assert tracker.ids() == []
    selected = await store.select(entry.id)
    assert selected is not None
    assert tracker.ids() == [entry.id]


@pytest.mark.asyncio
async def test_list_entries_orders(store):
    a = await store.create("A")
    b = await store.create("B")
    c = await store.create("C")
    await store.update(a.id, content="touched")

    newest = await store.list_entries()
    assert [e.id for e in newest] == [a.id, c.id, b.id]
    natural = await store.list_entries(newest_first=False)
    assert [e.id for e in natural] == [a.id, b.id, c.id]
    assert all(e.history == [] for e in natural)


@pytest.mark.asyncio
async def test_users_are_isolated(db, clock):
    alice = make_store(db, StaticIdentity("alice"), clock)
    bob = make_store(db, StaticIdentity("bob"), clock)

    entry = await alice.create("Private", tags=["secret"])
    assert await bob.get_by_id(entry.id) is None
    assert await bob.list_entries() == []
    assert await bob.update(entry.id, content="hijack") is None
    assert await bob.delete(entry.id) is False
    assert await bob.tags.list_tags() == []
    assert (await alice.get_by_id(entry.id)) is not None


@pytest.mark.asyncio
async def test_requires_auth(db):
    anon = make_store(db, StaticIdentity(None))
    with pytest.raises(AuthRequiredError):
        await anon.create("Nobody")
    with pytest.raises(AuthRequiredError):
        await anon.list_entries()
    with pytest.raises(AuthRequiredError):
        await anon.get_by_id("x")


# --- Reports ---


@pytest.mark.asyncio
async def test_entries_by_tag(store):
    a = await store.create("A", tags=["Work"])
    await store.create("B", tags=["home"])
    result = await store.entries_by_tag("work")
    assert [e.id for e in result] == [a.id]


@pytest.mark.asyncio
async def test_entries_created_in_period(db, identity):
    clock = FakeClock(step=timedelta(days=5))
    store = make_store(db, identity, clock)
    old = await store.create("Old")  # created at START
    recent = await store.create("Recent")  # START + 5d
    # clock now reads START + 10d; a 7-day window starts at START + 3d
    result = await store.entries_created_in_period(7)
    assert [e.id for e in result] == [recent.id]
    assert old.id not in {e.id for e in result}


@pytest.mark.asyncio
async def test_duplicate_entries(store):
    a = await store.create("Morning pages")
    b = await store.create("  morning PAGES ")
    await store.create("Evening")
    dupes = await store.duplicate_entries()
    assert {e.id for e in dupes} == {a.id, b.id}


@pytest.mark.asyncio
async def test_entry_stats(store):
    await store.create("One", "two words", images=["a", "b"])
    await store.create("Two", "three more words here", images=["c"])
    stats = await store.entry_stats()
    assert stats.total_entries == 2
    assert stats.total_words == 6
    assert stats.average_words_per_entry == 3
    assert stats.entries_this_week == 2
    assert stats.entries_this_month == 2
    assert stats.total_images == 3


@pytest.mark.asyncio
async def test_entry_stats_empty(store):
    stats = await store.entry_stats()
    assert stats.total_entries == 0
    assert stats.average_words_per_entry == 0


@pytest.mark.asyncio
async def test_recent_entries_skips_deleted(db, identity):
    tracker = RecentAccessTracker(cap=5)
    store = make_store(db, identity, tracker=tracker)
    a = await store.create("A")
    b = await store.create("B")
    await store.select(a.id)
    await store.select(b.id)
    tracker.touch("ghost")

    recent = await store.recent_entries()
    assert [e.id for e in recent] == [b.id, a.id]


@pytest.mark.asyncio
async def test_recent_entries_without_tracker(db, identity):
    tags = TagStore(db, identity)
    store = EntryStore(db, tags, identity)
    await store.create("A")
    assert await store.recent_entries() == []


# --- Storage failures ---


@pytest.mark.asyncio
async def test_update_retries_transient_failure(db, identity):
    flaky = FlakyDatabase(db, "UPDATE entries", failures=2)
    store = make_store(flaky, identity)
    entry = await store.create("Retry", "v1")

    updated = await store.update(entry.id, content="v2")
    assert flaky.raised == 2
    assert updated is not None
    assert updated.version == 2

    loaded = await store.get_by_id(entry.id)
    assert loaded is not None
    assert loaded.version == 2
    assert [h.version for h in loaded.history] == [1]


@pytest.mark.asyncio
async def test_update_failure_leaves_prior_state(db, identity):
    flaky = FlakyDatabase(db, "UPDATE entries", failures=3)
    store = make_store(flaky, identity)
    entry = await store.create("Stable", "v1", tags=["keep"])

    with pytest.raises(StorageError):
        await store.update(entry.id, content="v2", tags=["new"])

    loaded = await store.get_by_id(entry.id)
    assert loaded is not None
    assert loaded.version == 1
    assert loaded.content == "v1"
    assert loaded.tags == ["keep"]
    assert loaded.history == []
    # Tag created inside the failed transaction was rolled back too
    assert await store.tags.get_by_name("new") is None


@pytest.mark.asyncio
async def test_update_failure_on_tag_write_leaves_no_history(db, identity):
    flaky = FlakyDatabase(db, "INSERT INTO entry_tags", failures=0)
    store = make_store(flaky, identity)
    entry = await store.create("Tags", "v1", tags=["a"])

    flaky.failures = 3
    with pytest.raises(StorageError):
        await store.update(entry.id, content="v2", tags=["b"])

    loaded = await store.get_by_id(entry.id)
    assert loaded is not None
    assert loaded.version == 1
    assert loaded.history == []
    assert loaded.tags == ["a"]


@pytest.mark.asyncio
async def test_create_failure_leaves_nothing(db, identity):
    flaky = FlakyDatabase(db, "INSERT INTO entries", failures=3)
    store = make_store(flaky, identity)
    with pytest.raises(StorageError):
        await store.create("Never", tags=["ghost"])
    assert await store.list_entries() == []
    assert await store.tags.list_tags() == []


@pytest.mark.asyncio
async def test_validation_error_not_retried(db, identity):
    flaky = FlakyDatabase(db, "SELECT", failures=0)
    store = make_store(flaky, identity)
    with pytest.raises(ValidationError):
        await store.create("")
    assert flaky.raised == 0
