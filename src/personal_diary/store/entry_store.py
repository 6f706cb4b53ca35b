"""CRUD operations for diary entries with automatic version history."""

import logging
from collections import defaultdict
from datetime import timedelta

from personal_diary.clock import Clock, SystemClock
from personal_diary.db.backend import Database
from personal_diary.db.queries import (
    delete_entry_cascade,
    get_entry,
    get_history,
    insert_entry,
    insert_history,
    list_entries,
    new_id,
    replace_entry_tags,
    update_entry,
)
from personal_diary.db.retry import RetryPolicy, with_retry
from personal_diary.errors import NotFoundError, ValidationError
from personal_diary.identity import Identity, require_auth
from personal_diary.models.entry import Entry, EntryStats
from personal_diary.models.tag import tag_key
from personal_diary.models.version import EntryHistory, EntryVersion
from personal_diary.store.recent import RecentAccessTracker
from personal_diary.store.summary import derive_summary, word_count
from personal_diary.store.tag_store import TagStore, normalize_name
from personal_diary.store.version_store import VersionStore

logger = logging.getLogger(__name__)


def _require_title(title: str) -> str:
    stripped = title.strip()
    if not stripped:
        raise ValidationError("Entry title must not be empty")
    return stripped


def _dedupe_tag_names(names: list[str]) -> list[str]:
    """Trim names and drop case-insensitive repeats, keeping the first spelling."""
    seen: set[str] = set()
    result: list[str] = []
    for raw in names:
        name = normalize_name(raw)
        key = tag_key(name)
        if key not in seen:
            seen.add(key)
            result.append(name)
    return result


class EntryStore:
    """CRUD operations for diary entries with versioning.

    Every update snapshots the pre-update title/content into history and
    bumps the version inside one transaction, so readers see either the
    old state or the new one. Storage failures are retried per ``retry``;
    when the budget runs out the prior state is left untouched.
    """

    def __init__(
        self,
        db: Database,
        tags: TagStore,
        identity: Identity,
        *,
        clock: Clock | None = None,
        tracker: RecentAccessTracker | None = None,
        retry: RetryPolicy | None = None,
    ):
        """Initialize with a database connection and collaborators."""
        self.db = db
        self.tags = tags
        self.identity = identity
        self.clock = clock or SystemClock()
        self.tracker = tracker
        self.retry = retry or RetryPolicy()
        self.versions = VersionStore(db, identity, retry=self.retry)

    async def _resolve_tags(self, user_id: str, names: list[str]) -> list[str]:
        """Get-or-create each tag and return the canonical names."""
        return [(await self.tags.resolve(user_id, name)).name for name in names]

    async def create(
        self,
        title: str,
        content: str = "",
        tags: list[str] | None = None,
        images: list[str] | None = None,
    ) -> Entry:
        """Create a new entry at version 1 with an empty history."""
        title = _require_title(title)
        names = _dedupe_tag_names(tags or [])
        user_id = await require_auth(self.identity)

        async def _attempt() -> Entry:
            async with self.db.transaction():
                resolved = await self._resolve_tags(user_id, names)
                now = self.clock.now()
                entry = Entry(
                    id=new_id(),
                    title=title,
                    content=content,
                    summary=derive_summary(content),
                    tags=resolved,
                    images=list(images or []),
                    version=1,
                    created_at=now,
                    updated_at=now,
                )
                await insert_entry(self.db, user_id, entry)
                await replace_entry_tags(self.db, entry.id, entry.tags)
                return entry

        entry = await with_retry(_attempt, self.retry, "create entry")
        logger.info("Created entry %s: %s", entry.id, entry.title)
        return entry

    async def update(
        self,
        entry_id: str,
        *,
        title: str | None = None,
        content: str | None = None,
        tags: list[str] | None = None,
        images: list[str] | None = None,
    ) -> Entry | None:
        """Apply the provided fields as a new version. Returns None if the entry is missing.

        Fields left as None keep their current value. The returned entry
        carries its full history.
        """
        if title is not None:
            title = _require_title(title)
        names = _dedupe_tag_names(tags) if tags is not None else None
        user_id = await require_auth(self.identity)

        async def _attempt() -> Entry | None:
            async with self.db.transaction():
                current = await get_entry(self.db, user_id, entry_id)
                if current is None:
                    return None
                history = await get_history(self.db, user_id, entry_id)
                resolved = (
                    await self._resolve_tags(user_id, names) if names is not None else current.tags
                )

                snapshot = EntryHistory(
                    id=new_id(),
                    entry_id=current.id,
                    title=current.title,
                    content=current.content,
                    version=current.version,
                    updated_at=current.updated_at,
                )

                changes: dict[str, object] = {
                    "tags": resolved,
                    "updated_at": self.clock.now(),
                    "version": current.version + 1,
                    "history": [*history, snapshot],
                }
                if title is not None:
                    changes["title"] = title
                if content is not None:
                    changes["content"] = content
                    changes["summary"] = derive_summary(content)
                if images is not None:
                    changes["images"] = list(images)
                updated = current.model_copy(update=changes)

                await insert_history(self.db, user_id, snapshot)
                await update_entry(self.db, user_id, updated)
                if names is not None:
                    await replace_entry_tags(self.db, entry_id, updated.tags)
                return updated

        updated = await with_retry(_attempt, self.retry, f"update entry {entry_id}")
        if updated is None:
            logger.info("Update skipped: entry %s not found", entry_id)
            return None
        logger.info("Updated entry %s to v%d", entry_id, updated.version)
        return updated

    async def delete(self, entry_id: str) -> bool:
        """Delete an entry, its history and its tag associations."""
        user_id = await require_auth(self.identity)

        async def _attempt() -> bool:
            async with self.db.transaction():
                return await delete_entry_cascade(self.db, user_id, entry_id)

        deleted = await with_retry(_attempt, self.retry, f"delete entry {entry_id}")
        if deleted:
            logger.info("Deleted entry %s", entry_id)
            if self.tracker is not None:
                self.tracker.remove(entry_id)
        return deleted

    async def get_by_id(self, entry_id: str, include_history: bool = True) -> Entry | None:
        """Get a single entry, optionally with its full history."""
        user_id = await require_auth(self.identity)

        async def _attempt() -> Entry | None:
            async with self.db.transaction():
                entry = await get_entry(self.db, user_id, entry_id)
                if entry is None or not include_history:
                    return entry
                history = await get_history(self.db, user_id, entry_id)
                return entry.model_copy(update={"history": history})

        return await with_retry(_attempt, self.retry, f"get entry {entry_id}")

    async def select(self, entry_id: str) -> Entry | None:
        """Open an entry for viewing: load it with history and mark it recently accessed."""
        entry = await self.get_by_id(entry_id)
        if entry is not None and self.tracker is not None:
            self.tracker.touch(entry.id)
        return entry

    # -- Version history --

    async def list_versions(self, entry_id: str) -> list[EntryVersion]:
        """Current version followed by every snapshot, newest version first."""
        entry = await self.get_by_id(entry_id)
        if entry is None:
            return []
        versions = [
            EntryVersion(
                entry_id=entry.id,
                version=entry.version,
                title=entry.title,
                content=entry.content,
                updated_at=entry.updated_at,
                is_current=True,
            )
        ]
        versions.extend(
            EntryVersion(
                entry_id=h.entry_id,
                version=h.version,
                title=h.title,
                content=h.content,
                updated_at=h.updated_at,
                history_id=h.id,
            )
            for h in entry.history
        )
        return sorted(versions, key=lambda v: v.version, reverse=True)

    async def restore_version(self, entry_id: str, version: int) -> Entry:
        """Make an earlier version's title/content current again, as a new version.

        Tags and images are not versioned; the entry keeps its current ones.
        """
        if version < 1:
            raise ValidationError(f"Version must be positive (got {version})")
        entry = await self.get_by_id(entry_id, include_history=False)
        if entry is None:
            raise NotFoundError(f"Entry {entry_id} not found")

        if version == entry.version:
            title, content = entry.title, entry.content
        else:
            snapshot = await self.versions.get_snapshot(entry_id, version)
            if snapshot is None:
                raise NotFoundError(f"Entry {entry_id} has no version {version}")
            title, content = snapshot.title, snapshot.content

        restored = await self.update(entry_id, title=title, content=content)
        if restored is None:
            raise NotFoundError(f"Entry {entry_id} not found")
        logger.info("Restored entry %s v%d as v%d", entry_id, version, restored.version)
        return restored

    # -- Listing and reporting --

    async def list_entries(self, newest_first: bool = True) -> list[Entry]:
        """All entries without history, newest update first or in storage order."""
        user_id = await require_auth(self.identity)
        return await with_retry(
            lambda: list_entries(self.db, user_id, newest_first=newest_first),
            self.retry,
            "list entries",
        )

    async def entries_by_tag(self, tag_name: str) -> list[Entry]:
        """Entries carrying ``tag_name`` (any case)."""
        return [e for e in await self.list_entries() if e.has_tag(tag_name)]

    async def entries_created_in_period(self, days: int) -> list[Entry]:
        """Entries created within the last ``days`` days."""
        cutoff = self.clock.now() - timedelta(days=days)
        return [e for e in await self.list_entries() if e.created_at >= cutoff]

    async def duplicate_entries(self) -> list[Entry]:
        """Entries sharing a title (trimmed, case-insensitive) with at least one other."""
        groups: dict[str, list[Entry]] = defaultdict(list)
        for entry in await self.list_entries():
            groups[entry.title.strip().casefold()].append(entry)
        return [entry for group in groups.values() if len(group) > 1 for entry in group]

    async def entry_stats(self) -> EntryStats:
        """Word, image and recency totals over all entries."""
        entries = await self.list_entries()
        now = self.clock.now()
        week_ago = now - timedelta(days=7)
        month_ago = now - timedelta(days=30)
        total_words = sum(word_count(e.content) for e in entries)
        return EntryStats(
            total_entries=len(entries),
            total_words=total_words,
            average_words_per_entry=round(total_words / len(entries)) if entries else 0,
            entries_this_week=sum(1 for e in entries if e.created_at >= week_ago),
            entries_this_month=sum(1 for e in entries if e.created_at >= month_ago),
            total_images=sum(len(e.images) for e in entries),
        )

    async def recent_entries(self) -> list[Entry]:
        """Recently accessed entries, most recent first, skipping deleted ones."""
        if self.tracker is None:
            return []
        entries: list[Entry] = []
        for entry_id in self.tracker.ids():
            entry = await self.get_by_id(entry_id, include_history=False)
            if entry is not None:
                entries.append(entry)
        return entries
