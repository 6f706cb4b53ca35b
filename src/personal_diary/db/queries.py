"""Query helpers for entries, history and tags.

Every helper takes the caller's ``user_id`` and scopes its SQL to it.
None of them commit: callers wrap writes in ``db.transaction()``.
"""

import json
import uuid
from collections import defaultdict
from datetime import datetime

from personal_diary.db.backend import Database, Row
from personal_diary.models.entry import Entry
from personal_diary.models.tag import Tag, tag_key
from personal_diary.models.version import EntryHistory

_ENTRY_COLUMNS = "id, title, content, summary, images, version, created_at, updated_at"
_TAG_COLUMNS = "id, name, color, created_at"


def new_id() -> str:
    """Opaque unique identifier for entries, tags and history records."""
    return uuid.uuid4().hex


def row_to_entry(row: Row, tags: list[str] | None = None) -> Entry:
    """Convert a database row to an Entry (history not loaded)."""
    return Entry(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        summary=row["summary"],
        tags=tags or [],
        images=json.loads(row["images"]),
        version=row["version"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def row_to_history(row: Row) -> EntryHistory:
    """Convert a database row to an EntryHistory snapshot."""
    return EntryHistory(
        id=row["id"],
        entry_id=row["entry_id"],
        title=row["title"],
        content=row["content"],
        version=row["version"],
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def row_to_tag(row: Row) -> Tag:
    """Convert a database row to a Tag."""
    return Tag(
        id=row["id"],
        name=row["name"],
        color=row["color"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


# -- Entries --


async def insert_entry(db: Database, user_id: str, entry: Entry) -> None:
    """Insert a new entry row."""
    await db.execute(
        """INSERT INTO entries
        (id, user_id, title, content, summary, images, version, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            entry.id,
            user_id,
            entry.title,
            entry.content,
            entry.summary,
            json.dumps(entry.images),
            entry.version,
            entry.created_at.isoformat(),
            entry.updated_at.isoformat(),
        ),
    )


async def update_entry(db: Database, user_id: str, entry: Entry) -> None:
    """Overwrite the live fields of an entry."""
    await db.execute(
        """UPDATE entries SET
        title=?, content=?, summary=?, images=?, version=?, updated_at=?
        WHERE id=? AND user_id=?""",
        (
            entry.title,
            entry.content,
            entry.summary,
            json.dumps(entry.images),
            entry.version,
            entry.updated_at.isoformat(),
            entry.id,
            user_id,
        ),
    )


async def get_entry(db: Database, user_id: str, entry_id: str) -> Entry | None:
    """Get a single entry with its tags (history not loaded)."""
    cursor = await db.execute(
        f"SELECT {_ENTRY_COLUMNS} FROM entries WHERE id = ? AND user_id = ?",  # noqa: S608
        (entry_id, user_id),
    )
    row = await cursor.fetchone()
    if row is None:
        return None
    return row_to_entry(row, await get_entry_tags(db, entry_id))


async def list_entries(db: Database, user_id: str, *, newest_first: bool = False) -> list[Entry]:
    """All of a user's entries with tags. Natural storage order unless newest_first."""
    order = "updated_at DESC, seq" if newest_first else "seq"
    cursor = await db.execute(
        f"SELECT {_ENTRY_COLUMNS} FROM entries WHERE user_id = ? ORDER BY {order}",  # noqa: S608
        (user_id,),
    )
    rows = await cursor.fetchall()

    cursor = await db.execute(
        """SELECT et.entry_id, et.name FROM entry_tags et
        JOIN entries e ON e.id = et.entry_id
        WHERE e.user_id = ? ORDER BY et.entry_id, et.position""",
        (user_id,),
    )
    tags_by_entry: dict[str, list[str]] = defaultdict(list)
    for tag_row in await cursor.fetchall():
        tags_by_entry[tag_row["entry_id"]].append(tag_row["name"])

    return [row_to_entry(row, tags_by_entry.get(row["id"], [])) for row in rows]


async def delete_entry_cascade(db: Database, user_id: str, entry_id: str) -> bool:
    """Hard-delete an entry with its history and tag associations."""
    cursor = await db.execute(
        "SELECT id FROM entries WHERE id = ? AND user_id = ?", (entry_id, user_id)
    )
    if await cursor.fetchone() is None:
        return False
    await db.execute("DELETE FROM entry_history WHERE entry_id = ?", (entry_id,))
    await db.execute("DELETE FROM entry_tags WHERE entry_id = ?", (entry_id,))
    await db.execute("DELETE FROM entries WHERE id = ? AND user_id = ?", (entry_id, user_id))
    return True


# -- Entry tags --


async def get_entry_tags(db: Database, entry_id: str) -> list[str]:
    """Tag names attached to an entry, in display order."""
    cursor = await db.execute(
        "SELECT name FROM entry_tags WHERE entry_id = ? ORDER BY position", (entry_id,)
    )
    return [row["name"] for row in await cursor.fetchall()]


async def replace_entry_tags(db: Database, entry_id: str, names: list[str]) -> None:
    """Replace an entry's tag associations with ``names``."""
    await db.execute("DELETE FROM entry_tags WHERE entry_id = ?", (entry_id,))
    if names:
        await db.executemany(
            "INSERT INTO entry_tags (entry_id, position, name, name_key) VALUES (?, ?, ?, ?)",
            [(entry_id, pos, name, tag_key(name)) for pos, name in enumerate(names)],
        )


async def count_entries_with_tag(db: Database, user_id: str, name: str) -> int:
    """Number of the user's entries referencing a tag name (case-insensitive)."""
    cursor = await db.execute(
        """SELECT COUNT(DISTINCT et.entry_id) AS cnt FROM entry_tags et
        JOIN entries e ON e.id = et.entry_id
        WHERE e.user_id = ? AND et.name_key = ?""",
        (user_id, tag_key(name)),
    )
    row = await cursor.fetchone()
    return int(row["cnt"]) if row else 0


# -- History --


async def insert_history(db: Database, user_id: str, snapshot: EntryHistory) -> None:
    """Append a history snapshot."""
    await db.execute(
        """INSERT INTO entry_history
        (id, entry_id, user_id, title, content, version, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (
            snapshot.id,
            snapshot.entry_id,
            user_id,
            snapshot.title,
            snapshot.content,
            snapshot.version,
            snapshot.updated_at.isoformat(),
        ),
    )


async def get_history(db: Database, user_id: str, entry_id: str) -> list[EntryHistory]:
    """All snapshots of an entry, oldest version first."""
    cursor = await db.execute(
        """SELECT id, entry_id, title, content, version, updated_at
        FROM entry_history WHERE entry_id = ? AND user_id = ? ORDER BY version""",
        (entry_id, user_id),
    )
    return [row_to_history(row) for row in await cursor.fetchall()]


async def get_history_version(
    db: Database, user_id: str, entry_id: str, version: int
) -> EntryHistory | None:
    """A single snapshot by version number."""
    cursor = await db.execute(
        """SELECT id, entry_id, title, content, version, updated_at
        FROM entry_history WHERE entry_id = ? AND user_id = ? AND version = ?""",
        (entry_id, user_id, version),
    )
    row = await cursor.fetchone()
    return row_to_history(row) if row else None


# -- Tags --


async def get_tag_by_key(db: Database, user_id: str, name: str) -> Tag | None:
    """Case-insensitive exact name lookup."""
    cursor = await db.execute(
        f"SELECT {_TAG_COLUMNS} FROM tags WHERE user_id = ? AND name_key = ?",  # noqa: S608
        (user_id, tag_key(name)),
    )
    row = await cursor.fetchone()
    return row_to_tag(row) if row else None


async def get_tag_by_id(db: Database, user_id: str, tag_id: str) -> Tag | None:
    """Tag by id."""
    cursor = await db.execute(
        f"SELECT {_TAG_COLUMNS} FROM tags WHERE user_id = ? AND id = ?",  # noqa: S608
        (user_id, tag_id),
    )
    row = await cursor.fetchone()
    return row_to_tag(row) if row else None


async def list_tags(db: Database, user_id: str) -> list[Tag]:
    """All of a user's tags ordered by name."""
    cursor = await db.execute(
        f"SELECT {_TAG_COLUMNS} FROM tags WHERE user_id = ? ORDER BY name_key, seq",  # noqa: S608
        (user_id,),
    )
    return [row_to_tag(row) for row in await cursor.fetchall()]


async def insert_tag(db: Database, user_id: str, tag: Tag) -> None:
    """Insert a new tag."""
    await db.execute(
        """INSERT INTO tags (id, user_id, name, name_key, color, created_at)
        VALUES (?, ?, ?, ?, ?, ?)""",
        (tag.id, user_id, tag.name, tag_key(tag.name), tag.color, tag.created_at.isoformat()),
    )


async def update_tag(db: Database, user_id: str, tag: Tag) -> None:
    """Write a tag's name and colour."""
    await db.execute(
        "UPDATE tags SET name = ?, name_key = ?, color = ? WHERE id = ? AND user_id = ?",
        (tag.name, tag_key(tag.name), tag.color, tag.id, user_id),
    )


async def delete_tag(db: Database, user_id: str, tag_id: str) -> bool:
    """Delete a tag row. Entries keep the tag's name."""
    if await get_tag_by_id(db, user_id, tag_id) is None:
        return False
    await db.execute("DELETE FROM tags WHERE id = ? AND user_id = ?", (tag_id, user_id))
    return True
