#!/usr/bin/env python3
"""Seed a diary database with sample tags and entries.

Usage:
    python scripts/seed_diary.py [--user USER] [--db PATH]

Goes through the regular stores, so tags are resolved and version
history is recorded exactly as the MCP tools would do it. Honors
DIARY_DATABASE_URL like the server does.
"""

import argparse
import asyncio
import logging
import sys

from personal_diary.db.connection import create_connection
from personal_diary.identity import StaticIdentity
from personal_diary.store.entry_store import EntryStore
from personal_diary.store.tag_store import TagStore

_TAGS = [("Work", "#3B82F6"), ("Home", "#10B981"), ("Travel", "#F97316"), ("Ideas", "#8B5CF6")]

_ENTRIES = [
    ("Sprint planning", "Planned the **next sprint** with the team.", ["Work"]),
    ("Garden beds", "Started planning the vegetable garden.\n\n- tomatoes\n- beans", ["Home"]),
    ("Lisbon", "Trams, *pastéis de nata* and a lot of hills.", ["Travel"]),
    ("App idea", "A tiny app that tracks houseplant watering.", ["Ideas", "Home"]),
    ("Retro", "What went well, what didn't.", ["work"]),
]


async def main() -> int:
    """Create the sample data."""
    parser = argparse.ArgumentParser(description="Seed personal-diary with sample data")
    parser.add_argument("--user", default="local", help="User id to seed (default: local)")
    parser.add_argument("--db", default=None, help="SQLite path (default: DIARY_DB_PATH)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    db = await create_connection(args.db)
    try:
        identity = StaticIdentity(args.user)
        tags = TagStore(db, identity)
        store = EntryStore(db, tags, identity)

        for name, color in _TAGS:
            await tags.get_or_create(name, color)

        created = [
            await store.create(title, content, tags=entry_tags)
            for title, content, entry_tags in _ENTRIES
        ]

        # Give the first entry some history to browse
        first = created[0]
        await store.update(first.id, content=first.content + "\n\nAdded the retro date.")
        await store.update(first.id, title="Sprint 12 planning")
    finally:
        await db.close()

    print(f"Seeded {len(_ENTRIES)} entries and {len(_TAGS)} tags for user {args.user!r}.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
