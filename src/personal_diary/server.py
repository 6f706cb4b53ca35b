"""FastMCP server with lifespan management and tool registration."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from personal_diary.clock import SystemClock
from personal_diary.config import (
    get_db_path,
    get_log_level,
    get_recent_cap,
    get_user_id,
    is_manager_mode,
)
from personal_diary.db.connection import create_connection
from personal_diary.db.retry import RetryPolicy
from personal_diary.identity import StaticIdentity
from personal_diary.store.entry_store import EntryStore
from personal_diary.store.recent import RecentAccessTracker
from personal_diary.store.tag_store import TagStore
from personal_diary.tools.diary_get import register_diary_get
from personal_diary.tools.diary_history import register_diary_history
from personal_diary.tools.diary_maintain import register_diary_maintain
from personal_diary.tools.diary_recent import register_diary_recent
from personal_diary.tools.diary_search import register_diary_search
from personal_diary.tools.diary_store import register_diary_store
from personal_diary.tools.diary_tags import register_diary_tags


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Manage database connection and store lifecycle."""
    # Configure logging to stderr (stdout is MCP stdio transport)
    logging.basicConfig(
        level=getattr(logging, get_log_level()),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    logger = logging.getLogger(__name__)

    db_path = get_db_path()
    logger.info("Opening database at %s", db_path)
    db = await create_connection(db_path)

    user_id = get_user_id()
    if user_id is None:
        logger.warning("DIARY_USER_ID is empty; every diary operation will be refused")

    identity = StaticIdentity(user_id)
    clock = SystemClock()
    retry = RetryPolicy.from_config()
    tracker = RecentAccessTracker(get_recent_cap())
    tag_store = TagStore(db, identity, clock=clock, retry=retry)
    store = EntryStore(db, tag_store, identity, clock=clock, tracker=tracker, retry=retry)

    try:
        yield {
            "db": db,
            "store": store,
            "tag_store": tag_store,
            "tracker": tracker,
        }
    finally:
        await db.close()
        logger.info("Database connection closed")


_INSTRUCTIONS = """\
A private diary. Each entry has a title, markdown content, tags and up to \
five images. Every edit keeps the previous title and content as a version, \
so nothing written is ever lost.

READING:
- diary_search: Filter by text, tags (any of), and creation date range; sort \
by title, created_at or updated_at. Returns compact summaries.
- diary_get: Full content of entries by ID. Opened entries appear in diary_recent.
- diary_recent: Entries opened recently in this session.
- diary_history: Versions of an entry, newest first; restore an older one.

WRITING:
- diary_store: Create an entry, update one (update_entry_id), or delete one \
(delete_entry_id). Only the fields you pass are changed on update.
- diary_tags: List tags with usage counts; create, rename, recolour or delete tags.

Tags are matched ignoring case: "work" and "Work" are the same tag.
"""


def create_server() -> FastMCP:
    """Create and configure the MCP server with all tools."""
    mcp = FastMCP(
        "personal-diary",
        instructions=_INSTRUCTIONS,
        lifespan=lifespan,
    )

    register_diary_store(mcp)
    register_diary_get(mcp)
    register_diary_search(mcp)
    register_diary_history(mcp)
    register_diary_tags(mcp)
    register_diary_recent(mcp)

    if is_manager_mode():
        register_diary_maintain(mcp)

    return mcp
