"""diary_maintain MCP tool: reports and database maintenance."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from personal_diary.db.backend import Database
from personal_diary.errors import DiaryError
from personal_diary.store.entry_store import EntryStore
from personal_diary.store.tag_store import TagStore
from personal_diary.tools.formatters import (
    format_entry_compact,
    format_entry_stats,
    format_result_list,
    format_tag_stats,
    format_tag_usage,
)

logger = logging.getLogger(__name__)

_ACTIONS = {
    "stats",
    "duplicates",
    "unused_tags",
    "most_used_tags",
    "tag_stats",
    "vacuum",
}


async def maintain(
    db: Database,
    store: EntryStore,
    tags: TagStore,
    action: str,
    limit: int = 10,
) -> str:
    """Run one maintenance action and render the outcome."""
    if action not in _ACTIONS:
        return f"Unknown action '{action}'. Use: {', '.join(sorted(_ACTIONS))}"

    try:
        if action == "stats":
            return format_entry_stats(await store.entry_stats())
        elif action == "duplicates":
            return await _action_duplicates(store)
        elif action == "unused_tags":
            return await _action_unused_tags(tags)
        elif action == "most_used_tags":
            return await _action_most_used_tags(tags, limit)
        elif action == "tag_stats":
            return format_tag_stats(await tags.tag_stats())
        elif action == "vacuum":
            return await db.vacuum()
    except DiaryError as e:
        return f"Error: {e}"

    return "Action not implemented."


async def _action_duplicates(store: EntryStore) -> str:
    """Entries whose titles collide, grouped by title."""
    entries = await store.duplicate_entries()
    entries.sort(key=lambda e: e.title.strip().casefold())
    return format_result_list(
        [format_entry_compact(e) for e in entries], header="Entries sharing a title"
    )


async def _action_unused_tags(tags: TagStore) -> str:
    unused = await tags.unused_tags()
    if not unused:
        return "Every tag is in use."
    lines = [f"{len(unused)} unused tag(s)", ""]
    lines.extend(f"[{t.id}] {t.name} {t.color}" for t in unused)
    return "\n".join(lines)


async def _action_most_used_tags(tags: TagStore, limit: int) -> str:
    usages = await tags.most_used_tags(limit)
    if not usages:
        return "No tags yet."
    return "\n".join(format_tag_usage(u) for u in usages)


def register_diary_maintain(mcp: FastMCP) -> None:
    """Register the diary_maintain tool with the MCP server."""

    @mcp.tool()
    async def diary_maintain(
        action: Annotated[
            str,
            Field(
                description=(
                    "Maintenance action: stats, duplicates, unused_tags, "
                    "most_used_tags, tag_stats, vacuum"
                ),
            ),
        ],
        limit: Annotated[
            int, Field(description="For most_used_tags: how many to show", ge=1, le=100)
        ] = 10,
        ctx: Context | None = None,
    ) -> str:
        """Reports and maintenance for the diary.

        Requires DIARY_MANAGER=TRUE environment variable.

        Actions:
        - stats: Entry, word and image totals, plus recent activity
        - duplicates: Entries that share a title (ignoring case)
        - unused_tags: Tags no entry references
        - most_used_tags: Tags by usage count
        - tag_stats: Tag usage totals
        - vacuum: Optimize the database
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        lifespan = ctx.lifespan_context
        return await maintain(
            lifespan["db"], lifespan["store"], lifespan["tag_store"], action, limit
        )
