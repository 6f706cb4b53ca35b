"""diary_get MCP tool: full entry retrieval by ID."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from personal_diary.errors import DiaryError
from personal_diary.store.entry_store import EntryStore
from personal_diary.tools.formatters import format_entry_full, format_result_list

logger = logging.getLogger(__name__)

_MAX_IDS = 20


async def get_entries(store: EntryStore, ids: list[str]) -> str:
    """Load each entry in full and mark the found ones as recently accessed."""
    if len(ids) > _MAX_IDS:
        return f"Error: Maximum {_MAX_IDS} IDs per request (got {len(ids)})."

    formatted: list[str] = []
    try:
        for eid in ids:
            entry = await store.select(eid)
            if entry is None:
                formatted.append(f"[{eid}] not found")
            else:
                formatted.append(format_entry_full(entry))
    except DiaryError as e:
        return f"Error: {e}"

    return format_result_list(formatted)


def register_diary_get(mcp: FastMCP) -> None:
    """Register the diary_get tool with the MCP server."""

    @mcp.tool()
    async def diary_get(
        entry_id: Annotated[
            str | list[str],
            Field(description=f"Single entry ID or list of IDs (max {_MAX_IDS})"),
        ],
        ctx: Context | None = None,
    ) -> str:
        """Retrieve full diary entries by ID.

        Use after diary_search to read complete content. Opened entries show
        up in diary_recent.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        store: EntryStore = ctx.lifespan_context["store"]

        ids = [entry_id] if isinstance(entry_id, str) else list(entry_id)
        return await get_entries(store, ids)
