"""diary_store MCP tool: create, update and delete diary entries."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from personal_diary.errors import DiaryError
from personal_diary.models.entry import Entry
from personal_diary.store.entry_store import EntryStore
from personal_diary.tools.formatters import format_entry_compact

logger = logging.getLogger(__name__)

MAX_IMAGES = 5


def format_store_result(entry: Entry, is_update: bool = False) -> str:
    """Format the result of a store operation for the MCP response."""
    action = "Updated" if is_update else "Created"
    return f"{action} {entry.id} (v{entry.version})\n{format_entry_compact(entry)}"


async def store_entry(
    store: EntryStore,
    *,
    title: str | None = None,
    content: str | None = None,
    tags: list[str] | None = None,
    images: list[str] | None = None,
    update_entry_id: str | None = None,
    delete_entry_id: str | None = None,
) -> str:
    """Dispatch to delete, update or create and render the outcome."""
    if images is not None and len(images) > MAX_IMAGES:
        return f"Error: Maximum {MAX_IMAGES} images per entry (got {len(images)})."

    try:
        # --- Delete path ---
        if delete_entry_id:
            if not await store.delete(delete_entry_id):
                return f"Error: Entry {delete_entry_id} not found."
            return f"Deleted entry {delete_entry_id}"

        # --- Update path ---
        if update_entry_id:
            entry = await store.update(
                update_entry_id, title=title, content=content, tags=tags, images=images
            )
            if entry is None:
                return f"Error: Entry {update_entry_id} not found."
            return format_store_result(entry, is_update=True)

        # --- Create path ---
        if title is None:
            return "Error: title is required when creating a new entry."
        entry = await store.create(title, content or "", tags=tags, images=images)
        return format_store_result(entry)
    except DiaryError as e:
        logger.warning("diary_store failed: %s", e)
        return f"Error: {e}"


def register_diary_store(mcp: FastMCP) -> None:
    """Register the diary_store tool with the MCP server."""

    @mcp.tool()
    async def diary_store(
        title: Annotated[str | None, Field(description="Entry title (required to create)")] = None,
        content: Annotated[
            str | None, Field(description="Entry body in markdown")
        ] = None,
        tags: Annotated[
            list[str] | None,
            Field(description="Tag names; unknown tags are created on the fly"),
        ] = None,
        images: Annotated[
            list[str] | None,
            Field(description=f"Image references (data URIs or URLs), max {MAX_IMAGES}"),
        ] = None,
        update_entry_id: Annotated[
            str | None,
            Field(description="ID of an existing entry to update; omitted fields are kept"),
        ] = None,
        delete_entry_id: Annotated[
            str | None,
            Field(description="ID of an entry to delete permanently, with its history"),
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """Write a diary entry.

        Creates a new entry, or updates an existing one when update_entry_id is
        given. Every update keeps the previous title and content as a version
        that diary_history can list or restore. Tags and images are not
        versioned.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        store: EntryStore = ctx.lifespan_context["store"]
        return await store_entry(
            store,
            title=title,
            content=content,
            tags=tags,
            images=images,
            update_entry_id=update_entry_id,
            delete_entry_id=delete_entry_id,
        )
