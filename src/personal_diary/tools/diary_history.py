"""diary_history MCP tool: list and restore entry versions."""

import logging
from typing import Annotated, Literal

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from personal_diary.errors import DiaryError
from personal_diary.store.entry_store import EntryStore
from personal_diary.tools.diary_store import format_store_result
from personal_diary.tools.formatters import format_version

logger = logging.getLogger(__name__)


async def list_history(store: EntryStore, entry_id: str) -> str:
    try:
        versions = await store.list_versions(entry_id)
    except DiaryError as e:
        return f"Error: {e}"
    if not versions:
        return f"Error: Entry {entry_id} not found."

    current = versions[0]
    lines = [f"Version history for {entry_id}: {current.title}", ""]
    lines.extend(f"  {format_version(v)}" for v in versions)
    return "\n".join(lines)


async def restore(store: EntryStore, entry_id: str, version: int | None) -> str:
    if version is None:
        return "Error: version is required for restore."
    try:
        entry = await store.restore_version(entry_id, version)
    except DiaryError as e:
        return f"Error: {e}"
    return f"Restored v{version}\n{format_store_result(entry, is_update=True)}"


def register_diary_history(mcp: FastMCP) -> None:
    """Register the diary_history tool with the MCP server."""

    @mcp.tool()
    async def diary_history(
        entry_id: Annotated[str, Field(description="Entry whose versions to show or restore")],
        action: Annotated[
            Literal["list", "restore"],
            Field(description="list: show versions newest first. restore: bring one back"),
        ] = "list",
        version: Annotated[
            int | None, Field(description="Version number to restore", ge=1)
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """Browse or restore the version history of a diary entry.

        Restoring never rewrites history: the old title and content become a
        new version on top of the current one, and the entry keeps its
        current tags and images.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        store: EntryStore = ctx.lifespan_context["store"]
        if action == "restore":
            return await restore(store, entry_id, version)
        return await list_history(store, entry_id)
