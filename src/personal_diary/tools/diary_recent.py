"""diary_recent MCP tool: recently opened entries."""

from fastmcp import FastMCP
from fastmcp.server.context import Context

from personal_diary.errors import DiaryError
from personal_diary.store.entry_store import EntryStore
from personal_diary.tools.formatters import format_entry_compact, format_result_list


async def recent(store: EntryStore) -> str:
    try:
        entries = await store.recent_entries()
    except DiaryError as e:
        return f"Error: {e}"
    return format_result_list(
        [format_entry_compact(e) for e in entries], header="Recently opened"
    )


def register_diary_recent(mcp: FastMCP) -> None:
    """Register the diary_recent tool with the MCP server."""

    @mcp.tool()
    async def diary_recent(ctx: Context | None = None) -> str:
        """Entries opened with diary_get during this session, most recent first."""
        if ctx is None:
            raise RuntimeError("Context not injected")
        return await recent(ctx.lifespan_context["store"])
