"""diary_search MCP tool: filter and sort diary entries."""

import logging
from datetime import UTC, date, datetime, time
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from personal_diary.errors import DiaryError, ValidationError
from personal_diary.models.search import SearchFilters, SortField, SortOrder, end_of_day
from personal_diary.search.engine import search_entries
from personal_diary.store.entry_store import EntryStore
from personal_diary.tools.formatters import format_entry_compact, format_result_list

logger = logging.getLogger(__name__)

_DATE_ONLY_LENGTH = len("2024-01-31")


def parse_bound(value: str | None, *, end: bool = False) -> datetime | None:
    """Parse an ISO date or datetime; a bare date covers the whole day."""
    if value is None or not value.strip():
        return None
    value = value.strip()
    try:
        if len(value) == _DATE_ONLY_LENGTH:
            day = date.fromisoformat(value)
            return end_of_day(day) if end else datetime.combine(day, time.min, tzinfo=UTC)
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid date {value!r}: use YYYY-MM-DD or ISO 8601") from e
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


async def search(
    store: EntryStore,
    *,
    query: str = "",
    tags: list[str] | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    sort_by: SortField = SortField.UPDATED_AT,
    sort_order: SortOrder = SortOrder.DESC,
) -> str:
    """Build filters from tool arguments, search, and render compact results."""
    try:
        filters = SearchFilters(
            query=query,
            tags=tags or [],
            date_from=parse_bound(date_from),
            date_to=parse_bound(date_to, end=True),
            sort_by=sort_by,
            sort_order=sort_order,
        )
        results = await search_entries(store, filters)
    except DiaryError as e:
        return f"Error: {e}"
    return format_result_list([format_entry_compact(e) for e in results])


def register_diary_search(mcp: FastMCP) -> None:
    """Register the diary_search tool with the MCP server."""

    @mcp.tool()
    async def diary_search(
        query: Annotated[
            str, Field(description="Case-insensitive text matched in title, content or summary")
        ] = "",
        tags: Annotated[
            list[str] | None, Field(description="Keep entries having ANY of these tags")
        ] = None,
        date_from: Annotated[
            str | None, Field(description="Created on or after (YYYY-MM-DD or ISO datetime)")
        ] = None,
        date_to: Annotated[
            str | None,
            Field(description="Created on or before; a bare date includes that whole day"),
        ] = None,
        sort_by: Annotated[
            SortField, Field(description="title, created_at or updated_at")
        ] = SortField.UPDATED_AT,
        sort_order: Annotated[SortOrder, Field(description="asc or desc")] = SortOrder.DESC,
        ctx: Context | None = None,
    ) -> str:
        """Search diary entries.

        Empty filters match everything, so a bare call lists all entries,
        most recently updated first. Results are compact; use diary_get for
        the full content.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        store: EntryStore = ctx.lifespan_context["store"]
        return await search(
            store,
            query=query,
            tags=tags,
            date_from=date_from,
            date_to=date_to,
            sort_by=sort_by,
            sort_order=sort_order,
        )
