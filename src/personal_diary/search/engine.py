"""Filter, sort and tag-filter pipeline over a user's entries."""

import logging
from datetime import datetime

from personal_diary.models.entry import Entry
from personal_diary.models.search import SearchFilters, SortField, SortOrder
from personal_diary.store.entry_store import EntryStore

logger = logging.getLogger(__name__)


def matches_query(entry: Entry, query: str) -> bool:
    """Case-insensitive substring match against title, content or summary."""
    needle = query.casefold()
    return (
        needle in entry.title.casefold()
        or needle in entry.content.casefold()
        or needle in entry.summary.casefold()
    )


def _sort_key(field: SortField):
    if field is SortField.TITLE:
        return lambda e: e.title.casefold()
    if field is SortField.CREATED_AT:
        return lambda e: e.created_at
    return lambda e: e.updated_at


def _has_any_tag(entry: Entry, wanted: set[str]) -> bool:
    return any(tag.casefold() in wanted for tag in entry.tags)


def apply_filters(entries: list[Entry], filters: SearchFilters) -> list[Entry]:
    """Run the search pipeline over ``entries`` (given in storage order).

    Query and date bounds narrow the set, the survivors are sorted, and
    the tag filter (any-of) runs last over the already sorted list.
    Bounds are inclusive and compare exact timestamps. Ties in the sort
    keep their storage order in either direction.
    """
    result = list(entries)

    if filters.query.strip():
        result = [e for e in result if matches_query(e, filters.query)]
    if filters.date_from is not None:
        date_from: datetime = filters.date_from
        result = [e for e in result if e.created_at >= date_from]
    if filters.date_to is not None:
        date_to: datetime = filters.date_to
        result = [e for e in result if e.created_at <= date_to]

    # sorted(reverse=True) is stable too, so ties stay in storage order
    result = sorted(
        result,
        key=_sort_key(filters.sort_by),
        reverse=filters.sort_order is SortOrder.DESC,
    )

    wanted = {t.strip().casefold() for t in filters.tags if t.strip()}
    if wanted:
        result = [e for e in result if _has_any_tag(e, wanted)]

    logger.debug(
        "Search matched %d of %d entries (query=%r, tags=%s, sort=%s %s)",
        len(result),
        len(entries),
        filters.query,
        sorted(wanted),
        filters.sort_by.value,
        filters.sort_order.value,
    )
    return result


async def search_entries(store: EntryStore, filters: SearchFilters) -> list[Entry]:
    """Search the current user's entries."""
    entries = await store.list_entries(newest_first=False)
    return apply_filters(entries, filters)
