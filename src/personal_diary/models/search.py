"""Search-related models."""

from datetime import UTC, date, datetime, time
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


class SortField(StrEnum):
    """Entry attribute the search result is ordered by."""

    TITLE = "title"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class SortOrder(StrEnum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class SearchFilters(BaseModel):
    """Parameters for an entry search. Empty values mean "no constraint"."""

    query: str = ""
    tags: list[str] = Field(default_factory=list)
    date_from: datetime | None = None
    date_to: datetime | None = None
    sort_by: SortField = SortField.UPDATED_AT
    sort_order: SortOrder = SortOrder.DESC

    @field_validator("date_from", "date_to")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


def end_of_day(day: date) -> datetime:
    """Last representable instant of ``day`` in UTC, for inclusive date_to bounds."""
    return datetime.combine(day, time.max, tzinfo=UTC)
