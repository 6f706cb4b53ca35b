"""Diary entry models."""

from datetime import datetime

from pydantic import BaseModel, Field

from personal_diary.models.version import EntryHistory


class Entry(BaseModel):
    """A single diary entry with its tags, images and prior versions.

    ``history`` holds exactly the superseded versions, oldest first, so
    ``version == len(history) + 1`` whenever history is loaded. List views
    leave it empty.
    """

    id: str
    title: str
    content: str = ""
    summary: str = ""
    tags: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    version: int = Field(default=1, ge=1)
    created_at: datetime
    updated_at: datetime
    history: list[EntryHistory] = Field(default_factory=list)

    def has_tag(self, name: str) -> bool:
        """Case-insensitive tag membership."""
        key = name.strip().casefold()
        return any(tag.casefold() == key for tag in self.tags)


class EntryStats(BaseModel):
    """Aggregate numbers over a user's entries."""

    total_entries: int = 0
    total_words: int = 0
    average_words_per_entry: int = 0
    entries_this_week: int = 0
    entries_this_month: int = 0
    total_images: int = 0
