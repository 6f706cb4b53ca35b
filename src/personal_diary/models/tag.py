"""Tag models and the colour palette."""

from datetime import datetime

from pydantic import BaseModel

TAG_COLORS: tuple[str, ...] = (
    "#3B82F6",  # blue
    "#10B981",  # green
    "#F59E0B",  # yellow
    "#EF4444",  # red
    "#8B5CF6",  # purple
    "#EC4899",  # pink
    "#06B6D4",  # cyan
    "#84CC16",  # lime
    "#F97316",  # orange
    "#6366F1",  # indigo
)


def tag_key(name: str) -> str:
    """Normalized lookup key: tag names are unique per user ignoring case."""
    return name.strip().casefold()


class Tag(BaseModel):
    """A named, coloured label shared across entries."""

    id: str
    name: str
    color: str
    created_at: datetime


class TagUsage(BaseModel):
    """A tag together with the number of entries referencing it."""

    tag: Tag
    usage_count: int


class TagStats(BaseModel):
    """Aggregate tag usage numbers."""

    total_tags: int = 0
    used_tags: int = 0
    unused_tags: int = 0
    total_usage: int = 0
    average_usage_per_tag: float = 0.0
