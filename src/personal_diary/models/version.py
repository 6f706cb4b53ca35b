"""Entry version models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class EntryHistory(BaseModel):
    """Immutable snapshot of an entry taken just before an update superseded it."""

    model_config = ConfigDict(frozen=True)

    id: str
    entry_id: str
    title: str
    content: str
    version: int = Field(ge=1)
    updated_at: datetime


class EntryVersion(BaseModel):
    """One row of a version listing: either the live entry or a history snapshot."""

    entry_id: str
    version: int
    title: str
    content: str
    updated_at: datetime
    is_current: bool = False
    history_id: str | None = None
