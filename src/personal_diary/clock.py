"""Injectable time source."""

from datetime import UTC, datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Returns the current time as an aware UTC datetime."""

    def now(self) -> datetime:
        """Current timestamp."""
        ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> datetime:
        """Current UTC timestamp."""
        return datetime.now(UTC)
