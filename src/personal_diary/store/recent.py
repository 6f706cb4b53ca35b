"""Bounded most-recently-used list of entry ids."""

from personal_diary.errors import ValidationError


class RecentAccessTracker:
    """Most recently touched entry ids, newest first, without duplicates.

    Lives for one session; persisting it is the caller's business.
    """

    def __init__(self, cap: int = 10) -> None:
        """Initialize an empty tracker holding at most ``cap`` ids."""
        if cap < 1:
            raise ValidationError(f"Recent-access capacity must be at least 1 (got {cap})")
        self.cap = cap
        self._ids: list[str] = []

    def touch(self, entry_id: str) -> None:
        """Move ``entry_id`` to the front, dropping the oldest beyond the cap."""
        if entry_id in self._ids:
            self._ids.remove(entry_id)
        self._ids.insert(0, entry_id)
        del self._ids[self.cap :]

    def remove(self, entry_id: str) -> None:
        """Forget ``entry_id`` if present."""
        if entry_id in self._ids:
            self._ids.remove(entry_id)

    def ids(self) -> list[str]:
        """Snapshot of the tracked ids, most recent first."""
        return list(self._ids)

    def clear(self) -> None:
        """Forget everything."""
        self._ids.clear()

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._ids
