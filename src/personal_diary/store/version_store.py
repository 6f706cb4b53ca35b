"""Version history operations."""

from personal_diary.db.backend import Database
from personal_diary.db.queries import get_history_version
from personal_diary.db.retry import RetryPolicy, with_retry
from personal_diary.identity import Identity, require_auth
from personal_diary.models.version import EntryHistory


class VersionStore:
    """Read access to entry version history.

    Snapshots are only ever written by ``EntryStore.update``.
    """

    def __init__(self, db: Database, identity: Identity, *, retry: RetryPolicy | None = None):
        """Initialize with a database connection and identity collaborator."""
        self.db = db
        self.identity = identity
        self.retry = retry or RetryPolicy()

    async def get_snapshot(self, entry_id: str, version: int) -> EntryHistory | None:
        """The snapshot holding ``version``, or None."""
        user_id = await require_auth(self.identity)
        return await with_retry(
            lambda: get_history_version(self.db, user_id, entry_id, version),
            self.retry,
            "load history version",
        )
