"""Exception hierarchy for diary operations."""


class DiaryError(Exception):
    """Base class for all diary errors."""


class ValidationError(DiaryError):
    """Input has the wrong shape (empty title, unknown colour, ...). Never retried."""


class NotFoundError(DiaryError):
    """A write path referenced an entry, version or tag that does not exist."""


class StorageError(DiaryError):
    """The persistence backend failed. Retried with a bounded budget."""


class AuthRequiredError(DiaryError):
    """An operation needs a current user and none is resolvable."""
