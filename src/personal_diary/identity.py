"""Identity collaborator: who is the current user."""

from typing import Protocol, runtime_checkable

from personal_diary.errors import AuthRequiredError


@runtime_checkable
class Identity(Protocol):
    """Resolves the authenticated caller."""

    async def current_user_id(self) -> str | None:
        """Return the current user's id, or None when nobody is signed in."""
        ...


class StaticIdentity:
    """Fixed identity, configured once per process (DIARY_USER_ID)."""

    def __init__(self, user_id: str | None) -> None:
        """Initialize with the user id, or None for an anonymous session."""
        self._user_id = user_id

    async def current_user_id(self) -> str | None:
        """Return the configured user id."""
        return self._user_id


async def require_auth(identity: Identity) -> str:
    """Return the current user id or fail fast."""
    user_id = await identity.current_user_id()
    if not user_id:
        raise AuthRequiredError("Authentication required")
    return user_id
