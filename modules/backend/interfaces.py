"""
Backend module interface.

The resolution engine only talks to the remote backend through
IBackendClient. This keeps the engine testable with the in-memory
implementation and independent of the Supabase SDK.
"""

from typing import Any, Callable, Optional, Protocol, runtime_checkable

from .models import Session, SessionChange

SessionCallback = Callable[[SessionChange], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class IBackendClient(Protocol):
    """
    Interface for the remote data and auth API.

    Implementations may raise any exception on transport or query
    failure; callers translate them into module-specific errors.
    """

    async def get_current_session(self) -> Optional[Session]:
        """Return the session currently held by the auth client, if any."""
        ...

    def on_session_change(self, callback: SessionCallback) -> Unsubscribe:
        """
        Register a callback for auth provider events.

        Args:
            callback: Called once per provider event, in emission order

        Returns:
            Callable that removes the subscription
        """
        ...

    async def refresh_session(self) -> Optional[Session]:
        """Exchange the refresh token for a new session."""
        ...

    async def get_profile(self, user_id: str) -> dict[str, Any]:
        """
        Read the profile fields the resolver needs.

        Raises:
            Exception: If the row does not exist or the query fails
        """
        ...

    async def get_current_user_auth_metadata(self) -> dict[str, Any]:
        """Return auth metadata for the signed-in user (``provider`` key)."""
        ...

    async def get_global_settings(self, key: str) -> dict[str, Any]:
        """Return the JSON value of the settings row identified by key."""
        ...

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> None:
        """Apply a partial update to a profile row."""
        ...

    async def update_password(self, password: str) -> None:
        """Set a local password for the signed-in user."""
        ...

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        """Sign in with email and password."""
        ...

    async def sign_out(self) -> None:
        """Sign out and drop the local session."""
        ...
