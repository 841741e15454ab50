"""
Backend client implementations.

Provides both in-memory (for testing and local development) and
Supabase-backed (for production) implementations of IBackendClient.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from supabase import AsyncClient

from shared.config import Settings, get_settings
from shared.exceptions import AuthenticationError, NotFoundError

from .interfaces import IBackendClient, SessionCallback, Unsubscribe
from .models import Session, SessionChange, SessionEvent

logger = logging.getLogger(__name__)


class InMemoryBackend(IBackendClient):
    """
    Backend client with in-memory storage.

    For testing and development. Use SupabaseBackend for production.
    Session events are emitted synchronously to subscribers, the same way
    the GoTrue client notifies its listeners.
    """

    def __init__(self):
        self._session: Optional[Session] = None
        self._profiles: dict[str, dict[str, Any]] = {}
        self._settings: dict[str, dict[str, Any]] = {}
        self._accounts: dict[str, tuple[str, str, str]] = {}
        self._passwords: dict[str, str] = {}
        self._callbacks: list[SessionCallback] = []
        self._failures: dict[str, Exception] = {}
        self._holds: dict[str, asyncio.Event] = {}
        self._token_counter = 0
        self.calls: list[str] = []

    # -------------------------------------------------------------------------
    # Test and development helpers
    # -------------------------------------------------------------------------

    def add_profile(self, user_id: str, **fields: Any) -> None:
        """Create or replace a profile row."""
        self._profiles[user_id] = {"id": user_id, **fields}

    def profile(self, user_id: str) -> dict[str, Any]:
        """Return the stored profile row."""
        return self._profiles[user_id]

    def set_global_settings(self, key: str, value: dict[str, Any]) -> None:
        """Create or replace a settings row."""
        self._settings[key] = value

    def add_account(
        self,
        email: str,
        password: str,
        user_id: str,
        provider: str = "email",
    ) -> None:
        """Register credentials accepted by sign_in_with_password."""
        self._accounts[email] = (password, user_id, provider)

    def fail(self, method: str, error: Exception) -> None:
        """Make every later call to method raise error."""
        self._failures[method] = error

    def recover(self, method: str) -> None:
        """Undo a previous fail()."""
        self._failures.pop(method, None)

    def hold(self, method: str) -> asyncio.Event:
        """
        Suspend calls to method until the returned event is set.

        Used to keep a backend call in flight while other events happen.
        """
        gate = asyncio.Event()
        self._holds[method] = gate
        return gate

    def start_session(
        self,
        user_id: str,
        provider: str = "email",
        email: Optional[str] = None,
        event: SessionEvent = SessionEvent.SIGNED_IN,
        notify: bool = True,
    ) -> Session:
        """Install a session as if the user had just signed in."""
        self._session = self._make_session(user_id, provider, email)
        if notify:
            self.emit(event, self._session)
        return self._session

    def emit(self, event: SessionEvent, session: Optional[Session]) -> None:
        """Deliver a provider event to every subscriber."""
        change = SessionChange(event=event, session=session)
        for callback in list(self._callbacks):
            callback(change)

    @property
    def passwords(self) -> dict[str, str]:
        """Passwords set through update_password, keyed by user ID."""
        return dict(self._passwords)

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    # -------------------------------------------------------------------------
    # IBackendClient
    # -------------------------------------------------------------------------

    async def get_current_session(self) -> Optional[Session]:
        await self._call("get_current_session")
        return self._session

    def on_session_change(self, callback: SessionCallback) -> Unsubscribe:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def refresh_session(self) -> Optional[Session]:
        await self._call("refresh_session")
        if self._session is None:
            return None
        self._session = self._make_session(
            self._session.user_id,
            self._session.provider,
            self._session.email,
        )
        self.emit(SessionEvent.TOKEN_REFRESHED, self._session)
        return self._session

    async def get_profile(self, user_id: str) -> dict[str, Any]:
        await self._call("get_profile")
        if user_id not in self._profiles:
            raise NotFoundError(
                f"Profile not found: {user_id}",
                code="PROFILE_NOT_FOUND",
                details={"user_id": user_id},
            )
        return dict(self._profiles[user_id])

    async def get_current_user_auth_metadata(self) -> dict[str, Any]:
        await self._call("get_current_user_auth_metadata")
        if self._session is None:
            raise AuthenticationError("No signed-in user", code="NO_SESSION")
        return {"provider": self._session.provider}

    async def get_global_settings(self, key: str) -> dict[str, Any]:
        await self._call("get_global_settings")
        if key not in self._settings:
            raise NotFoundError(
                f"Settings not found: {key}",
                code="SETTINGS_NOT_FOUND",
                details={"key": key},
            )
        return dict(self._settings[key])

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> None:
        await self._call("update_profile")
        if user_id not in self._profiles:
            raise NotFoundError(
                f"Profile not found: {user_id}",
                code="PROFILE_NOT_FOUND",
                details={"user_id": user_id},
            )
        self._profiles[user_id].update(fields)

    async def update_password(self, password: str) -> None:
        await self._call("update_password")
        if self._session is None:
            raise AuthenticationError("No signed-in user", code="NO_SESSION")
        self._passwords[self._session.user_id] = password
        self.emit(SessionEvent.USER_UPDATED, self._session)

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        await self._call("sign_in_with_password")
        account = self._accounts.get(email)
        if account is None or account[0] != password:
            raise AuthenticationError("Invalid login credentials", code="INVALID_CREDENTIALS")
        _, user_id, provider = account
        return self.start_session(user_id, provider=provider, email=email)

    async def sign_out(self) -> None:
        await self._call("sign_out")
        self._session = None
        self.emit(SessionEvent.SIGNED_OUT, None)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _call(self, method: str) -> None:
        self.calls.append(method)
        gate = self._holds.get(method)
        if gate is not None:
            await gate.wait()
        error = self._failures.get(method)
        if error is not None:
            raise error

    def _make_session(
        self,
        user_id: str,
        provider: str,
        email: Optional[str],
    ) -> Session:
        self._token_counter += 1
        return Session(
            user_id=user_id,
            access_token=f"access-{user_id}-{self._token_counter}",
            refresh_token=f"refresh-{user_id}-{self._token_counter}",
            provider=provider,
            email=email,
            expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        )


class SupabaseBackend(IBackendClient):
    """
    Backend client on top of the async Supabase SDK.

    Reads go through the anon-key client with the user's session attached,
    so Row Level Security applies exactly as it does for the mobile app.
    """

    _PROFILE_COLUMNS = (
        "onboarding_completed, role, plan, approval_status, "
        "plan_expiry_date, has_password, grace_period"
    )

    def __init__(self, client: AsyncClient, settings: Optional[Settings] = None):
        self._client = client
        self._settings = settings or get_settings()

    async def get_current_session(self) -> Optional[Session]:
        session = await self._client.auth.get_session()
        return self._to_session(session)

    def on_session_change(self, callback: SessionCallback) -> Unsubscribe:
        def handle(event: str, session: Any) -> None:
            try:
                session_event = SessionEvent(event)
            except ValueError:
                logger.debug("Ignoring unknown auth event %s", event)
                return
            callback(SessionChange(event=session_event, session=self._to_session(session)))

        subscription = self._client.auth.on_auth_state_change(handle)
        return subscription.unsubscribe

    async def refresh_session(self) -> Optional[Session]:
        response = await self._client.auth.refresh_session()
        return self._to_session(response.session if response else None)

    async def get_profile(self, user_id: str) -> dict[str, Any]:
        result = await self._client.table(self._settings.profiles_table).select(
            self._PROFILE_COLUMNS
        ).eq("id", user_id).single().execute()

        if not result.data:
            raise NotFoundError(
                f"Profile not found: {user_id}",
                code="PROFILE_NOT_FOUND",
                details={"user_id": user_id},
            )
        return result.data

    async def get_current_user_auth_metadata(self) -> dict[str, Any]:
        response = await self._client.auth.get_user()
        user = response.user if response else None
        if user is None:
            raise AuthenticationError("No signed-in user", code="NO_SESSION")
        return {"provider": (user.app_metadata or {}).get("provider")}

    async def get_global_settings(self, key: str) -> dict[str, Any]:
        result = await self._client.table(self._settings.settings_table).select(
            "value"
        ).eq("id", key).single().execute()

        if not result.data:
            raise NotFoundError(
                f"Settings not found: {key}",
                code="SETTINGS_NOT_FOUND",
                details={"key": key},
            )
        return result.data.get("value") or {}

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> None:
        await self._client.table(self._settings.profiles_table).update(
            fields
        ).eq("id", user_id).execute()

    async def update_password(self, password: str) -> None:
        await self._client.auth.update_user({"password": password})

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        try:
            response = await self._client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            raise AuthenticationError(str(e), code="INVALID_CREDENTIALS") from e
        session = self._to_session(response.session)
        if session is None:
            raise AuthenticationError("Sign-in returned no session", code="NO_SESSION")
        return session

    async def sign_out(self) -> None:
        await self._client.auth.sign_out()

    @staticmethod
    def _to_session(session: Any) -> Optional[Session]:
        """Map a GoTrue session onto the client's Session model."""
        if session is None or session.user is None:
            return None

        expires_at = None
        if session.expires_at:
            expires_at = datetime.fromtimestamp(session.expires_at, tz=timezone.utc)

        return Session(
            user_id=str(session.user.id),
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            provider=(session.user.app_metadata or {}).get("provider") or "email",
            email=session.user.email,
            expires_at=expires_at,
        )
