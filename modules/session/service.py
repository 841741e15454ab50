"""
Session lifecycle monitor.

Owns the client's knowledge of whether a user is signed in. Subscribes to
auth provider events, fans them out to listeners in delivery order, and
keeps the session alive with a periodic validation task.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Optional

from modules.backend.interfaces import IBackendClient, Unsubscribe
from modules.backend.models import Session, SessionChange
from shared.config import Settings, get_settings

from .exceptions import MonitorStateError, SessionCheckError
from .interfaces import ISessionMonitor, SessionListener
from .models import SessionState

logger = logging.getLogger(__name__)

# Lower-cased message fragments that mean the access token was rejected
_SESSION_ERROR_MARKERS = ("jwt", "session", "unauthorized", "expired", "invalid token")


def is_session_error(error: BaseException) -> bool:
    """
    Whether an error means the session is no longer usable.

    Wrapped errors are classified by their whole cause chain, so a
    ProfileFetchError raised from a "JWT expired" response counts.
    """
    current: Optional[BaseException] = error
    while current is not None:
        status = getattr(current, "status", None) or getattr(current, "status_code", None)
        if status in (401, "401"):
            return True
        message = str(current).lower()
        if any(marker in message for marker in _SESSION_ERROR_MARKERS):
            return True
        current = current.__cause__
    return False


class SessionMonitor(ISessionMonitor):
    """
    Tracks the authentication session for the lifetime of the client.

    ``flags`` holds client-side markers tied to the current session (for
    example "this session has already been routed"). They are cleared
    whenever the provider reports that there is no session.
    """

    def __init__(
        self,
        backend: IBackendClient,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._backend = backend
        self._settings = settings or get_settings()
        self._clock = clock
        self._listeners: list[SessionListener] = []
        self._provider_unsubscribe: Optional[Unsubscribe] = None
        self._keepalive_task: Optional[asyncio.Task] = None
        self._session: Optional[Session] = None
        self._state = SessionState()
        self._events_seen = 0
        self._started = False
        self._active = False
        self.flags: dict[str, Any] = {}

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def current_session(self) -> Optional[Session]:
        return self._session

    @property
    def state(self) -> SessionState:
        return self._state

    async def start(self) -> Optional[Session]:
        """
        Subscribe to provider events, then check the current session.

        The subscription is made before the check so that an event emitted
        while the check is in flight is not lost. If such an event arrives,
        it is newer than the check result and wins.
        """
        if self._started:
            raise MonitorStateError("Session monitor already started")
        self._started = True
        self._active = True

        self._provider_unsubscribe = self._backend.on_session_change(self._handle_provider_event)
        events_before = self._events_seen

        try:
            session = await self._check_current_session()
        except SessionCheckError as e:
            logger.warning("Initial session check failed, continuing signed out: %s", e.message)
            session = None

        if session is not None and session.is_expired():
            logger.info("Stored session for %s has expired, refreshing", session.user_id)
            session = await self._try_refresh()

        if self._events_seen == events_before:
            self._session = session
            self._record_validation(session)

        self._keepalive_task = asyncio.create_task(self._keepalive())
        logger.info(
            "Session monitor started (%s)",
            f"user {self._session.user_id}" if self._session else "signed out",
        )
        return self._session

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a listener for session changes.

        Listeners are called synchronously, in registration order, once per
        provider event.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def validate_session(self) -> bool:
        """
        Check that a usable session exists.

        A positive result is cached for ``session_validation_cache_seconds``.
        If the check fails or the session has expired, a refresh is attempted.
        Never raises.
        """
        now = self._clock()
        if (
            self._state.is_valid
            and now - self._state.last_validated < self._settings.session_validation_cache_seconds
        ):
            return True

        try:
            session = await self._check_current_session()
        except SessionCheckError as e:
            logger.warning("Session validation error, attempting refresh: %s", e.message)
            session = await self._try_refresh()
        else:
            if session is not None and session.is_expired():
                session = await self._try_refresh()

        self._record_validation(session)
        return self._state.is_valid

    async def force_refresh(self) -> bool:
        """Drop the cached validation and refresh the session."""
        self._state = SessionState()
        session = await self._try_refresh()
        self._record_validation(session)
        return session is not None

    async def stop(self) -> None:
        """Stop the keepalive task and detach from the provider."""
        self._active = False

        if self._provider_unsubscribe is not None:
            self._provider_unsubscribe()
            self._provider_unsubscribe = None

        task, self._keepalive_task = self._keepalive_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        logger.info("Session monitor stopped")

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _handle_provider_event(self, change: SessionChange) -> None:
        if not self._active:
            logger.debug("Ignoring %s after monitor stopped", change.event.value)
            return

        self._events_seen += 1
        self._session = change.session
        self._record_validation(change.session)

        if change.session is None:
            self.flags.clear()

        logger.info(
            "Session change: %s (%s)",
            change.event.value,
            change.session.user_id if change.session else "no session",
        )

        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception("Session listener failed on %s", change.event.value)

    async def _check_current_session(self) -> Optional[Session]:
        try:
            return await self._backend.get_current_session()
        except Exception as e:
            raise SessionCheckError(str(e)) from e

    async def _try_refresh(self) -> Optional[Session]:
        try:
            return await self._backend.refresh_session()
        except Exception as e:
            logger.warning("Session refresh failed: %s", e)
            return None

    def _record_validation(self, session: Optional[Session]) -> None:
        self._state = SessionState(
            is_valid=session is not None,
            last_validated=self._clock(),
            user_id=session.user_id if session else None,
        )

    async def _keepalive(self) -> None:
        interval = self._settings.session_keepalive_interval_seconds
        while self._active:
            await asyncio.sleep(interval)
            if not self._active:
                break
            if not await self.validate_session() and self._session is not None:
                logger.warning("Session validation failed, attempting recovery")
                await self.force_refresh()
