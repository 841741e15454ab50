"""
Session module interface.
"""

from typing import Any, Callable, Optional, Protocol, runtime_checkable

from modules.backend.models import Session, SessionChange

SessionListener = Callable[[SessionChange], None]


@runtime_checkable
class ISessionMonitor(Protocol):
    """
    Interface for the session lifecycle monitor.

    The monitor is the only component that knows whether a user is
    signed in; everything else learns about it through listeners.
    """

    flags: dict[str, Any]

    @property
    def is_active(self) -> bool:
        """Whether the monitor is running and still delivering events."""
        ...

    @property
    def current_session(self) -> Optional[Session]:
        """The most recent session seen, or None when signed out."""
        ...

    async def start(self) -> Optional[Session]:
        """
        Start monitoring and report the current session.

        Returns:
            The current session, or None if there is none or the check failed
        """
        ...

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener for session changes."""
        ...

    async def validate_session(self) -> bool:
        """Check that a usable session exists, refreshing it if needed."""
        ...

    async def force_refresh(self) -> bool:
        """Refresh the session regardless of cached validation."""
        ...

    async def stop(self) -> None:
        """Stop monitoring. Later provider events are ignored."""
        ...
