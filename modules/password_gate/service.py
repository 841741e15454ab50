"""
Password setup gate.

Users who signed in through a federated provider have no local password.
Until they set one (or skip), an overlay replaces whatever screen is
current. Completing or skipping clears the overlay and hands control back
to the resolver.
"""

import logging
import re
from typing import Any, Awaitable, Callable, Optional

from modules.backend.interfaces import IBackendClient
from modules.resolution.models import ResolutionReason
from shared.config import Settings, get_settings

from .exceptions import (
    PasswordGateInactiveError,
    PasswordMismatchError,
    PasswordSetupError,
    WeakPasswordError,
)

logger = logging.getLogger(__name__)

ResolutionCallback = Callable[[ResolutionReason], Awaitable[Any]]

_UPPER_RE = re.compile(r"[A-Z]")
_LOWER_RE = re.compile(r"[a-z]")
_DIGIT_RE = re.compile(r"\d")


class PasswordSetupGate:
    """Short-lived override in front of normal navigation."""

    def __init__(self, backend: IBackendClient, settings: Optional[Settings] = None):
        self._backend = backend
        self._settings = settings or get_settings()
        self._user_id: Optional[str] = None
        self._busy = False
        self._on_resolved: Optional[ResolutionCallback] = None

    @property
    def active(self) -> bool:
        return self._user_id is not None

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def busy(self) -> bool:
        """Whether a password update is in flight."""
        return self._busy

    def set_resolution_callback(self, callback: ResolutionCallback) -> None:
        """Set what runs after the overlay is completed or skipped."""
        self._on_resolved = callback

    def activate(self, user_id: str) -> None:
        if self._user_id != user_id:
            logger.info("Password setup required for %s", user_id)
        self._user_id = user_id

    def clear(self) -> None:
        self._user_id = None

    def validate_password(self, password: str, confirm: str) -> None:
        """
        Check a new password against the password policy.

        Raises:
            WeakPasswordError: If a field is empty, too short, or lacks
                upper case, lower case or digits
            PasswordMismatchError: If the confirmation does not match
        """
        if not password or not confirm:
            raise WeakPasswordError("Please fill in all fields")
        if len(password) < self._settings.password_min_length:
            raise WeakPasswordError(
                f"Password must be at least {self._settings.password_min_length} characters long"
            )
        if password != confirm:
            raise PasswordMismatchError()
        if not (_UPPER_RE.search(password) and _LOWER_RE.search(password) and _DIGIT_RE.search(password)):
            raise WeakPasswordError("Password must contain uppercase, lowercase, and numbers")

    async def complete(self, password: str, confirm: str) -> Any:
        """
        Set the password, mark the profile, and re-run resolution.

        The overlay stays up if validation or the backend update fails.

        Returns:
            Whatever the resolution callback returns

        Raises:
            PasswordGateInactiveError: If the overlay is not shown
            WeakPasswordError, PasswordMismatchError: On policy violations
            PasswordSetupError: If the backend update fails
        """
        user_id = self._user_id
        if user_id is None:
            raise PasswordGateInactiveError()

        self.validate_password(password, confirm)

        self._busy = True
        try:
            await self._backend.update_password(password)
            await self._backend.update_profile(user_id, {"has_password": True})
        except Exception as e:
            raise PasswordSetupError(str(e)) from e
        finally:
            self._busy = False

        logger.info("Password set for %s", user_id)
        self.clear()
        return await self._resolve(ResolutionReason.PASSWORD_SETUP_COMPLETED)

    async def skip(self) -> Any:
        """Dismiss the overlay for now and re-run resolution."""
        if self._user_id is None:
            raise PasswordGateInactiveError()

        logger.info("Password setup skipped by %s", self._user_id)
        self.clear()
        return await self._resolve(ResolutionReason.PASSWORD_SETUP_SKIPPED)

    async def _resolve(self, reason: ResolutionReason) -> Any:
        if self._on_resolved is None:
            return None
        return await self._on_resolved(reason)
