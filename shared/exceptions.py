"""
Base exception classes for the GymFlow client.

Each module should define its own exceptions that inherit from these bases.
This enables consistent error handling across the application.
"""

from typing import Optional, Any


class GymFlowError(Exception):
    """
    Base exception for all GymFlow errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for logging and diagnostics."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(GymFlowError):
    """Resource not found."""

    pass


class ValidationError(GymFlowError):
    """Input validation failed."""

    pass


class AuthenticationError(GymFlowError):
    """Authentication failed (invalid, expired or missing session)."""

    pass


class ExternalServiceError(GymFlowError):
    """Error communicating with an external service."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service


class SessionError(GymFlowError):
    """Session lifecycle failure (check, refresh or monitor misuse)."""

    pass


class NavigationError(ValidationError):
    """A screen transition that cannot be honored."""

    pass
