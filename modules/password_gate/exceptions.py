"""
Password gate exceptions.
"""

from shared.exceptions import ExternalServiceError, GymFlowError, ValidationError


class WeakPasswordError(ValidationError):
    """Raised when a new password does not meet the password policy."""

    def __init__(self, reason: str):
        super().__init__(
            reason,
            code="WEAK_PASSWORD",
            details={"reason": reason},
        )


class PasswordMismatchError(ValidationError):
    """Raised when the password and its confirmation differ."""

    def __init__(self):
        super().__init__("Passwords do not match", code="PASSWORD_MISMATCH")


class PasswordSetupError(ExternalServiceError):
    """Raised when the backend rejects the new password."""

    def __init__(self, reason: str):
        super().__init__(
            f"Failed to set password: {reason}",
            service="auth",
            code="PASSWORD_SETUP_FAILED",
            details={"reason": reason},
        )


class PasswordGateInactiveError(GymFlowError):
    """Raised when the overlay is completed or skipped while not shown."""

    def __init__(self):
        super().__init__("Password setup is not active", code="PASSWORD_GATE_INACTIVE")
