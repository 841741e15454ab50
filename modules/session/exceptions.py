"""
Session module exceptions.
"""

from shared.exceptions import SessionError


class SessionCheckError(SessionError):
    """
    Raised when the current session cannot be determined.

    Transient by nature; the monitor treats it as "no session".
    """

    def __init__(self, message: str = "Session check failed"):
        super().__init__(message, code="SESSION_CHECK_FAILED")


class MonitorStateError(SessionError):
    """Raised when the monitor lifecycle is used out of order."""

    def __init__(self, message: str):
        super().__init__(message, code="MONITOR_STATE")
