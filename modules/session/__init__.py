"""
Session module.

Tracks the authentication session across app start, token refreshes
and sign-out, and keeps it alive in the background.

Public API:
- ISessionMonitor: Interface for the monitor
- SessionMonitor: Implementation
- is_session_error: Classifies errors caused by a rejected session
- SessionState: Cached validation result
- Session exceptions: SessionCheckError, MonitorStateError
"""

from .models import SessionState
from .exceptions import SessionCheckError, MonitorStateError
from .interfaces import ISessionMonitor, SessionListener
from .service import SessionMonitor, is_session_error

__all__ = [
    # Interface
    "ISessionMonitor",
    "SessionListener",
    # Implementation
    "SessionMonitor",
    "is_session_error",
    # Models
    "SessionState",
    # Exceptions
    "SessionCheckError",
    "MonitorStateError",
]
