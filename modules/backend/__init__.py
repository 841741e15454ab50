"""
Backend module.

Wraps the remote data and auth API the resolution engine depends on.

Public API:
- IBackendClient: Interface for backend operations
- InMemoryBackend / SupabaseBackend: Implementations
- Session, SessionChange, SessionEvent: Auth provider models
"""

from .interfaces import IBackendClient, SessionCallback, Unsubscribe
from .models import Session, SessionChange, SessionEvent
from .service import InMemoryBackend, SupabaseBackend

__all__ = [
    # Interface
    "IBackendClient",
    "SessionCallback",
    "Unsubscribe",
    # Models
    "Session",
    "SessionChange",
    "SessionEvent",
    # Implementations
    "InMemoryBackend",
    "SupabaseBackend",
]
