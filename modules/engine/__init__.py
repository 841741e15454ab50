"""
Engine module.

Orchestrates session tracking, profile classification and navigation.

Public API:
- ResolutionEngine: The pipeline orchestrator
- ROUTED_FLAG: Session flag marking a session as already routed
- PASSWORD_DEFERRED_FLAG: Session flag set when the password overlay was skipped
"""

from .service import ResolutionEngine, ROUTED_FLAG, PASSWORD_DEFERRED_FLAG

__all__ = [
    "ResolutionEngine",
    "ROUTED_FLAG",
    "PASSWORD_DEFERRED_FLAG",
]
