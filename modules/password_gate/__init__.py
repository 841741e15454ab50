"""
Password gate module.

Overlay that asks federated-login users to set a local password before
normal navigation resumes.

Public API:
- PasswordSetupGate: The gate
- Gate exceptions: WeakPasswordError, PasswordMismatchError,
  PasswordSetupError, PasswordGateInactiveError
"""

from .exceptions import (
    WeakPasswordError,
    PasswordMismatchError,
    PasswordSetupError,
    PasswordGateInactiveError,
)
from .service import PasswordSetupGate, ResolutionCallback

__all__ = [
    "PasswordSetupGate",
    "ResolutionCallback",
    "WeakPasswordError",
    "PasswordMismatchError",
    "PasswordSetupError",
    "PasswordGateInactiveError",
]
