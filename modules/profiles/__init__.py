"""
Profiles module.

Reads the account state the status resolver classifies users by.

Public API:
- IProfileStatusFetcher: Interface for snapshot assembly
- ProfileStatusFetcher: Implementation
- ProfileSnapshot, GlobalSettings, UserRole, ApprovalStatus: Models
- Profile exceptions: ProfileFetchError, SettingsFetchError
"""

from .interfaces import IProfileStatusFetcher
from .models import (
    ProfileSnapshot,
    GlobalSettings,
    UserRole,
    ApprovalStatus,
    parse_expiry,
)
from .exceptions import ProfileFetchError, SettingsFetchError
from .service import ProfileStatusFetcher

__all__ = [
    # Interface
    "IProfileStatusFetcher",
    # Implementation
    "ProfileStatusFetcher",
    # Models
    "ProfileSnapshot",
    "GlobalSettings",
    "UserRole",
    "ApprovalStatus",
    "parse_expiry",
    # Exceptions
    "ProfileFetchError",
    "SettingsFetchError",
]
