"""
Profiles module exceptions.
"""

from shared.exceptions import ExternalServiceError


class ProfileFetchError(ExternalServiceError):
    """
    Raised when a complete profile snapshot cannot be assembled.

    Most often the profile row has not been created yet by the signup
    trigger; callers fall back to the onboarding entry screen.
    """

    def __init__(self, user_id: str, reason: str):
        super().__init__(
            f"Could not load profile for {user_id}: {reason}",
            service="profiles",
            code="PROFILE_FETCH_FAILED",
            details={"user_id": user_id, "reason": reason},
        )


class SettingsFetchError(ExternalServiceError):
    """Raised when the gym-wide settings row cannot be read."""

    def __init__(self, key: str, reason: str):
        super().__init__(
            f"Could not load settings {key}: {reason}",
            service="app_settings",
            code="SETTINGS_FETCH_FAILED",
            details={"key": key, "reason": reason},
        )
