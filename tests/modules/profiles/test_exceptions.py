"""Tests for profiles module exceptions."""

from modules.profiles.exceptions import ProfileFetchError, SettingsFetchError
from shared.exceptions import ExternalServiceError


class TestProfileFetchError:
    def test_profile_fetch_error(self):
        """Should carry the user ID and reason."""
        error = ProfileFetchError("member-123", "profile row not found")

        assert "member-123" in str(error)
        assert error.code == "PROFILE_FETCH_FAILED"
        assert error.service == "profiles"
        assert error.details["reason"] == "profile row not found"
        assert isinstance(error, ExternalServiceError)


class TestSettingsFetchError:
    def test_settings_fetch_error(self):
        error = SettingsFetchError("gym_settings", "timeout")

        assert error.code == "SETTINGS_FETCH_FAILED"
        assert error.to_dict()["details"] == {
            "key": "gym_settings",
            "reason": "timeout",
            "service": "app_settings",
        }
