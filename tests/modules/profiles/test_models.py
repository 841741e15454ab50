"""Tests for profiles models."""

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from modules.profiles import (
    ApprovalStatus,
    GlobalSettings,
    ProfileSnapshot,
    UserRole,
    parse_expiry,
)


class TestParseExpiry:
    @pytest.mark.parametrize("value", [None, ""])
    def test_empty(self, value):
        assert parse_expiry(value) is None

    def test_date_only_string_is_midnight_utc(self):
        assert parse_expiry("2025-06-10") == datetime(2025, 6, 10, tzinfo=timezone.utc)

    def test_timestamp_with_offset(self):
        parsed = parse_expiry("2025-06-10T12:00:00+02:00")

        assert parsed == datetime(2025, 6, 10, 10, 0, tzinfo=timezone.utc)

    def test_naive_timestamp_is_utc(self):
        assert parse_expiry("2025-06-10T08:30:00").tzinfo == timezone.utc

    def test_date_object(self):
        assert parse_expiry(date(2025, 6, 10)) == datetime(2025, 6, 10, tzinfo=timezone.utc)


class TestGlobalSettings:
    def test_from_value(self):
        assert GlobalSettings.from_value({"global_grace_period": 5}).global_grace_period_days == 5

    @pytest.mark.parametrize("value", [{}, {"global_grace_period": None}])
    def test_missing_key_means_no_grace(self, value):
        assert GlobalSettings.from_value(value).global_grace_period_days == 0


class TestProfileSnapshot:
    def test_defaults(self):
        snapshot = ProfileSnapshot(user_id="member-123")

        assert snapshot.role is UserRole.USER
        assert snapshot.approval_status is ApprovalStatus.PENDING
        assert not snapshot.onboarding_completed
        assert snapshot.plan is None
        assert snapshot.effective_expiry is None

    def test_blank_plan_is_none(self):
        assert ProfileSnapshot(user_id="member-123", plan="  ").plan is None

    def test_frozen(self):
        snapshot = ProfileSnapshot(user_id="member-123")

        with pytest.raises(ValidationError):
            snapshot.role = UserRole.ADMIN

    def test_rejects_unknown_role(self):
        with pytest.raises(ValidationError):
            ProfileSnapshot(user_id="member-123", role="owner")

    def test_user_grace_overrides_global(self):
        snapshot = ProfileSnapshot(
            user_id="member-123",
            plan_expiry_date="2025-06-10",
            grace_period_days=2,
            global_grace_period_days=5,
        )

        assert snapshot.effective_grace_days == 2
        assert snapshot.effective_expiry == datetime(2025, 6, 12, tzinfo=timezone.utc)

    def test_user_grace_of_zero_still_overrides(self):
        snapshot = ProfileSnapshot(
            user_id="member-123",
            grace_period_days=0,
            global_grace_period_days=5,
        )

        assert snapshot.effective_grace_days == 0

    def test_global_grace_used_without_override(self):
        snapshot = ProfileSnapshot(user_id="member-123", global_grace_period_days=5)

        assert snapshot.effective_grace_days == 5

    def test_is_plan_expired_is_strict(self):
        """The plan lapses only strictly after expiry plus grace."""
        snapshot = ProfileSnapshot(
            user_id="member-123",
            plan_expiry_date="2025-06-10",
            global_grace_period_days=5,
        )
        boundary = datetime(2025, 6, 15, tzinfo=timezone.utc)

        assert not snapshot.is_plan_expired(boundary)
        assert snapshot.is_plan_expired(datetime(2025, 6, 15, 0, 0, 1, tzinfo=timezone.utc))

    def test_no_expiry_never_expires(self):
        snapshot = ProfileSnapshot(user_id="member-123", plan="monthly")

        assert not snapshot.is_plan_expired(datetime(2100, 1, 1, tzinfo=timezone.utc))
