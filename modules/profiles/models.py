"""
Profiles module data models.

A ProfileSnapshot is everything the status resolver is allowed to look at.
It is read once per resolution pass and never modified afterwards.
"""

from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from dateutil.parser import isoparse
from pydantic import BaseModel, Field, field_validator


class UserRole(str, Enum):
    """Account role."""

    USER = "user"
    ADMIN = "admin"


class ApprovalStatus(str, Enum):
    """Admin review state of a membership application."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def parse_expiry(value: Any) -> Optional[datetime]:
    """
    Normalise a plan expiry value to an aware UTC datetime.

    Date-only values mean midnight UTC on that day; naive timestamps are
    taken to be UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        parsed = isoparse(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class GlobalSettings(BaseModel):
    """Gym-wide settings the resolver depends on."""

    global_grace_period_days: int = Field(default=0, ge=0)

    @classmethod
    def from_value(cls, value: dict[str, Any]) -> "GlobalSettings":
        """Build from the JSON ``value`` column of the gym settings row."""
        return cls(global_grace_period_days=value.get("global_grace_period") or 0)


class ProfileSnapshot(BaseModel):
    """Point-in-time read of a user's account state."""

    user_id: str
    role: UserRole = UserRole.USER
    onboarding_completed: bool = False
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    plan: Optional[str] = None
    plan_expiry_date: Optional[datetime] = None
    grace_period_days: Optional[int] = Field(None, ge=0)
    global_grace_period_days: Optional[int] = Field(None, ge=0)
    has_password: bool = False
    is_federated_login: bool = False

    model_config = {"frozen": True}

    @field_validator("plan", mode="before")
    @classmethod
    def _blank_plan_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("plan_expiry_date", mode="before")
    @classmethod
    def _parse_expiry(cls, value: Any) -> Optional[datetime]:
        return parse_expiry(value)

    @property
    def effective_grace_days(self) -> int:
        """Per-user override, else the gym-wide default, else zero."""
        if self.grace_period_days is not None:
            return self.grace_period_days
        if self.global_grace_period_days is not None:
            return self.global_grace_period_days
        return 0

    @property
    def effective_expiry(self) -> Optional[datetime]:
        """Plan expiry pushed out by the grace period."""
        if self.plan_expiry_date is None:
            return None
        return self.plan_expiry_date + timedelta(days=self.effective_grace_days)

    def is_plan_expired(self, now: datetime) -> bool:
        """Whether the plan has lapsed past its grace period at ``now``."""
        expiry = self.effective_expiry
        return expiry is not None and now > expiry
