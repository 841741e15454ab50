"""
Backend module data models.

These models describe what the auth provider hands to the client:
the live session and the change notifications it emits.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class SessionEvent(str, Enum):
    """Auth provider events, named as GoTrue emits them."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    MFA_CHALLENGE_VERIFIED = "MFA_CHALLENGE_VERIFIED"


class Session(BaseModel):
    """
    A live authentication grant.

    Created on sign-in, replaced on token refresh, dropped on sign-out.
    """

    user_id: str = Field(..., description="User ID (UUID from Supabase)")
    access_token: str = Field(..., description="JWT access token")
    refresh_token: Optional[str] = Field(None, description="Refresh token")
    provider: str = Field(default="email", description="Auth provider that issued the session")
    email: Optional[str] = Field(None, description="User's email address")
    expires_at: Optional[datetime] = Field(None, description="Access token expiry")

    model_config = {"frozen": True}

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Whether the access token is past its expiry time."""
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at


class SessionChange(BaseModel):
    """One notification from the auth provider."""

    event: SessionEvent
    session: Optional[Session] = None

    model_config = {"frozen": True}
