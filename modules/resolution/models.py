"""
Resolution module data models.

A ResolutionPass describes why the resolver is being asked; a Decision is
the single answer it gives.
"""

from enum import Enum
from typing import Literal, Union
from pydantic import BaseModel, Field

from modules.navigation.models import Screen


class ResolutionReason(str, Enum):
    """What triggered a resolution pass."""

    APP_START = "app_start"
    SIGNED_IN = "signed_in"
    TOKEN_REFRESHED = "token_refreshed"
    USER_UPDATED = "user_updated"
    MANUAL_REFRESH = "manual_refresh"
    PASSWORD_SETUP_COMPLETED = "password_setup_completed"
    PASSWORD_SETUP_SKIPPED = "password_setup_skipped"
    LOGIN_ACTION = "login_action"


class ResolutionPass(BaseModel):
    """Context for one fetch -> resolve -> navigate run."""

    is_initial_load: bool = Field(..., description="First routing of this session")
    reason: ResolutionReason
    password_setup_deferred: bool = Field(
        default=False,
        description="User skipped the password overlay earlier in this session",
    )

    model_config = {"frozen": True}


class GoTo(BaseModel):
    """Show this screen."""

    kind: Literal["goto"] = "goto"
    screen: Screen

    model_config = {"frozen": True}


class ShowPasswordSetup(BaseModel):
    """Block navigation with the password setup overlay."""

    kind: Literal["show_password_setup"] = "show_password_setup"

    model_config = {"frozen": True}


class NoChange(BaseModel):
    """Leave the user where they are."""

    kind: Literal["no_change"] = "no_change"

    model_config = {"frozen": True}


class Unresolvable(BaseModel):
    """The profile could not be read; the caller picks a safe screen."""

    kind: Literal["unresolvable"] = "unresolvable"

    model_config = {"frozen": True}


Decision = Union[GoTo, ShowPasswordSetup, NoChange, Unresolvable]
