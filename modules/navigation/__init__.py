"""
Navigation module.

Single-writer state machine for the screen the client is showing and the
selections screens hand to each other.

Public API:
- NavigationStateMachine: The state container
- Screen, NavigationState, CategorySelection: Models
- Navigation exceptions: UnknownScreenError, InvalidSelectionError
"""

from .models import (
    Screen,
    NavigationState,
    CategorySelection,
    AUXILIARY_FIELDS,
    CLEARED_SELECTIONS,
    SCREEN_REQUIREMENTS,
    SCREEN_FALLBACKS,
    MEMBER_SCREENS,
    ONBOARDING_SCREENS,
    same_area,
    ADMIN_HOME,
    PLAN_SELECTION,
    ONBOARDING_ENTRY,
    DEFAULT_LANDING_SCREEN,
)
from .exceptions import UnknownScreenError, InvalidSelectionError
from .service import NavigationStateMachine, StateListener

__all__ = [
    # State machine
    "NavigationStateMachine",
    "StateListener",
    # Models
    "Screen",
    "NavigationState",
    "CategorySelection",
    "AUXILIARY_FIELDS",
    "CLEARED_SELECTIONS",
    "SCREEN_REQUIREMENTS",
    "SCREEN_FALLBACKS",
    "MEMBER_SCREENS",
    "ONBOARDING_SCREENS",
    "same_area",
    "ADMIN_HOME",
    "PLAN_SELECTION",
    "ONBOARDING_ENTRY",
    "DEFAULT_LANDING_SCREEN",
    # Exceptions
    "UnknownScreenError",
    "InvalidSelectionError",
]
