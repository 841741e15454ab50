"""
Navigation module data models.

Defines the closed set of screens, the navigation state value, and the
auxiliary data each screen needs before it can be shown.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class Screen(str, Enum):
    """Every screen the client can render."""

    # Entry and auth
    SPLASH = "SPLASH"
    LOGIN = "LOGIN"
    SIGNUP = "SIGNUP"
    GOOGLE_PASSWORD_SETUP = "GOOGLE_PASSWORD_SETUP"
    FORGOT_PASSWORD = "FORGOT_PASSWORD"
    VERIFICATION = "VERIFICATION"
    SUCCESS = "SUCCESS"

    # Onboarding
    ONBOARDING_GOAL = "ONBOARDING_GOAL"
    ONBOARDING_GENDER = "ONBOARDING_GENDER"
    ONBOARDING_HEIGHT = "ONBOARDING_HEIGHT"
    ONBOARDING_WEIGHT = "ONBOARDING_WEIGHT"
    ONBOARDING_PLAN = "ONBOARDING_PLAN"
    APPLICATION_STATUS = "APPLICATION_STATUS"

    # Member area
    DASHBOARD = "DASHBOARD"
    DAILY_TRACKER = "DAILY_TRACKER"
    NUTRITION_GOALS = "NUTRITION_GOALS"
    EXPLORE = "EXPLORE"
    CATEGORY_VIDEOS = "CATEGORY_VIDEOS"
    TRAINERS = "TRAINERS"
    WORKOUT_PROGRAM = "WORKOUT_PROGRAM"
    WORKOUT_DETAIL = "WORKOUT_DETAIL"
    WORKOUT_SUMMARY = "WORKOUT_SUMMARY"
    WORKOUT_FEEDBACK = "WORKOUT_FEEDBACK"
    STATS = "STATS"
    PROFILE = "PROFILE"
    CONFIG = "CONFIG"
    GYM_CATALOG = "GYM_CATALOG"
    CREATE_WORKOUT = "CREATE_WORKOUT"
    SUBSCRIPTION_DETAILS = "SUBSCRIPTION_DETAILS"
    WORKOUT_HISTORY = "WORKOUT_HISTORY"
    STORE = "STORE"
    CART = "CART"
    ORDER_HISTORY = "ORDER_HISTORY"
    ATTENDANCE = "ATTENDANCE"

    # Admin
    ADMIN_DASHBOARD = "ADMIN_DASHBOARD"
    ADMIN_USERS = "ADMIN_USERS"
    ADMIN_PLANS = "ADMIN_PLANS"
    ADMIN_EXERCISES = "ADMIN_EXERCISES"
    ADMIN_WORKOUTS = "ADMIN_WORKOUTS"
    ADMIN_CATEGORIES = "ADMIN_CATEGORIES"
    ADMIN_SHOP = "ADMIN_SHOP"
    ADMIN_ORDERS = "ADMIN_ORDERS"
    ADMIN_EXPLORE = "ADMIN_EXPLORE"
    ADMIN_INDIAN_FOODS = "ADMIN_INDIAN_FOODS"
    ADMIN_FOOD_APPROVALS = "ADMIN_FOOD_APPROVALS"
    ADMIN_PT = "ADMIN_PT"
    ADMIN_ANNOUNCEMENTS = "ADMIN_ANNOUNCEMENTS"
    ADMIN_SUBSCRIPTION_TRACKER = "ADMIN_SUBSCRIPTION_TRACKER"
    ADMIN_ATTENDANCE = "ADMIN_ATTENDANCE"


# Destinations named by the resolver
ADMIN_HOME = Screen.ADMIN_DASHBOARD
PLAN_SELECTION = Screen.ONBOARDING_PLAN
ONBOARDING_ENTRY = Screen.ONBOARDING_GOAL

# Where a transition lands when its target cannot be shown
DEFAULT_LANDING_SCREEN = Screen.DASHBOARD

ONBOARDING_SCREENS = frozenset({
    Screen.ONBOARDING_GOAL,
    Screen.ONBOARDING_GENDER,
    Screen.ONBOARDING_HEIGHT,
    Screen.ONBOARDING_WEIGHT,
    Screen.ONBOARDING_PLAN,
})

MEMBER_SCREENS = frozenset({
    Screen.DASHBOARD,
    Screen.DAILY_TRACKER,
    Screen.NUTRITION_GOALS,
    Screen.EXPLORE,
    Screen.CATEGORY_VIDEOS,
    Screen.TRAINERS,
    Screen.WORKOUT_PROGRAM,
    Screen.WORKOUT_DETAIL,
    Screen.WORKOUT_SUMMARY,
    Screen.WORKOUT_FEEDBACK,
    Screen.STATS,
    Screen.PROFILE,
    Screen.CONFIG,
    Screen.GYM_CATALOG,
    Screen.CREATE_WORKOUT,
    Screen.SUBSCRIPTION_DETAILS,
    Screen.WORKOUT_HISTORY,
    Screen.STORE,
    Screen.CART,
    Screen.ORDER_HISTORY,
    Screen.ATTENDANCE,
})

FLOW_AREAS = (ONBOARDING_SCREENS, MEMBER_SCREENS)


def same_area(first: Screen, second: Screen) -> bool:
    """Whether two screens belong to the same flow (onboarding or member area)."""
    return first == second or any(first in area and second in area for area in FLOW_AREAS)


class CategorySelection(BaseModel):
    """A workout category picked on the explore screen."""

    id: str = Field(..., description="Category ID")
    name: str = Field(..., description="Display name")

    model_config = {"frozen": True}


class NavigationState(BaseModel):
    """
    What the client is showing right now.

    Replaced as a whole on every transition; never mutated in place.
    """

    current_screen: Screen = Field(default=Screen.SPLASH)
    selected_workout_id: Optional[str] = Field(None, description="Workout opened in the detail view")
    selected_program_id: Optional[str] = Field(None, description="Program the workout belongs to")
    selected_category: Optional[CategorySelection] = Field(None, description="Category for the videos view")
    last_workout_duration: Optional[int] = Field(
        None,
        ge=0,
        description="Duration of the last finished workout, in seconds",
    )
    revision: int = Field(default=0, ge=0, description="Number of transitions applied")

    model_config = {"frozen": True}


AUXILIARY_FIELDS = frozenset({
    "selected_workout_id",
    "selected_program_id",
    "selected_category",
    "last_workout_duration",
})

CLEARED_SELECTIONS: dict[str, None] = {field: None for field in AUXILIARY_FIELDS}

# Auxiliary fields a screen cannot render without
SCREEN_REQUIREMENTS: dict[Screen, tuple[str, ...]] = {
    Screen.WORKOUT_DETAIL: ("selected_workout_id",),
    Screen.WORKOUT_SUMMARY: ("last_workout_duration",),
    Screen.WORKOUT_FEEDBACK: ("last_workout_duration",),
    Screen.CATEGORY_VIDEOS: ("selected_category",),
}

# Designed fallbacks; other screens fall back to DEFAULT_LANDING_SCREEN
SCREEN_FALLBACKS: dict[Screen, Screen] = {
    Screen.CATEGORY_VIDEOS: Screen.EXPLORE,
}
