"""
Status resolver.

Maps a ProfileSnapshot to exactly one Decision. The rules below are tried
in order and the first one that returns a Decision wins. The order is the
business contract:

1. federated login without a local password -> password setup overlay,
   unless the user skipped it earlier in the session
2. admin -> admin home, on the session's first routing only
3. plan lapsed past its grace period -> plan selection
4. onboarded and approved -> dashboard
5. onboarded, not yet approved -> application status
6. plan chosen, onboarding incomplete -> application status
7. everyone else -> onboarding entry (the default, not in RULES)

Everything here is pure. The only time input is ``now``.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from modules.navigation.models import (
    ADMIN_HOME,
    ONBOARDING_ENTRY,
    PLAN_SELECTION,
    Screen,
)
from modules.profiles.models import ApprovalStatus, ProfileSnapshot, UserRole

from .models import (
    Decision,
    GoTo,
    NoChange,
    ResolutionPass,
    ShowPasswordSetup,
    Unresolvable,
)

Rule = Callable[[ProfileSnapshot, ResolutionPass, datetime], Optional[Decision]]


def password_setup_rule(
    snapshot: ProfileSnapshot,
    resolution_pass: ResolutionPass,
    now: datetime,
) -> Optional[Decision]:
    if resolution_pass.password_setup_deferred:
        return None
    if snapshot.is_federated_login and not snapshot.has_password:
        return ShowPasswordSetup()
    return None


def admin_rule(
    snapshot: ProfileSnapshot,
    resolution_pass: ResolutionPass,
    now: datetime,
) -> Optional[Decision]:
    if snapshot.role is not UserRole.ADMIN:
        return None
    if resolution_pass.is_initial_load:
        return GoTo(screen=ADMIN_HOME)
    return NoChange()


def plan_expiry_rule(
    snapshot: ProfileSnapshot,
    resolution_pass: ResolutionPass,
    now: datetime,
) -> Optional[Decision]:
    if snapshot.is_plan_expired(now):
        return GoTo(screen=PLAN_SELECTION)
    return None


def approved_member_rule(
    snapshot: ProfileSnapshot,
    resolution_pass: ResolutionPass,
    now: datetime,
) -> Optional[Decision]:
    if snapshot.onboarding_completed and snapshot.approval_status is ApprovalStatus.APPROVED:
        return GoTo(screen=Screen.DASHBOARD)
    return None


def awaiting_approval_rule(
    snapshot: ProfileSnapshot,
    resolution_pass: ResolutionPass,
    now: datetime,
) -> Optional[Decision]:
    if snapshot.onboarding_completed:
        return GoTo(screen=Screen.APPLICATION_STATUS)
    return None


def plan_chosen_rule(
    snapshot: ProfileSnapshot,
    resolution_pass: ResolutionPass,
    now: datetime,
) -> Optional[Decision]:
    if snapshot.plan is not None:
        return GoTo(screen=Screen.APPLICATION_STATUS)
    return None


def onboarding_entry_rule(
    snapshot: ProfileSnapshot,
    resolution_pass: ResolutionPass,
    now: datetime,
) -> Decision:
    """Default when no other rule matches."""
    return GoTo(screen=ONBOARDING_ENTRY)


RULES: tuple[tuple[str, Rule], ...] = (
    ("password_setup", password_setup_rule),
    ("admin", admin_rule),
    ("plan_expiry", plan_expiry_rule),
    ("approved_member", approved_member_rule),
    ("awaiting_approval", awaiting_approval_rule),
    ("plan_chosen", plan_chosen_rule),
)

DEFAULT_RULE = "onboarding_entry"


def evaluate(
    snapshot: ProfileSnapshot,
    resolution_pass: ResolutionPass,
    now: Optional[datetime] = None,
) -> tuple[str, Decision]:
    """
    Run the rules and report which one decided.

    Returns:
        Tuple of (rule name, decision)
    """
    now = _as_utc(now or datetime.now(timezone.utc))
    for name, rule in RULES:
        decision = rule(snapshot, resolution_pass, now)
        if decision is not None:
            return name, decision
    return DEFAULT_RULE, onboarding_entry_rule(snapshot, resolution_pass, now)


def resolve(
    snapshot: ProfileSnapshot,
    resolution_pass: ResolutionPass,
    now: Optional[datetime] = None,
) -> Decision:
    """Decide where the user should be."""
    _, decision = evaluate(snapshot, resolution_pass, now)
    return decision


def resolve_failure() -> Decision:
    """Decision for a pass whose profile could not be read."""
    return Unresolvable()


def _as_utc(now: datetime) -> datetime:
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now
