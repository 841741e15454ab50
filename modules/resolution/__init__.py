"""
Resolution module.

The status resolver: a pure, ordered rule list mapping a profile snapshot
to the one screen the user should see.

Public API:
- resolve / evaluate / resolve_failure: The decision functions
- RULES, DEFAULT_RULE: The ordered rule list and the rule used when none match
- ResolutionPass, ResolutionReason: Pass context
- GoTo, ShowPasswordSetup, NoChange, Unresolvable, Decision: Decisions
"""

from .models import (
    ResolutionPass,
    ResolutionReason,
    GoTo,
    ShowPasswordSetup,
    NoChange,
    Unresolvable,
    Decision,
)
from .rules import DEFAULT_RULE, RULES, Rule, evaluate, resolve, resolve_failure

__all__ = [
    # Functions
    "resolve",
    "evaluate",
    "resolve_failure",
    "RULES",
    "DEFAULT_RULE",
    "Rule",
    # Models
    "ResolutionPass",
    "ResolutionReason",
    "GoTo",
    "ShowPasswordSetup",
    "NoChange",
    "Unresolvable",
    "Decision",
]
