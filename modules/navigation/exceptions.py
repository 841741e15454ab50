"""
Navigation module exceptions.
"""

from shared.exceptions import NavigationError


class UnknownScreenError(NavigationError):
    """Raised when a transition names a screen that does not exist."""

    def __init__(self, screen: str):
        super().__init__(
            f"Unknown screen: {screen}",
            code="UNKNOWN_SCREEN",
            details={"screen": screen},
        )


class InvalidSelectionError(NavigationError):
    """Raised when auxiliary state passed to a transition is not valid."""

    def __init__(self, reason: str, fields: list[str]):
        super().__init__(
            f"Invalid navigation selection: {reason}",
            code="INVALID_SELECTION",
            details={"fields": fields},
        )
