"""
Navigation state machine.

The single writer of NavigationState. Every screen change, whether it comes
from a resolution pass or from a user tapping a button, goes through goto().
"""

import logging
from collections import deque
from typing import Any, Callable, Optional, Union

import pydantic

from .exceptions import InvalidSelectionError, UnknownScreenError
from .models import (
    AUXILIARY_FIELDS,
    DEFAULT_LANDING_SCREEN,
    SCREEN_FALLBACKS,
    SCREEN_REQUIREMENTS,
    NavigationState,
    Screen,
)

logger = logging.getLogger(__name__)

StateListener = Callable[[NavigationState, NavigationState], None]


class NavigationStateMachine:
    """
    Holds the current screen and the auxiliary selections screens share.

    Transitions are atomic: the screen and any auxiliary fields are
    validated together and swapped in as one new NavigationState.
    """

    def __init__(
        self,
        scroll_reset: Optional[Callable[[], None]] = None,
        history_limit: int = 50,
        initial_state: Optional[NavigationState] = None,
    ):
        self._state = initial_state or NavigationState()
        self._scroll_reset = scroll_reset
        self._listeners: list[StateListener] = []
        self._history: deque[Screen] = deque(maxlen=history_limit)

    @property
    def state(self) -> NavigationState:
        return self._state

    @property
    def current_screen(self) -> Screen:
        return self._state.current_screen

    @property
    def auxiliary_selections(self) -> dict[str, Any]:
        """The auxiliary fields of the current state, keyed by field name."""
        return {field: getattr(self._state, field) for field in sorted(AUXILIARY_FIELDS)}

    @property
    def history(self) -> list[Screen]:
        """Previously shown screens, oldest first."""
        return list(self._history)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called with (previous, current) after each transition."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def goto(self, screen: Union[Screen, str], **auxiliary: Any) -> NavigationState:
        """
        Transition to a screen.

        Auxiliary fields given here are merged into the state; fields not
        given are kept. Passing ``None`` clears a field. If the merged state
        lacks data the target screen requires, the transition lands on that
        screen's fallback instead (``CATEGORY_VIDEOS`` -> ``EXPLORE``, anything
        else -> ``DASHBOARD``).

        Args:
            screen: Target screen, as a Screen or its name
            **auxiliary: Auxiliary fields to set in the same transition

        Returns:
            The new navigation state

        Raises:
            UnknownScreenError: If the screen name is not recognised
            InvalidSelectionError: If an auxiliary field is unknown or invalid
        """
        return self._transition(self._coerce_screen(screen), auxiliary, record_history=True)

    def back(self) -> NavigationState:
        """
        Return to the most recent screen different from the current one.

        A no-op when there is nowhere to go back to.
        """
        while self._history:
            previous = self._history.pop()
            if previous != self._state.current_screen:
                return self._transition(previous, {}, record_history=False)
        return self._state

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _transition(
        self,
        target: Screen,
        auxiliary: dict[str, Any],
        record_history: bool,
    ) -> NavigationState:
        unknown = sorted(set(auxiliary) - AUXILIARY_FIELDS)
        if unknown:
            raise InvalidSelectionError("unknown auxiliary fields", unknown)

        previous = self._state
        data = previous.model_dump()
        data.update(auxiliary)
        data["current_screen"] = target
        data["revision"] = previous.revision + 1

        try:
            merged = NavigationState.model_validate(data)
        except pydantic.ValidationError as e:
            fields = [".".join(str(part) for part in error["loc"]) for error in e.errors()]
            raise InvalidSelectionError("auxiliary values failed validation", fields) from e

        resolved = self._resolve_target(target, merged)
        if resolved != target:
            merged = merged.model_copy(update={"current_screen": resolved})

        self._state = merged
        if record_history and previous.current_screen != resolved:
            self._history.append(previous.current_screen)

        if self._scroll_reset is not None:
            self._scroll_reset()

        logger.debug(
            "Navigated %s -> %s (revision %d)",
            previous.current_screen.value,
            resolved.value,
            merged.revision,
        )

        for listener in list(self._listeners):
            listener(previous, merged)

        return merged

    @staticmethod
    def _resolve_target(target: Screen, state: NavigationState) -> Screen:
        missing = [
            field for field in SCREEN_REQUIREMENTS.get(target, ())
            if getattr(state, field) is None
        ]
        if not missing:
            return target

        fallback = SCREEN_FALLBACKS.get(target, DEFAULT_LANDING_SCREEN)
        logger.warning(
            "Screen %s needs %s; showing %s instead",
            target.value,
            ", ".join(missing),
            fallback.value,
        )
        return fallback

    @staticmethod
    def _coerce_screen(screen: Union[Screen, str]) -> Screen:
        if isinstance(screen, Screen):
            return screen
        try:
            return Screen(screen)
        except ValueError:
            raise UnknownScreenError(str(screen))
