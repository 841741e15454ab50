"""Tests for the navigation state machine."""

import logging

import pytest
from unittest.mock import MagicMock

from modules.navigation import (
    CLEARED_SELECTIONS,
    CategorySelection,
    InvalidSelectionError,
    NavigationState,
    NavigationStateMachine,
    Screen,
    UnknownScreenError,
)


@pytest.fixture
def machine():
    return NavigationStateMachine()


class TestGoto:
    def test_starts_on_splash(self, machine):
        assert machine.current_screen is Screen.SPLASH
        assert machine.state.revision == 0

    def test_goto_replaces_state(self, machine):
        before = machine.state

        after = machine.goto(Screen.DASHBOARD)

        assert after is machine.state
        assert after is not before
        assert after.current_screen is Screen.DASHBOARD
        assert after.revision == 1
        assert before.current_screen is Screen.SPLASH

    def test_goto_by_name(self, machine):
        machine.goto("STATS")

        assert machine.current_screen is Screen.STATS

    def test_unknown_screen_name(self, machine):
        with pytest.raises(UnknownScreenError) as exc_info:
            machine.goto("HOLODECK")

        assert exc_info.value.code == "UNKNOWN_SCREEN"
        assert machine.current_screen is Screen.SPLASH

    def test_sets_screen_and_selection_together(self, machine):
        """The detail screen and its workout ID arrive in one transition."""
        seen: list[NavigationState] = []
        machine.subscribe(lambda previous, current: seen.append(current))

        machine.goto(Screen.WORKOUT_DETAIL, selected_workout_id="w-1", selected_program_id="p-9")

        assert len(seen) == 1
        assert seen[0].current_screen is Screen.WORKOUT_DETAIL
        assert seen[0].selected_workout_id == "w-1"
        assert seen[0].selected_program_id == "p-9"

    def test_selections_are_kept_until_cleared(self, machine):
        machine.goto(Screen.WORKOUT_DETAIL, selected_workout_id="w-1")
        machine.goto(Screen.DASHBOARD)

        assert machine.auxiliary_selections["selected_workout_id"] == "w-1"

        machine.goto(Screen.SPLASH, **CLEARED_SELECTIONS)

        assert all(value is None for value in machine.auxiliary_selections.values())

    def test_category_selection(self, machine):
        machine.goto(Screen.CATEGORY_VIDEOS, selected_category={"id": "c-1", "name": "Yoga"})

        assert machine.current_screen is Screen.CATEGORY_VIDEOS
        assert machine.state.selected_category == CategorySelection(id="c-1", name="Yoga")

    def test_unknown_auxiliary_field(self, machine):
        with pytest.raises(InvalidSelectionError) as exc_info:
            machine.goto(Screen.DASHBOARD, selected_trainer="t-1")

        assert exc_info.value.details["fields"] == ["selected_trainer"]
        assert machine.state.revision == 0

    def test_invalid_auxiliary_value(self, machine):
        with pytest.raises(InvalidSelectionError):
            machine.goto(Screen.WORKOUT_SUMMARY, last_workout_duration=-5)

        assert machine.current_screen is Screen.SPLASH


class TestFallbacks:
    def test_category_videos_without_category_shows_explore(self, machine, caplog):
        with caplog.at_level(logging.WARNING):
            machine.goto(Screen.CATEGORY_VIDEOS)

        assert machine.current_screen is Screen.EXPLORE
        assert "CATEGORY_VIDEOS" in caplog.text

    def test_workout_detail_without_workout_shows_dashboard(self, machine):
        machine.goto(Screen.WORKOUT_DETAIL)

        assert machine.current_screen is Screen.DASHBOARD

    @pytest.mark.parametrize("screen", [Screen.WORKOUT_SUMMARY, Screen.WORKOUT_FEEDBACK])
    def test_summary_screens_need_duration(self, machine, screen):
        machine.goto(screen)
        assert machine.current_screen is Screen.DASHBOARD

        machine.goto(screen, last_workout_duration=1800)
        assert machine.current_screen is screen

    def test_cleared_selection_triggers_fallback(self, machine):
        machine.goto(Screen.WORKOUT_DETAIL, selected_workout_id="w-1")

        machine.goto(Screen.WORKOUT_DETAIL, selected_workout_id=None)

        assert machine.current_screen is Screen.DASHBOARD


class TestHooks:
    def test_scroll_reset_runs_on_every_transition(self):
        scroll_reset = MagicMock()
        machine = NavigationStateMachine(scroll_reset=scroll_reset)

        machine.goto(Screen.DASHBOARD)
        machine.goto(Screen.STATS)

        assert scroll_reset.call_count == 2

    def test_listener_gets_previous_and_current(self, machine):
        listener = MagicMock()
        machine.subscribe(listener)

        machine.goto(Screen.LOGIN)

        previous, current = listener.call_args.args
        assert previous.current_screen is Screen.SPLASH
        assert current.current_screen is Screen.LOGIN

    def test_unsubscribe(self, machine):
        listener = MagicMock()
        unsubscribe = machine.subscribe(listener)

        unsubscribe()
        machine.goto(Screen.LOGIN)

        listener.assert_not_called()


class TestHistory:
    def test_records_previous_screens(self, machine):
        machine.goto(Screen.DASHBOARD)
        machine.goto(Screen.EXPLORE)
        machine.goto(Screen.EXPLORE)

        assert machine.history == [Screen.SPLASH, Screen.DASHBOARD]

    def test_history_is_bounded(self):
        machine = NavigationStateMachine(history_limit=2)

        for screen in (Screen.LOGIN, Screen.SIGNUP, Screen.DASHBOARD, Screen.STATS):
            machine.goto(screen)

        assert machine.history == [Screen.SIGNUP, Screen.DASHBOARD]

    def test_back(self, machine):
        machine.goto(Screen.DASHBOARD)
        machine.goto(Screen.WORKOUT_DETAIL, selected_workout_id="w-1")

        machine.back()

        assert machine.current_screen is Screen.DASHBOARD
        assert machine.history == [Screen.SPLASH]

    def test_back_with_no_history(self, machine):
        state = machine.back()

        assert state is machine.state
        assert machine.current_screen is Screen.SPLASH

    def test_initial_state(self):
        machine = NavigationStateMachine(
            initial_state=NavigationState(current_screen=Screen.PROFILE),
        )

        assert machine.current_screen is Screen.PROFILE
