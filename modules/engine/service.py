"""
Session and navigation resolution engine.

Runs the fetch -> resolve -> navigate pipeline on app start, on every
session change, after the password overlay, and on manual refresh.

Passes can overlap. Each pass remembers the session generation it started
under; if another session change (sign-out, new sign-in, token refresh)
arrives before the pass finishes, its decision is discarded instead of
applied. Cancellation is by discarding: in-flight reads are never aborted.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

from modules.backend.interfaces import IBackendClient
from modules.backend.models import Session, SessionChange, SessionEvent
from modules.navigation.models import (
    CLEARED_SELECTIONS,
    ONBOARDING_ENTRY,
    NavigationState,
    Screen,
    same_area,
)
from modules.navigation.service import NavigationStateMachine
from modules.password_gate.service import PasswordSetupGate
from modules.profiles.exceptions import ProfileFetchError
from modules.profiles.interfaces import IProfileStatusFetcher
from modules.profiles.models import ProfileSnapshot
from modules.profiles.service import ProfileStatusFetcher
from modules.resolution.models import (
    Decision,
    GoTo,
    NoChange,
    ResolutionPass,
    ResolutionReason,
    ShowPasswordSetup,
    Unresolvable,
)
from modules.resolution.rules import evaluate, resolve_failure
from modules.session.interfaces import ISessionMonitor
from modules.session.service import SessionMonitor, is_session_error
from shared.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Session flags, cleared by the monitor on sign-out
ROUTED_FLAG = "routed"
PASSWORD_DEFERRED_FLAG = "password_setup_deferred"

_EVENT_REASONS: dict[SessionEvent, ResolutionReason] = {
    SessionEvent.INITIAL_SESSION: ResolutionReason.APP_START,
    SessionEvent.SIGNED_IN: ResolutionReason.SIGNED_IN,
    SessionEvent.TOKEN_REFRESHED: ResolutionReason.TOKEN_REFRESHED,
    SessionEvent.USER_UPDATED: ResolutionReason.USER_UPDATED,
    SessionEvent.PASSWORD_RECOVERY: ResolutionReason.USER_UPDATED,
    SessionEvent.MFA_CHALLENGE_VERIFIED: ResolutionReason.SIGNED_IN,
}

# Rules whose decisions are applied even when they stay inside the current area
_ALWAYS_APPLIED_RULES = frozenset({"plan_expiry"})


class ResolutionEngine:
    """
    Wires the session monitor, profile fetcher, resolver, navigation state
    machine and password gate together.

    The rendering layer reads ``current_screen``, ``auxiliary_selections``
    and ``show_password_setup_overlay``, and writes through ``navigate`` and
    the password overlay callbacks.
    """

    def __init__(
        self,
        backend: IBackendClient,
        monitor: Optional[ISessionMonitor] = None,
        fetcher: Optional[IProfileStatusFetcher] = None,
        machine: Optional[NavigationStateMachine] = None,
        gate: Optional[PasswordSetupGate] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        settings = settings or get_settings()
        self._settings = settings
        self._monitor = monitor or SessionMonitor(backend, settings)
        self._fetcher = fetcher or ProfileStatusFetcher(backend, settings)
        self._machine = machine or NavigationStateMachine(
            history_limit=settings.navigation_history_limit,
        )
        self._gate = gate or PasswordSetupGate(backend, settings)
        self._gate.set_resolution_callback(self._after_password_gate)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._session: Optional[Session] = None
        self._generation = 0
        self._tasks: set[asyncio.Task] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._recoveries = 0

    # -------------------------------------------------------------------------
    # Surface for the rendering layer
    # -------------------------------------------------------------------------

    @property
    def machine(self) -> NavigationStateMachine:
        return self._machine

    @property
    def state(self) -> NavigationState:
        return self._machine.state

    @property
    def current_screen(self) -> Screen:
        return self._machine.current_screen

    @property
    def auxiliary_selections(self) -> dict[str, Any]:
        return self._machine.auxiliary_selections

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def show_password_setup_overlay(self) -> bool:
        """When true, the overlay replaces whatever screen is current."""
        return self._gate.active and self._session is not None

    def navigate(self, screen: Union[Screen, str], **auxiliary: Any) -> NavigationState:
        """User-driven transition; see NavigationStateMachine.goto."""
        return self._machine.goto(screen, **auxiliary)

    async def on_password_setup_complete(self, password: str, confirm: str) -> Optional[Decision]:
        return await self._gate.complete(password, confirm)

    async def on_password_setup_skip(self) -> Optional[Decision]:
        return await self._gate.skip()

    async def refresh(self) -> Optional[Decision]:
        """Re-run resolution on request (the application status refresh button)."""
        return await self.run_pass(ResolutionReason.MANUAL_REFRESH, is_initial_load=False)

    async def on_login(self) -> Optional[Decision]:
        """Re-check the signed-in user once the login screen reports success."""
        return await self.run_pass(ResolutionReason.LOGIN_ACTION)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> NavigationState:
        """
        Start the session monitor and route the current session, if any.

        Returns:
            Navigation state after the initial pass
        """
        self._unsubscribe = self._monitor.subscribe(self._on_session_change)
        session = await self._monitor.start()

        # A session change during start() already scheduled its own pass
        if self._generation == 0:
            self._session = session
            if session is not None:
                await self.run_pass(ResolutionReason.APP_START, is_initial_load=True)

        return self._machine.state

    async def drain(self) -> None:
        """Wait until every scheduled pass has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def stop(self) -> None:
        """Stop listening and let in-flight passes finish without applying."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self._monitor.stop()
        await self.drain()

    # -------------------------------------------------------------------------
    # Resolution passes
    # -------------------------------------------------------------------------

    async def run_pass(
        self,
        reason: ResolutionReason,
        is_initial_load: Optional[bool] = None,
    ) -> Optional[Decision]:
        """
        Fetch the profile, resolve it, and apply the decision.

        Args:
            reason: What triggered the pass
            is_initial_load: Override for the pass flag. Defaults to whether
                this session has been routed yet.

        Returns:
            The decision as applied: NoChange when the engine kept the user
            where they are, or None if there was no session or the pass was
            superseded before it finished
        """
        session = self._session
        if session is None:
            logger.debug("Skipping %s pass: no session", reason.value)
            return None

        generation = self._generation
        if is_initial_load is None:
            is_initial_load = not self._monitor.flags.get(ROUTED_FLAG, False)
        resolution_pass = ResolutionPass(
            is_initial_load=is_initial_load,
            reason=reason,
            password_setup_deferred=self._monitor.flags.get(PASSWORD_DEFERRED_FLAG, False),
        )

        try:
            snapshot = await self._fetch_snapshot(session.user_id)
        except ProfileFetchError as e:
            logger.warning("%s; falling back to onboarding", e.message)
            rule, decision = "profile_unavailable", resolve_failure()
        else:
            rule, decision = evaluate(snapshot, resolution_pass, self._clock())

        if generation != self._generation or not self._monitor.is_active:
            logger.debug(
                "Discarding %s decision from superseded %s pass for %s",
                decision.kind,
                reason.value,
                session.user_id,
            )
            return None

        logger.info(
            "Resolved %s (%s, initial=%s) via %s: %s",
            session.user_id,
            reason.value,
            is_initial_load,
            rule,
            decision.screen.value if isinstance(decision, GoTo) else decision.kind,
        )
        return self._apply(decision, rule, session, resolution_pass)

    async def _fetch_snapshot(self, user_id: str) -> ProfileSnapshot:
        """
        Fetch the profile, recovering the session between attempts.

        Only failures caused by a rejected session are retried, at most
        ``session_recovery_retries`` times.
        """
        retries = self._settings.session_recovery_retries
        attempt = 0
        while True:
            try:
                return await self._fetcher.fetch(user_id)
            except ProfileFetchError as e:
                if attempt >= retries or not is_session_error(e):
                    raise
                attempt += 1
                logger.warning(
                    "Session error loading profile for %s, recovering (attempt %d of %d)",
                    user_id,
                    attempt,
                    retries,
                )
                if not await self._recover_session():
                    raise
                await asyncio.sleep(self._settings.session_recovery_delay_seconds)

    async def _recover_session(self) -> bool:
        # The refresh below reports TOKEN_REFRESHED; see _on_session_change
        self._recoveries += 1
        try:
            return await self._monitor.force_refresh()
        finally:
            self._recoveries -= 1

    def _apply(
        self,
        decision: Decision,
        rule: str,
        session: Session,
        resolution_pass: ResolutionPass,
    ) -> Decision:
        if isinstance(decision, ShowPasswordSetup):
            self._gate.activate(session.user_id)
            return decision

        if isinstance(decision, NoChange):
            return decision

        # A failed re-read keeps a user who is already somewhere
        if (
            isinstance(decision, Unresolvable)
            and not resolution_pass.is_initial_load
            and self._machine.current_screen is not Screen.SPLASH
        ):
            logger.info("Profile unavailable; staying on %s", self._machine.current_screen.value)
            return NoChange()

        target = ONBOARDING_ENTRY if isinstance(decision, Unresolvable) else decision.screen
        self._gate.clear()
        self._monitor.flags[ROUTED_FLAG] = True

        current = self._machine.current_screen
        if current == target:
            return decision
        if (
            not resolution_pass.is_initial_load
            and resolution_pass.reason is not ResolutionReason.MANUAL_REFRESH
            and rule not in _ALWAYS_APPLIED_RULES
            and same_area(current, target)
        ):
            logger.debug("Keeping %s; live update resolved to the same area", current.value)
            return NoChange()

        self._machine.goto(target)
        return decision

    async def _after_password_gate(self, reason: ResolutionReason) -> Optional[Decision]:
        # Passes already in flight may have read the old password flag
        self._generation += 1
        if reason is ResolutionReason.PASSWORD_SETUP_SKIPPED:
            self._monitor.flags[PASSWORD_DEFERRED_FLAG] = True
        is_initial_load = not self._monitor.flags.get(ROUTED_FLAG, False)
        return await self.run_pass(reason, is_initial_load=is_initial_load)

    # -------------------------------------------------------------------------
    # Session changes
    # -------------------------------------------------------------------------

    def _on_session_change(self, change: SessionChange) -> None:
        """Handle one provider event. Runs synchronously, in delivery order."""
        if self._is_recovery_refresh(change):
            # The pass that asked for the refresh is still running and retries
            self._session = change.session
            return

        self._generation += 1
        previous = self._session
        self._session = change.session

        if change.session is None:
            self._gate.clear()
            self._machine.goto(Screen.SPLASH, **CLEARED_SELECTIONS)
            return

        if previous is not None and previous.user_id != change.session.user_id:
            logger.info("Session switched from %s to %s", previous.user_id, change.session.user_id)
            self._monitor.flags.pop(ROUTED_FLAG, None)
            self._monitor.flags.pop(PASSWORD_DEFERRED_FLAG, None)
            self._gate.clear()

        reason = _EVENT_REASONS.get(change.event, ResolutionReason.SIGNED_IN)
        self._schedule(self.run_pass(reason))

    def _is_recovery_refresh(self, change: SessionChange) -> bool:
        return (
            self._recoveries > 0
            and change.event is SessionEvent.TOKEN_REFRESHED
            and change.session is not None
            and self._session is not None
            and change.session.user_id == self._session.user_id
        )

    def _schedule(self, coro: Any) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Resolution pass failed", exc_info=task.exception())
