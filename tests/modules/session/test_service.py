"""Tests for the session monitor."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from modules.backend import Session, SessionChange, SessionEvent
from modules.profiles import ProfileFetchError
from modules.session import ISessionMonitor, MonitorStateError, SessionMonitor, is_session_error
from shared.exceptions import NotFoundError


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self):
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def monitor(backend, settings, clock):
    monitor = SessionMonitor(backend, settings, clock=clock)
    yield monitor
    await monitor.stop()


def other_session(user_id: str = "other-456") -> Session:
    return Session(user_id=user_id, access_token="other-token")


class TestStart:
    def test_implements_interface(self, backend, settings):
        assert isinstance(SessionMonitor(backend, settings), ISessionMonitor)

    @pytest.mark.asyncio
    async def test_start_without_session(self, monitor):
        assert await monitor.start() is None
        assert monitor.is_active
        assert monitor.current_session is None
        assert not monitor.state.is_valid

    @pytest.mark.asyncio
    async def test_start_with_existing_session(self, monitor, backend):
        """Should report the stored session."""
        session = backend.start_session("member-123", notify=False)

        assert await monitor.start() == session
        assert monitor.state.is_valid
        assert monitor.state.user_id == "member-123"

    @pytest.mark.asyncio
    async def test_start_twice_raises(self, monitor):
        await monitor.start()

        with pytest.raises(MonitorStateError):
            await monitor.start()

    @pytest.mark.asyncio
    async def test_failed_check_counts_as_signed_out(self, monitor, backend):
        """A failing session check should not escape start()."""
        backend.fail("get_current_session", ConnectionError("offline"))

        assert await monitor.start() is None
        assert monitor.is_active

    @pytest.mark.asyncio
    async def test_expired_session_is_refreshed(self, monitor, backend):
        """An expired stored session should be refreshed before it is reported."""
        stale = backend.start_session("member-123", notify=False)
        backend._session = stale.model_copy(
            update={"expires_at": datetime.now(timezone.utc) - timedelta(minutes=1)}
        )

        session = await monitor.start()

        assert "refresh_session" in backend.calls
        assert session.user_id == "member-123"
        assert not session.is_expired()

    @pytest.mark.asyncio
    async def test_event_during_check_wins(self, monitor, backend):
        """A provider event that arrives while the check is in flight is newer."""
        release = backend.hold("get_current_session")
        task = asyncio.create_task(monitor.start())
        await asyncio.sleep(0)

        emitted = other_session()
        backend.emit(SessionEvent.SIGNED_IN, emitted)
        release.set()

        # The check itself still reports no session
        assert await task == emitted
        assert monitor.current_session == emitted


class TestEvents:
    @pytest.mark.asyncio
    async def test_listeners_called_in_order(self, monitor, backend):
        seen: list[str] = []
        monitor.subscribe(lambda change: seen.append(f"first:{change.event.value}"))
        monitor.subscribe(lambda change: seen.append(f"second:{change.event.value}"))
        await monitor.start()

        backend.start_session("member-123")
        await backend.sign_out()

        assert seen == [
            "first:SIGNED_IN",
            "second:SIGNED_IN",
            "first:SIGNED_OUT",
            "second:SIGNED_OUT",
        ]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_others(self, monitor, backend, caplog):
        """A listener exception should be logged and the rest still notified."""
        seen: list[SessionChange] = []

        def broken(change):
            raise RuntimeError("boom")

        monitor.subscribe(broken)
        monitor.subscribe(seen.append)
        await monitor.start()

        with caplog.at_level(logging.ERROR):
            backend.start_session("member-123")

        assert len(seen) == 1
        assert "Session listener failed" in caplog.text

    @pytest.mark.asyncio
    async def test_unsubscribe(self, monitor, backend):
        seen: list[SessionChange] = []
        unsubscribe = monitor.subscribe(seen.append)
        await monitor.start()

        unsubscribe()
        backend.start_session("member-123")

        assert seen == []

    @pytest.mark.asyncio
    async def test_sign_out_clears_flags(self, monitor, backend):
        """Session flags should not survive a sign-out."""
        await monitor.start()
        backend.start_session("member-123")
        monitor.flags["routed"] = True

        backend.start_session("member-123", event=SessionEvent.TOKEN_REFRESHED)
        assert monitor.flags == {"routed": True}

        await backend.sign_out()
        assert monitor.flags == {}
        assert monitor.current_session is None

    @pytest.mark.asyncio
    async def test_events_ignored_after_stop(self, monitor, backend):
        seen: list[SessionChange] = []
        monitor.subscribe(seen.append)
        await monitor.start()
        await monitor.stop()

        backend.emit(SessionEvent.SIGNED_IN, other_session())

        assert seen == []
        assert not monitor.is_active
        assert backend.subscriber_count == 0


class TestValidation:
    @pytest.mark.asyncio
    async def test_positive_result_is_cached(self, monitor, backend, clock):
        """Validation within the cache window should not hit the backend."""
        backend.start_session("member-123", notify=False)
        await monitor.start()
        checks = backend.calls.count("get_current_session")

        clock.now += 4
        assert await monitor.validate_session() is True
        assert backend.calls.count("get_current_session") == checks

        clock.now += 2
        assert await monitor.validate_session() is True
        assert backend.calls.count("get_current_session") == checks + 1

    @pytest.mark.asyncio
    async def test_no_session_is_invalid(self, monitor):
        await monitor.start()

        assert await monitor.validate_session() is False

    @pytest.mark.asyncio
    async def test_failed_check_falls_back_to_refresh(self, monitor, backend, clock):
        backend.start_session("member-123", notify=False)
        await monitor.start()
        backend.fail("get_current_session", ConnectionError("offline"))
        clock.now += 10

        assert await monitor.validate_session() is True
        assert backend.calls[-1] == "refresh_session"

    @pytest.mark.asyncio
    async def test_validation_never_raises(self, monitor, backend, clock):
        await monitor.start()
        backend.fail("get_current_session", ConnectionError("offline"))
        backend.fail("refresh_session", ConnectionError("offline"))

        assert await monitor.validate_session() is False

    @pytest.mark.asyncio
    async def test_force_refresh(self, monitor, backend):
        backend.start_session("member-123", notify=False)
        await monitor.start()

        assert await monitor.force_refresh() is True
        assert "refresh_session" in backend.calls

    @pytest.mark.asyncio
    async def test_force_refresh_without_session(self, monitor):
        await monitor.start()

        assert await monitor.force_refresh() is False


class TestKeepalive:
    @pytest.mark.asyncio
    async def test_keepalive_revalidates_periodically(self, backend, settings):
        fast = settings.model_copy(
            update={
                "session_keepalive_interval_seconds": 0.01,
                "session_validation_cache_seconds": 0.0,
            }
        )
        backend.start_session("member-123", notify=False)
        monitor = SessionMonitor(backend, fast)
        await monitor.start()

        await asyncio.sleep(0.05)
        await monitor.stop()

        assert backend.calls.count("get_current_session") >= 2

    @pytest.mark.asyncio
    async def test_stop_cancels_keepalive(self, monitor):
        await monitor.start()

        await monitor.stop()

        assert monitor._keepalive_task is None


class ApiError(Exception):
    """Error carrying an HTTP status, like the PostgREST client raises."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status


class TestIsSessionError:
    @pytest.mark.parametrize(
        "error",
        [
            PermissionError("JWT expired"),
            RuntimeError("Invalid Refresh Token: Session Expired"),
            ApiError("request failed", 401),
        ],
    )
    def test_rejected_session(self, error):
        assert is_session_error(error)

    @pytest.mark.parametrize(
        "error",
        [
            ConnectionError("offline"),
            ApiError("request failed", 500),
            NotFoundError("Profile not found: member-123"),
        ],
    )
    def test_other_failures(self, error):
        assert not is_session_error(error)

    def test_checks_cause_chain(self):
        """A wrapped 401 is still a session error."""
        error = ProfileFetchError("member-123", "profile query failed")
        error.__cause__ = ApiError("request failed", 401)

        assert is_session_error(error)

    def test_wrapped_other_failure(self):
        error = ProfileFetchError("member-123", "profile row not found")

        assert not is_session_error(error)
