"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

import pytest
from datetime import datetime, timezone

from modules.backend import InMemoryBackend
from shared.config import Settings, get_settings
from shared.database import reset_client_cache


# Fixed point in time used by resolver and engine tests
NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached settings and clients before and after each test."""
    get_settings.cache_clear()
    reset_client_cache()
    yield
    get_settings.cache_clear()
    reset_client_cache()


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the environment and any .env file."""
    return Settings(
        _env_file=None,
        supabase_url="https://test.supabase.co",
        supabase_anon_key="test-anon-key",
        session_keepalive_interval_seconds=3600.0,
        session_recovery_delay_seconds=0.0,
    )


@pytest.fixture
def backend() -> InMemoryBackend:
    """Empty in-memory backend."""
    return InMemoryBackend()


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return "member-123"


@pytest.fixture
def now() -> datetime:
    return NOW
