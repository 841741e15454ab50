"""
Centralized configuration for the GymFlow client.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings should be namespaced (e.g., SUPABASE_*, SESSION_*).
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "GymFlow Client"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Tables read by the resolver
    profiles_table: str = "profiles"
    settings_table: str = "app_settings"
    gym_settings_id: str = "gym_settings"

    # Auth providers that do not set a local password
    federated_providers: list[str] = ["google"]

    # Session keepalive
    session_keepalive_interval_seconds: float = 30.0
    session_validation_cache_seconds: float = 5.0

    # Session recovery when a profile read fails on an expired token
    session_recovery_retries: int = 2
    session_recovery_delay_seconds: float = 1.0

    # Password setup
    password_min_length: int = 8

    # Navigation
    navigation_history_limit: int = 50


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
