"""
Profile status fetcher.

Issues the minimum reads needed to classify a user: the profile row, the
auth provider of the signed-in user, and, only when the plan has an expiry
date, the gym-wide grace period.
"""

import logging
from typing import Any, Optional

import pydantic

from modules.backend.interfaces import IBackendClient
from shared.config import Settings, get_settings

from .exceptions import ProfileFetchError, SettingsFetchError
from .interfaces import IProfileStatusFetcher
from .models import GlobalSettings, ProfileSnapshot

logger = logging.getLogger(__name__)


class ProfileStatusFetcher(IProfileStatusFetcher):
    """
    Builds ProfileSnapshots from the backend.

    Errors are not retried here; retry policy belongs to the caller.
    """

    def __init__(self, backend: IBackendClient, settings: Optional[Settings] = None):
        self._backend = backend
        self._settings = settings or get_settings()

    async def fetch(self, user_id: str) -> ProfileSnapshot:
        try:
            row = await self._backend.get_profile(user_id)
        except Exception as e:
            raise ProfileFetchError(user_id, f"profile query failed: {e}") from e

        if not row:
            raise ProfileFetchError(user_id, "profile row not found")

        try:
            metadata = await self._backend.get_current_user_auth_metadata()
        except Exception as e:
            raise ProfileFetchError(user_id, f"auth metadata query failed: {e}") from e

        provider = (metadata or {}).get("provider")
        is_federated = provider in self._settings.federated_providers

        global_grace: Optional[int] = None
        if row.get("plan_expiry_date"):
            global_grace = await self._fetch_global_grace()

        try:
            return self._build_snapshot(user_id, row, is_federated, global_grace)
        except pydantic.ValidationError as e:
            raise ProfileFetchError(user_id, f"profile row is malformed: {e}") from e

    async def _fetch_global_grace(self) -> Optional[int]:
        """Read the gym-wide grace period; None if it cannot be read."""
        key = self._settings.gym_settings_id
        try:
            value = await self._backend.get_global_settings(key)
            return GlobalSettings.from_value(value or {}).global_grace_period_days
        except Exception as e:
            error = SettingsFetchError(key, str(e))
            logger.warning("%s; using no global grace period", error.message)
            return None

    @staticmethod
    def _build_snapshot(
        user_id: str,
        row: dict[str, Any],
        is_federated: bool,
        global_grace: Optional[int],
    ) -> ProfileSnapshot:
        return ProfileSnapshot(
            user_id=user_id,
            role=row.get("role") or "user",
            onboarding_completed=bool(row.get("onboarding_completed")),
            approval_status=row.get("approval_status") or "pending",
            plan=row.get("plan"),
            plan_expiry_date=row.get("plan_expiry_date"),
            grace_period_days=row.get("grace_period"),
            global_grace_period_days=global_grace,
            has_password=bool(row.get("has_password")),
            is_federated_login=is_federated,
        )
