"""
Profiles module interface.
"""

from typing import Protocol, runtime_checkable

from .models import ProfileSnapshot


@runtime_checkable
class IProfileStatusFetcher(Protocol):
    """Interface for assembling profile snapshots."""

    async def fetch(self, user_id: str) -> ProfileSnapshot:
        """
        Read everything the status resolver needs about a user.

        Args:
            user_id: Supabase user ID (UUID)

        Returns:
            A fully populated ProfileSnapshot

        Raises:
            ProfileFetchError: If the profile or auth metadata cannot be read
        """
        ...
