"""
Database client factory for Supabase.

The client runs with the anon key and the signed-in user's session, so every
query respects Row Level Security exactly as the mobile app does.
"""

from typing import Optional
from supabase import acreate_client, AsyncClient

from .config import get_settings

# Module-level client cache
_client: Optional[AsyncClient] = None


async def get_supabase_client() -> AsyncClient:
    """
    Get the async Supabase client, creating it on first use.

    Returns:
        Supabase client configured with the anon key

    Raises:
        RuntimeError: If SUPABASE_URL or SUPABASE_ANON_KEY is not configured
    """
    global _client

    if _client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_anon_key:
            raise RuntimeError(
                "Supabase configuration missing. "
                "Set SUPABASE_URL and SUPABASE_ANON_KEY environment variables."
            )
        _client = await acreate_client(
            settings.supabase_url,
            settings.supabase_anon_key,
        )

    return _client


def reset_client_cache() -> None:
    """
    Reset the cached database client.

    Useful for testing or when configuration changes.
    """
    global _client
    _client = None
