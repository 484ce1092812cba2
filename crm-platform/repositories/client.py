"""
Supabase client initialization.

This module contains *only* the connection setup. It exposes `get_supabase()`,
which creates the async Supabase client on first use and returns the same
instance afterwards. The async client is required for Realtime subscriptions.

`create_auth_client()` returns a fresh, session-less client for one sign-in or
sign-up call. Signing in on the shared client would swap its Authorization
header for the user's JWT, and every store request would then run as that user.

Environment variables required:
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
"""

from __future__ import annotations

import asyncio
from typing import Optional, Tuple

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import AsyncClient, AsyncClientOptions, acreate_client  # type: ignore[import-not-found]

from config import get_settings

_client: Optional[AsyncClient] = None
_lock = asyncio.Lock()


def _credentials() -> Tuple[str, str]:
    settings = get_settings()
    if not settings.supabase_url:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )
    if not settings.supabase_key:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase API key."
        )
    return settings.supabase_url, settings.supabase_key


async def get_supabase() -> AsyncClient:
    """Return the shared async Supabase client, creating it if needed."""

    global _client
    async with _lock:
        if _client is None:
            _client = await acreate_client(*_credentials())
        return _client


async def create_auth_client() -> AsyncClient:
    """A throwaway client for a single auth call; its session is never stored or refreshed."""

    url, key = _credentials()
    return await acreate_client(
        url,
        key,
        options=AsyncClientOptions(persist_session=False, auto_refresh_token=False),
    )


__all__ = ["get_supabase", "create_auth_client"]
