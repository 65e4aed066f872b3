"""
Supabase client initialization.

This module contains *only* the database connection setup and exposes a
cached Supabase client for the Supabase document store.

Environment variables required (see config.py):
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
"""

from __future__ import annotations

from functools import lru_cache

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

from config import get_settings
from domain.errors import ConfigurationError


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Create the Supabase client on first use.

    Raises:
        ConfigurationError: SUPABASE_URL or SUPABASE_KEY missing
    """

    settings = get_settings()

    if not settings.supabase_url:
        raise ConfigurationError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )

    if not settings.supabase_key:
        raise ConfigurationError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase API key."
        )

    return create_client(settings.supabase_url, settings.supabase_key)


__all__ = ["get_supabase"]
