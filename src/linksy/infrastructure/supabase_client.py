# src/linksy/infrastructure/supabase_client.py
"""
Supabase Client

Provides the service-role Supabase client used by every repository:
- PostgREST table access (tenants, providers, tickets, webhooks, ...)
- RPC calls for logic that lives in the database (ticket events,
  host resolution, full-text search)
- Auth lookups for bearer tokens

Usage:
    from .supabase_client import get_supabase_client

    client = get_supabase_client()
    result = client.table("linksy_tickets").select("*").eq("id", ticket_id).execute()
"""

import logging
from typing import Optional

from supabase import Client, create_client

from ..config import get_config

logger = logging.getLogger(__name__)

# Singleton client
_supabase_client: Optional[Client] = None


def get_supabase_client() -> Optional[Client]:
    """
    Get the Supabase client singleton.

    Returns:
        Supabase client or None if not configured
    """
    global _supabase_client

    if _supabase_client is not None:
        return _supabase_client

    config = get_config()

    if not config.supabase_url or not config.supabase_key:
        logger.warning("⚠️ Supabase not configured (missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY)")
        return None

    _supabase_client = create_client(config.supabase_url, config.supabase_key)
    logger.info(f"✅ Connected to Supabase: {config.supabase_url}")
    return _supabase_client


def reset_supabase_client() -> None:
    """Drop the cached client so the next call reconnects with fresh config."""
    global _supabase_client
    _supabase_client = None
