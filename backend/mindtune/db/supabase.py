"""
Supabase Client
===============
Service-role Supabase client shared by bearer-token verification and
the durable check-in store.

PostgREST calls are bounded by SUPABASE_TIMEOUT_SECONDS so an
unreachable database fails the request (or trips the in-memory
fallback) instead of hanging it.
"""

import logging
from functools import lru_cache

from supabase import Client, ClientOptions, create_client

from mindtune.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache
def get_supabase_client() -> Client:
    settings = get_settings()
    if not settings.supabase_service_key:
        raise RuntimeError("SUPABASE_SERVICE_KEY is not configured")

    logger.info("Connecting to Supabase at %s", settings.supabase_url)
    return create_client(
        settings.supabase_url,
        settings.supabase_service_key,
        options=ClientOptions(postgrest_client_timeout=settings.supabase_timeout_seconds),
    )
