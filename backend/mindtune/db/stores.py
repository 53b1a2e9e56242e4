"""
Store Plumbing
==============
Pieces shared by every per-user table store (check-ins, diary entries):

    StoreUnavailableError  the durable store could not be reached or
                           rejected the query. Routers map it to 503.
    StoreWriteError        the write was accepted but no row came back.
                           Routers map it to 500 db_error.
    SupabaseTableStore     base for PostgREST-backed stores; _execute()
                           turns any client error into StoreUnavailableError.
    FallbackStore          base for stores that degrade from a durable
                           primary to an in-memory fallback on the first
                           StoreUnavailableError, for the rest of the process.
    build_store()          picks durable / in-memory / fallback from Settings.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Optional, TypeVar

from mindtune.config import Settings
from mindtune.db.supabase import get_supabase_client

logger = logging.getLogger(__name__)

StoreT = TypeVar("StoreT")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class StoreUnavailableError(Exception):
    """The durable store could not be reached or rejected the query."""


class StoreWriteError(Exception):
    """The store accepted the write but returned no row."""


# ---------------------------------------------------------------------------
# Supabase
# ---------------------------------------------------------------------------

class SupabaseTableStore:
    """One Supabase table, queried with the service-role client."""

    def __init__(self, table: str, client=None) -> None:
        self._db = client or get_supabase_client()
        self._table = table

    def _query(self):
        return self._db.table(self._table)

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except Exception as exc:
            logger.warning("%s %s failed: %s", self._table, action, exc)
            raise StoreUnavailableError(f"{self._table} {action} failed") from exc


# ---------------------------------------------------------------------------
# Fallback
# ---------------------------------------------------------------------------

class FallbackStore:
    """Delegates to *primary* until it is unavailable, then to *fallback*."""

    def __init__(self, primary, fallback, label: str) -> None:
        self._primary = primary
        self._fallback = fallback
        self._label = label
        self._degraded = False
        self._lock = threading.Lock()

    @property
    def degraded(self) -> bool:
        return self._degraded

    def _call(self, method: str, *args):
        if not self._degraded:
            try:
                return getattr(self._primary, method)(*args)
            except StoreUnavailableError:
                with self._lock:
                    if not self._degraded:
                        self._degraded = True
                        logger.warning(
                            "Durable %s store unavailable; using in-memory storage "
                            "until restart. Data saved now will be lost.",
                            self._label,
                        )
        return getattr(self._fallback, method)(*args)


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

def build_store(
    settings: Settings,
    label: str,
    durable: Callable[[], StoreT],
    memory: Callable[[], StoreT],
    fallback: Callable[[StoreT, StoreT], StoreT],
    table: Optional[str] = None,
) -> StoreT:
    """Pick the store implementation for *settings*.

    No service key: in-memory outside production, RuntimeError in production.
    Production or fallback disabled: the durable store alone.
    Otherwise: the durable store wrapped in an in-memory fallback.
    """
    if not settings.supabase_service_key:
        if settings.is_production:
            raise RuntimeError("SUPABASE_SERVICE_KEY is required in production")
        logger.warning("No Supabase key configured; %s data is stored in memory only", label)
        return memory()

    if settings.is_production or not settings.memory_fallback:
        logger.info("%s store: Supabase (%s)", label, table)
        return durable()

    logger.info("%s store: Supabase (%s) with in-memory fallback", label, table)
    return fallback(durable(), memory())
