"""
Check-in Store
==============
Storage abstraction for daily check-ins, keyed by (user_id, checkin_date).

Three implementations, chosen once at startup by get_checkin_store():

    SupabaseCheckinStore  durable. UNIQUE(user_id, checkin_date) on the
                          daily_checkins table; writes go through PostgREST
                          upsert with on_conflict, so concurrent submissions
                          for the same day collapse into one row.
    InMemoryCheckinStore  process-local dict behind a lock. Used when no
                          database is configured. Data is gone on restart.
    FallbackCheckinStore  wraps the durable store; after the first
                          StoreUnavailableError it logs a warning and uses
                          an in-memory store for the rest of the process.
                          Development only: production never degrades.

Rows are plain dicts shaped like the daily_checkins table. The service
layer turns them into DailyCheckin models.
"""

from __future__ import annotations

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Any, Optional

from mindtune.config import Settings, get_settings
from mindtune.db.stores import (
    FallbackStore,
    StoreWriteError,
    SupabaseTableStore,
    build_store,
)

logger = logging.getLogger(__name__)

# Columns a check-in submission may set. id, user_id, checkin_date and the
# timestamps are owned by the store.
WRITABLE_FIELDS = (
    "mood_rating",
    "stress_level",
    "energy_level",
    "sleep_quality",
    "anxiety_level",
    "activities",
    "goals_achieved",
    "notes",
    "gratitude_notes",
)


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------

class CheckinStore(ABC):
    """Key-based upsert plus the two range reads the aggregator needs."""

    @abstractmethod
    def upsert(self, user_id: int, checkin_date: date, fields: dict[str, Any]) -> dict:
        """Insert or overwrite the check-in for (user_id, checkin_date).

        Preserves id and created_at of an existing row and refreshes
        updated_at. Must be atomic per key.
        """

    @abstractmethod
    def get(self, user_id: int, checkin_date: date) -> Optional[dict]:
        """Return the check-in for one day, or None."""

    @abstractmethod
    def list_between(self, user_id: int, start: date, end: date) -> list[dict]:
        """Check-ins with start <= checkin_date < end, oldest first."""

    @abstractmethod
    def list_dates_until(self, user_id: int, until: date) -> list[date]:
        """Dates with a check-in on or before *until*, newest first."""


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------

class InMemoryCheckinStore(CheckinStore):
    """Transient store with the same key and upsert semantics as the table."""

    def __init__(self) -> None:
        self._rows: dict[tuple[int, date], dict] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def upsert(self, user_id: int, checkin_date: date, fields: dict[str, Any]) -> dict:
        now = datetime.now(timezone.utc)
        key = (user_id, checkin_date)
        values = {name: fields.get(name) for name in WRITABLE_FIELDS}
        values["activities"] = list(values["activities"] or [])

        with self._lock:
            existing = self._rows.get(key)
            if existing is None:
                row = {
                    "id": next(self._ids),
                    "user_id": user_id,
                    "checkin_date": checkin_date,
                    **values,
                    "created_at": now,
                    "updated_at": now,
                }
            else:
                row = {**existing, **values, "updated_at": now}
            self._rows[key] = row
            return dict(row)

    def get(self, user_id: int, checkin_date: date) -> Optional[dict]:
        with self._lock:
            row = self._rows.get((user_id, checkin_date))
            return dict(row) if row else None

    def list_between(self, user_id: int, start: date, end: date) -> list[dict]:
        with self._lock:
            rows = [
                dict(row)
                for (uid, day), row in self._rows.items()
                if uid == user_id and start <= day < end
            ]
        return sorted(rows, key=lambda r: r["checkin_date"])

    def list_dates_until(self, user_id: int, until: date) -> list[date]:
        with self._lock:
            days = [day for (uid, day) in self._rows if uid == user_id and day <= until]
        return sorted(days, reverse=True)


# ---------------------------------------------------------------------------
# Supabase
# ---------------------------------------------------------------------------

def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


class SupabaseCheckinStore(SupabaseTableStore, CheckinStore):
    """Durable store on the daily_checkins table."""

    def __init__(self, client=None, table: Optional[str] = None) -> None:
        super().__init__(table or get_settings().checkins_table, client)

    def upsert(self, user_id: int, checkin_date: date, fields: dict[str, Any]) -> dict:
        row = {
            "user_id": user_id,
            "checkin_date": checkin_date.isoformat(),
            **{name: fields.get(name) for name in WRITABLE_FIELDS},
            # created_at is left to the column default so an update keeps it
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        row["activities"] = list(row["activities"] or [])

        result = self._execute(
            self._query().upsert(row, on_conflict="user_id,checkin_date"),
            "upsert",
        )
        if not result.data:
            logger.error("Check-in upsert for user %s on %s returned no row", user_id, checkin_date)
            raise StoreWriteError("Check-in upsert returned no row")
        return result.data[0]

    def get(self, user_id: int, checkin_date: date) -> Optional[dict]:
        result = self._execute(
            self._query()
            .select("*")
            .eq("user_id", user_id)
            .eq("checkin_date", checkin_date.isoformat())
            .limit(1),
            "get",
        )
        return result.data[0] if result.data else None

    def list_between(self, user_id: int, start: date, end: date) -> list[dict]:
        result = self._execute(
            self._query()
            .select("*")
            .eq("user_id", user_id)
            .gte("checkin_date", start.isoformat())
            .lt("checkin_date", end.isoformat())
            .order("checkin_date", desc=False),
            "list_between",
        )
        return result.data or []

    def list_dates_until(self, user_id: int, until: date) -> list[date]:
        result = self._execute(
            self._query()
            .select("checkin_date")
            .eq("user_id", user_id)
            .lte("checkin_date", until.isoformat())
            .order("checkin_date", desc=True),
            "list_dates_until",
        )
        return [_parse_date(row["checkin_date"]) for row in (result.data or [])]


# ---------------------------------------------------------------------------
# Fallback
# ---------------------------------------------------------------------------

class FallbackCheckinStore(FallbackStore, CheckinStore):
    """Durable store that degrades to a transient one on first failure."""

    def __init__(self, primary: CheckinStore, fallback: CheckinStore) -> None:
        super().__init__(primary, fallback, "check-in")

    def upsert(self, user_id: int, checkin_date: date, fields: dict[str, Any]) -> dict:
        return self._call("upsert", user_id, checkin_date, fields)

    def get(self, user_id: int, checkin_date: date) -> Optional[dict]:
        return self._call("get", user_id, checkin_date)

    def list_between(self, user_id: int, start: date, end: date) -> list[dict]:
        return self._call("list_between", user_id, start, end)

    def list_dates_until(self, user_id: int, until: date) -> list[date]:
        return self._call("list_dates_until", user_id, until)


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

def build_checkin_store(settings: Settings) -> CheckinStore:
    """Pick the store implementation for *settings*."""
    return build_store(
        settings,
        "Check-in",
        durable=lambda: SupabaseCheckinStore(table=settings.checkins_table),
        memory=InMemoryCheckinStore,
        fallback=FallbackCheckinStore,
        table=settings.checkins_table,
    )


@lru_cache
def get_checkin_store() -> CheckinStore:
    return build_checkin_store(get_settings())
