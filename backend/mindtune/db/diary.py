"""
Diary Store
===========
Storage abstraction for diary entries on the diary_entries table.

Every method takes the owner's user_id and filters on it. Reading,
updating or deleting an entry that belongs to someone else behaves
exactly like a missing entry: None / False, never an error.

Implementations mirror the check-in store: SupabaseDiaryStore (durable),
InMemoryDiaryStore (no database configured) and FallbackDiaryStore
(durable, degrading to memory on the first outage outside production).
"""

from __future__ import annotations

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
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

# Columns a client may set. id, user_id and the timestamps are owned by the store.
WRITABLE_FIELDS = ("title", "content", "emotion", "mood_rating", "is_private")


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------

class DiaryStore(ABC):
    """Owner-scoped CRUD over diary entries."""

    @abstractmethod
    def create(self, user_id: int, fields: dict[str, Any]) -> dict:
        """Insert a new entry and return the stored row."""

    @abstractmethod
    def get(self, user_id: int, entry_id: int) -> Optional[dict]:
        """Return the entry if it exists and belongs to *user_id*."""

    @abstractmethod
    def list_for_user(self, user_id: int) -> list[dict]:
        """All entries of *user_id*, newest first."""

    @abstractmethod
    def update(self, user_id: int, entry_id: int, fields: dict[str, Any]) -> Optional[dict]:
        """Replace the writable fields and refresh updated_at. None if not found."""

    @abstractmethod
    def delete(self, user_id: int, entry_id: int) -> bool:
        """Remove the entry. False if not found."""


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------

class InMemoryDiaryStore(DiaryStore):

    def __init__(self) -> None:
        self._rows: dict[int, dict] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def _owned(self, user_id: int, entry_id: int) -> Optional[dict]:
        row = self._rows.get(entry_id)
        return row if row is not None and row["user_id"] == user_id else None

    def create(self, user_id: int, fields: dict[str, Any]) -> dict:
        now = datetime.now(timezone.utc)
        with self._lock:
            row = {
                "id": next(self._ids),
                "user_id": user_id,
                **{name: fields.get(name) for name in WRITABLE_FIELDS},
                "created_at": now,
                "updated_at": now,
            }
            self._rows[row["id"]] = row
            return dict(row)

    def get(self, user_id: int, entry_id: int) -> Optional[dict]:
        with self._lock:
            row = self._owned(user_id, entry_id)
            return dict(row) if row else None

    def list_for_user(self, user_id: int) -> list[dict]:
        with self._lock:
            rows = [dict(row) for row in self._rows.values() if row["user_id"] == user_id]
        return sorted(rows, key=lambda r: (r["created_at"], r["id"]), reverse=True)

    def update(self, user_id: int, entry_id: int, fields: dict[str, Any]) -> Optional[dict]:
        with self._lock:
            row = self._owned(user_id, entry_id)
            if row is None:
                return None
            row.update({name: fields.get(name) for name in WRITABLE_FIELDS})
            row["updated_at"] = datetime.now(timezone.utc)
            return dict(row)

    def delete(self, user_id: int, entry_id: int) -> bool:
        with self._lock:
            if self._owned(user_id, entry_id) is None:
                return False
            del self._rows[entry_id]
            return True


# ---------------------------------------------------------------------------
# Supabase
# ---------------------------------------------------------------------------

class SupabaseDiaryStore(SupabaseTableStore, DiaryStore):
    """Durable store on the diary_entries table."""

    def __init__(self, client=None, table: Optional[str] = None) -> None:
        super().__init__(table or get_settings().diary_table, client)

    def create(self, user_id: int, fields: dict[str, Any]) -> dict:
        row = {"user_id": user_id, **{name: fields.get(name) for name in WRITABLE_FIELDS}}
        result = self._execute(self._query().insert(row), "insert")
        if not result.data:
            logger.error("Diary insert for user %s returned no row", user_id)
            raise StoreWriteError("Diary insert returned no row")
        return result.data[0]

    def get(self, user_id: int, entry_id: int) -> Optional[dict]:
        result = self._execute(
            self._query()
            .select("*")
            .eq("id", entry_id)
            .eq("user_id", user_id)
            .limit(1),
            "get",
        )
        return result.data[0] if result.data else None

    def list_for_user(self, user_id: int) -> list[dict]:
        result = self._execute(
            self._query()
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True),
            "list",
        )
        return result.data or []

    def update(self, user_id: int, entry_id: int, fields: dict[str, Any]) -> Optional[dict]:
        values = {
            **{name: fields.get(name) for name in WRITABLE_FIELDS},
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        result = self._execute(
            self._query()
            .update(values)
            .eq("id", entry_id)
            .eq("user_id", user_id),
            "update",
        )
        return result.data[0] if result.data else None

    def delete(self, user_id: int, entry_id: int) -> bool:
        result = self._execute(
            self._query()
            .delete()
            .eq("id", entry_id)
            .eq("user_id", user_id),
            "delete",
        )
        return bool(result.data)


# ---------------------------------------------------------------------------
# Fallback
# ---------------------------------------------------------------------------

class FallbackDiaryStore(FallbackStore, DiaryStore):

    def __init__(self, primary: DiaryStore, fallback: DiaryStore) -> None:
        super().__init__(primary, fallback, "diary")

    def create(self, user_id: int, fields: dict[str, Any]) -> dict:
        return self._call("create", user_id, fields)

    def get(self, user_id: int, entry_id: int) -> Optional[dict]:
        return self._call("get", user_id, entry_id)

    def list_for_user(self, user_id: int) -> list[dict]:
        return self._call("list_for_user", user_id)

    def update(self, user_id: int, entry_id: int, fields: dict[str, Any]) -> Optional[dict]:
        return self._call("update", user_id, entry_id, fields)

    def delete(self, user_id: int, entry_id: int) -> bool:
        return self._call("delete", user_id, entry_id)


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

def build_diary_store(settings: Settings) -> DiaryStore:
    return build_store(
        settings,
        "Diary",
        durable=lambda: SupabaseDiaryStore(table=settings.diary_table),
        memory=InMemoryDiaryStore,
        fallback=FallbackDiaryStore,
        table=settings.diary_table,
    )


@lru_cache
def get_diary_store() -> DiaryStore:
    return build_diary_store(get_settings())
