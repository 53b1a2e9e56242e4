"""
Diary Service
=============
Create, read, update and delete a user's diary entries.

All lookups are owner-scoped by the store; a None from get_entry or
update_entry and a False from delete_entry mean "not found for this user".
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from mindtune.db.diary import DiaryStore, get_diary_store
from mindtune.models.diary import DiaryEntry, DiaryEntryCreate

logger = logging.getLogger(__name__)


class DiaryService:
    """Reads and writes diary entries through a DiaryStore."""

    def __init__(self, store: DiaryStore) -> None:
        self._store = store

    async def create_entry(self, user_id: int, payload: DiaryEntryCreate) -> DiaryEntry:
        entry = DiaryEntry(**self._store.create(user_id, payload.model_dump()))
        logger.info("Created diary entry %s for user %s", entry.id, user_id)
        return entry

    async def list_entries(self, user_id: int) -> list[DiaryEntry]:
        """Newest first."""
        return [DiaryEntry(**row) for row in self._store.list_for_user(user_id)]

    async def get_entry(self, user_id: int, entry_id: int) -> Optional[DiaryEntry]:
        row = self._store.get(user_id, entry_id)
        return DiaryEntry(**row) if row else None

    async def update_entry(
        self, user_id: int, entry_id: int, payload: DiaryEntryCreate
    ) -> Optional[DiaryEntry]:
        row = self._store.update(user_id, entry_id, payload.model_dump())
        if row is None:
            return None
        logger.info("Updated diary entry %s for user %s", entry_id, user_id)
        return DiaryEntry(**row)

    async def delete_entry(self, user_id: int, entry_id: int) -> bool:
        deleted = self._store.delete(user_id, entry_id)
        if deleted:
            logger.info("Deleted diary entry %s for user %s", entry_id, user_id)
        return deleted


@lru_cache
def get_diary_service() -> DiaryService:
    return DiaryService(get_diary_store())
