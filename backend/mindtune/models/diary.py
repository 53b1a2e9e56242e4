"""
Diary Schemas
=============
Pydantic models for private journal entries.

An entry belongs to exactly one user. Every read and write is scoped by
the owner's id, so another user's entry is indistinguishable from a
missing one.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

DIARY_TITLE_MAX = 200
DIARY_CONTENT_MAX = 10000


class DiaryEntryCreate(BaseModel):
    """Payload for creating an entry or replacing one in full."""

    title: str = Field(..., min_length=1, max_length=DIARY_TITLE_MAX)
    content: str = Field(..., min_length=1, max_length=DIARY_CONTENT_MAX)
    emotion: str = Field(..., min_length=1, description="Emotion label picked on the form, e.g. 'Joy'.")
    mood_rating: int = Field(..., ge=1, le=10)
    is_private: bool = True


class DiaryEntry(BaseModel):
    """A stored diary entry."""

    id: int
    user_id: int
    title: str
    content: str
    emotion: str
    mood_rating: int
    is_private: bool = True
    created_at: datetime
    updated_at: datetime
