"""
Daily Check-in Schemas
======================
Pydantic models for the daily check-in API.

One check-in exists per user per calendar date. Submitting again on the
same date overwrites the ratings in place; id and created_at survive.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Allowed values
# ---------------------------------------------------------------------------

# Ordered: the check-in form renders activities in this order.
VALID_ACTIVITIES: tuple[str, ...] = (
    "exercise",
    "meditation",
    "reading",
    "socializing",
    "work",
    "hobbies",
    "rest",
    "outdoors",
)

MOST_COMMON_ACTIVITIES_LIMIT = 5


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class DailyCheckinCreate(BaseModel):
    """Payload the client sends when the user completes today's check-in."""

    mood_rating: int = Field(..., ge=1, le=10)
    stress_level: int = Field(..., ge=1, le=10)
    energy_level: int = Field(..., ge=1, le=10)
    sleep_quality: int = Field(..., ge=1, le=10)
    anxiety_level: int = Field(..., ge=1, le=10)
    activities: list[str] = Field(
        default_factory=list,
        description="Keys from the fixed activity vocabulary.",
    )
    goals_achieved: int = Field(default=0, ge=0, le=10)
    notes: Optional[str] = Field(default=None, max_length=2000)
    gratitude_notes: Optional[str] = Field(default=None, max_length=2000)


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------

class DailyCheckin(BaseModel):
    """A stored check-in record."""

    id: int
    user_id: int
    checkin_date: date
    mood_rating: int
    stress_level: int
    energy_level: int
    sleep_quality: int
    anxiety_level: int
    activities: list[str] = Field(default_factory=list)
    goals_achieved: int = 0
    notes: Optional[str] = None
    gratitude_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ActivityCount(BaseModel):
    activity: str
    count: int


class MonthlyStats(BaseModel):
    """Aggregates over one user's check-ins for one calendar month."""

    total_checkins: int = 0
    average_mood: int = 0
    average_stress: int = 0
    average_energy: int = 0
    average_sleep: int = 0
    average_anxiety: int = 0
    total_goals_achieved: int = 0
    most_common_activities: list[ActivityCount] = Field(
        default_factory=list,
        description="Top activities by frequency, ties in first-seen order.",
    )

    @classmethod
    def empty(cls) -> MonthlyStats:
        return cls()


class CheckinStreakResponse(BaseModel):
    streak: int = Field(..., ge=0, description="Consecutive days ending today.")
    as_of: date


class MonthlyCheckinsResponse(BaseModel):
    """Everything a monthly calendar view needs in one round-trip."""

    year: int
    month: int
    checkins: list[DailyCheckin]
    stats: MonthlyStats
    streak: int
