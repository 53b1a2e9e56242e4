"""
Check-in Service
================
Daily check-in upsert plus the two aggregates the dashboard shows:
monthly statistics and the current check-in streak.

Aggregation rules:
    - Averages are the arithmetic mean of each rating, rounded half up
      (7.5 → 8, 22/3 → 7), reported as integers.
    - total_goals_achieved is a plain sum.
    - Activities are counted across all check-ins in the month; the top
      five by count are returned, ties in the order first seen.
    - A month with no check-ins yields zero stats, never an error.
    - The streak counts consecutive days ending today. No check-in today
      means a streak of 0, whatever happened yesterday.

summarise_checkins() and count_streak() are pure and hold all of the
arithmetic; CheckinService only fetches rows and hands them over.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import pandas as pd

from mindtune.db.checkins import CheckinStore, get_checkin_store
from mindtune.models.checkin import (
    MOST_COMMON_ACTIVITIES_LIMIT,
    ActivityCount,
    DailyCheckin,
    DailyCheckinCreate,
    MonthlyStats,
)

logger = logging.getLogger(__name__)

# MonthlyStats field → daily_checkins column
_AVERAGED_RATINGS: dict[str, str] = {
    "average_mood": "mood_rating",
    "average_stress": "stress_level",
    "average_energy": "energy_level",
    "average_sleep": "sleep_quality",
    "average_anxiety": "anxiety_level",
}


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


# ---------------------------------------------------------------------------
# Pure aggregation
# ---------------------------------------------------------------------------

def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 away from zero for positive values."""
    return int(math.floor(value + 0.5))


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First day of the month and first day of the following month."""
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def summarise_checkins(checkins: Iterable[DailyCheckin]) -> MonthlyStats:
    """Compute MonthlyStats over *checkins* (any order, any count)."""
    records = list(checkins)
    if not records:
        return MonthlyStats.empty()

    df = pd.DataFrame(
        [
            {column: getattr(c, column) for column in _AVERAGED_RATINGS.values()}
            | {"goals_achieved": c.goals_achieved}
            for c in records
        ]
    )
    means = df[list(_AVERAGED_RATINGS.values())].mean()

    # Counter keeps insertion order and most_common() sorts stably, so
    # ties stay in first-seen order.
    activity_counts: Counter[str] = Counter()
    for checkin in records:
        activity_counts.update(checkin.activities)

    return MonthlyStats(
        total_checkins=len(records),
        **{
            field: round_half_up(float(means[column]))
            for field, column in _AVERAGED_RATINGS.items()
        },
        total_goals_achieved=int(df["goals_achieved"].sum()),
        most_common_activities=[
            ActivityCount(activity=activity, count=count)
            for activity, count in activity_counts.most_common(MOST_COMMON_ACTIVITIES_LIMIT)
        ],
    )


def count_streak(checkin_dates: Iterable[date], today: date) -> int:
    """Consecutive days with a check-in, walking back from *today* inclusive."""
    days = set(checkin_dates)
    streak = 0
    day = today
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class CheckinService:
    """Reads and writes check-ins through a CheckinStore."""

    def __init__(
        self,
        store: CheckinStore,
        today: Callable[[], date] = _utc_today,
    ) -> None:
        self._store = store
        self._today = today

    def today(self) -> date:
        return self._today()

    async def put_checkin(
        self,
        user_id: int,
        payload: DailyCheckinCreate,
        checkin_date: Optional[date] = None,
    ) -> DailyCheckin:
        """Create or overwrite the check-in for *checkin_date* (default today)."""
        day = checkin_date or self.today()
        row = self._store.upsert(user_id, day, payload.model_dump())
        checkin = DailyCheckin(**row)
        logger.info("Saved check-in %s for user %s on %s", checkin.id, user_id, day)
        return checkin

    async def get_checkin_by_date(self, user_id: int, checkin_date: date) -> Optional[DailyCheckin]:
        row = self._store.get(user_id, checkin_date)
        return DailyCheckin(**row) if row else None

    async def get_monthly_checkins(self, user_id: int, year: int, month: int) -> list[DailyCheckin]:
        """All check-ins in the calendar month, oldest first."""
        start, end = month_bounds(year, month)
        rows = self._store.list_between(user_id, start, end)
        return [DailyCheckin(**row) for row in rows]

    async def compute_monthly_stats(self, user_id: int, year: int, month: int) -> MonthlyStats:
        checkins = await self.get_monthly_checkins(user_id, year, month)
        stats = summarise_checkins(checkins)
        logger.debug(
            "Monthly stats for user %s %04d-%02d: %d check-ins",
            user_id, year, month, stats.total_checkins,
        )
        return stats

    async def compute_streak(self, user_id: int, today: Optional[date] = None) -> int:
        day = today or self.today()
        dates = self._store.list_dates_until(user_id, day)
        return count_streak(dates, day)


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

@lru_cache
def get_checkin_service() -> CheckinService:
    return CheckinService(get_checkin_store())
