"""
Daily Check-in Router
=====================
POST /api/v1/checkins          — Save today's check-in (create or overwrite).
GET  /api/v1/checkins/today    — Today's check-in, or null.
GET  /api/v1/checkins/monthly  — A month's check-ins with stats and streak.
GET  /api/v1/checkins/stats    — Monthly statistics only.
GET  /api/v1/checkins/streak   — Current consecutive-day streak.

One check-in per user per day: a second submission on the same date
overwrites the first. "Today" is the current UTC date.

If the check-in store is unreachable and the deployment has no
in-memory fallback, every endpoint returns 503 store_unavailable.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Query, status

from mindtune.auth import get_authenticated_user
from mindtune.db.stores import StoreUnavailableError, StoreWriteError
from mindtune.models.checkin import (
    VALID_ACTIVITIES,
    CheckinStreakResponse,
    DailyCheckin,
    DailyCheckinCreate,
    MonthlyCheckinsResponse,
    MonthlyStats,
)
from mindtune.services.checkins import get_checkin_service, summarise_checkins

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/checkins", tags=["checkins"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _validate_activities(activities: list[str]) -> list[str]:
    """Reject unknown activity keys and drop duplicates, keeping order."""
    invalid = [a for a in activities if a not in VALID_ACTIVITIES]
    if invalid:
        logger.info("Rejected check-in with unknown activities: %s", invalid)
        raise HTTPException(
            status_code=422,
            detail={
                "message": f"Invalid activities: {', '.join(invalid)}",
                "code": "invalid_activities",
                "valid_activities": list(VALID_ACTIVITIES),
            },
        )
    return list(dict.fromkeys(activities))


def _store_unavailable() -> HTTPException:
    """503 for a store outage. The store has already logged the failure."""
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"message": "Check-in storage is temporarily unavailable", "code": "store_unavailable"},
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=DailyCheckin,
    status_code=status.HTTP_200_OK,
    summary="Save today's check-in",
    description=(
        "Create today's check-in, or overwrite it if one already exists. "
        "The record keeps its id and created_at across overwrites."
    ),
    responses={
        200: {"description": "Check-in saved"},
        401: {"description": "Authentication required"},
        422: {"description": "Validation error (rating bounds, unknown activities)"},
        503: {"description": "Check-in storage unavailable"},
    },
)
async def submit_checkin(
    body: DailyCheckinCreate,
    authorization: str = Header(..., description="Bearer token from Supabase Auth"),
) -> DailyCheckin:
    user = get_authenticated_user(authorization)
    user_id: int = user["id"]

    payload = body.model_copy(update={"activities": _validate_activities(body.activities)})

    try:
        return await get_checkin_service().put_checkin(user_id, payload)
    except StoreUnavailableError as exc:
        raise _store_unavailable() from exc
    except StoreWriteError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to save check-in", "code": "db_error"},
        ) from exc


@router.get(
    "/today",
    response_model=Optional[DailyCheckin],
    summary="Get today's check-in",
    responses={
        200: {"description": "Today's check-in, or null if none yet"},
        401: {"description": "Authentication required"},
    },
)
async def get_today_checkin(
    authorization: str = Header(..., description="Bearer token from Supabase Auth"),
) -> Optional[DailyCheckin]:
    user = get_authenticated_user(authorization)
    service = get_checkin_service()
    try:
        return await service.get_checkin_by_date(user["id"], service.today())
    except StoreUnavailableError as exc:
        raise _store_unavailable() from exc


@router.get(
    "/monthly",
    response_model=MonthlyCheckinsResponse,
    summary="Get a month of check-ins",
    description=(
        "Returns every check-in in the calendar month (oldest first), the "
        "month's statistics and the current streak."
    ),
)
async def get_monthly_checkins(
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=1, le=12),
    authorization: str = Header(..., description="Bearer token from Supabase Auth"),
) -> MonthlyCheckinsResponse:
    user = get_authenticated_user(authorization)
    user_id: int = user["id"]
    service = get_checkin_service()

    try:
        checkins = await service.get_monthly_checkins(user_id, year, month)
        streak = await service.compute_streak(user_id)
    except StoreUnavailableError as exc:
        raise _store_unavailable() from exc

    return MonthlyCheckinsResponse(
        year=year,
        month=month,
        checkins=checkins,
        stats=summarise_checkins(checkins),
        streak=streak,
    )


@router.get(
    "/stats",
    response_model=MonthlyStats,
    summary="Get monthly check-in statistics",
    description="All-zero statistics are returned for a month with no check-ins.",
)
async def get_monthly_stats(
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=1, le=12),
    authorization: str = Header(..., description="Bearer token from Supabase Auth"),
) -> MonthlyStats:
    user = get_authenticated_user(authorization)
    try:
        return await get_checkin_service().compute_monthly_stats(user["id"], year, month)
    except StoreUnavailableError as exc:
        raise _store_unavailable() from exc


@router.get(
    "/streak",
    response_model=CheckinStreakResponse,
    summary="Get the current check-in streak",
    description="Consecutive days with a check-in, ending today. 0 if none today.",
)
async def get_checkin_streak(
    authorization: str = Header(..., description="Bearer token from Supabase Auth"),
) -> CheckinStreakResponse:
    user = get_authenticated_user(authorization)
    service = get_checkin_service()
    today = service.today()
    try:
        streak = await service.compute_streak(user["id"], today)
    except StoreUnavailableError as exc:
        raise _store_unavailable() from exc
    return CheckinStreakResponse(streak=streak, as_of=today)
