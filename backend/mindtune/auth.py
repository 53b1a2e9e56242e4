"""
Authentication
==============
Resolves the bearer token on a request to a MindTune user record.

Tokens are issued by Supabase Auth. The auth user is mapped to our own
users row (integer id) through users.auth_id; every check-in is keyed by
that integer id.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from mindtune.config import get_settings
from mindtune.db.supabase import get_supabase_client

logger = logging.getLogger(__name__)


def get_authenticated_user(authorization: str) -> dict:
    """Verify the bearer token and return the user record.

    Raises HTTPException 401 if the token is missing or invalid, 404 if
    the token is valid but no profile row exists, 503 if Supabase is not
    configured or the users table cannot be reached.
    """
    settings = get_settings()
    if settings.dev_user_id is not None and not settings.is_production:
        logger.debug("Auth bypassed: acting as dev user %s", settings.dev_user_id)
        return {"id": settings.dev_user_id}

    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Missing or invalid authorization header", "code": "auth_required"},
        )

    token = authorization.removeprefix("Bearer ").strip()
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Empty bearer token", "code": "auth_required"},
        )

    if not settings.supabase_service_key:
        logger.warning("Bearer token received but Supabase auth is not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "message": "Authentication is not configured; set DEV_USER_ID for local development",
                "code": "auth_unavailable",
            },
        )

    db = get_supabase_client()

    try:
        auth_response = db.auth.get_user(token)
    except Exception as exc:
        logger.warning("Auth token verification failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid or expired token", "code": "auth_invalid"},
        ) from exc

    if not auth_response or not auth_response.user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "User not found for token", "code": "auth_invalid"},
        )

    try:
        result = (
            db.table(settings.users_table)
            .select("*")
            .eq("auth_id", auth_response.user.id)
            .maybe_single()
            .execute()
        )
    except Exception as exc:
        logger.warning("User profile lookup failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": "User storage is temporarily unavailable", "code": "store_unavailable"},
        ) from exc

    if not result or not result.data:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": "User profile not found", "code": "user_not_found"},
        )

    return result.data
