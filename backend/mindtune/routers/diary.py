"""
Diary Router
============
POST   /api/v1/diary             — Create an entry.
GET    /api/v1/diary             — The caller's entries, newest first.
GET    /api/v1/diary/{entry_id}  — One entry.
PUT    /api/v1/diary/{entry_id}  — Replace an entry's fields.
DELETE /api/v1/diary/{entry_id}  — Delete an entry.

Entries are private to their owner. An id that belongs to another user
returns the same 404 entry_not_found as an id that does not exist.
"""

from __future__ import annotations

from fastapi import APIRouter, Header, HTTPException, Response, status

from mindtune.auth import get_authenticated_user
from mindtune.db.stores import StoreUnavailableError, StoreWriteError
from mindtune.models.diary import DiaryEntry, DiaryEntryCreate
from mindtune.services.diary import get_diary_service

router = APIRouter(prefix="/api/v1/diary", tags=["diary"])


def _not_found(entry_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"message": f"Diary entry {entry_id} not found", "code": "entry_not_found"},
    )


def _store_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"message": "Diary storage is temporarily unavailable", "code": "store_unavailable"},
    )


@router.post(
    "",
    response_model=DiaryEntry,
    status_code=status.HTTP_201_CREATED,
    summary="Create a diary entry",
    responses={
        201: {"description": "Entry created"},
        401: {"description": "Authentication required"},
        422: {"description": "Validation error (title/content length, mood rating bounds)"},
        503: {"description": "Diary storage unavailable"},
    },
)
async def create_diary_entry(
    body: DiaryEntryCreate,
    authorization: str = Header(..., description="Bearer token from Supabase Auth"),
) -> DiaryEntry:
    user = get_authenticated_user(authorization)
    try:
        return await get_diary_service().create_entry(user["id"], body)
    except StoreUnavailableError as exc:
        raise _store_unavailable() from exc
    except StoreWriteError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to save diary entry", "code": "db_error"},
        ) from exc


@router.get("", response_model=list[DiaryEntry], summary="List diary entries")
async def list_diary_entries(
    authorization: str = Header(..., description="Bearer token from Supabase Auth"),
) -> list[DiaryEntry]:
    user = get_authenticated_user(authorization)
    try:
        return await get_diary_service().list_entries(user["id"])
    except StoreUnavailableError as exc:
        raise _store_unavailable() from exc


@router.get("/{entry_id}", response_model=DiaryEntry, summary="Get a diary entry")
async def get_diary_entry(
    entry_id: int,
    authorization: str = Header(..., description="Bearer token from Supabase Auth"),
) -> DiaryEntry:
    user = get_authenticated_user(authorization)
    try:
        entry = await get_diary_service().get_entry(user["id"], entry_id)
    except StoreUnavailableError as exc:
        raise _store_unavailable() from exc
    if entry is None:
        raise _not_found(entry_id)
    return entry


@router.put("/{entry_id}", response_model=DiaryEntry, summary="Update a diary entry")
async def update_diary_entry(
    entry_id: int,
    body: DiaryEntryCreate,
    authorization: str = Header(..., description="Bearer token from Supabase Auth"),
) -> DiaryEntry:
    user = get_authenticated_user(authorization)
    try:
        entry = await get_diary_service().update_entry(user["id"], entry_id, body)
    except StoreUnavailableError as exc:
        raise _store_unavailable() from exc
    if entry is None:
        raise _not_found(entry_id)
    return entry


@router.delete(
    "/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a diary entry",
)
async def delete_diary_entry(
    entry_id: int,
    authorization: str = Header(..., description="Bearer token from Supabase Auth"),
) -> Response:
    user = get_authenticated_user(authorization)
    try:
        deleted = await get_diary_service().delete_entry(user["id"], entry_id)
    except StoreUnavailableError as exc:
        raise _store_unavailable() from exc
    if not deleted:
        raise _not_found(entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
