"""
Music Router
============
POST /api/v1/music/recommendations        — Ranked categories for a mental state.
GET  /api/v1/music/tracks                 — The full track catalog.
GET  /api/v1/music/tracks/{id}            — One track.
GET  /api/v1/music/tracks/{id}/audio.wav  — Generated audio for one track.
GET  /api/v1/music/bell.wav               — Meditation bell chime.

This router is the engine's caller-side boundary: it clamps the numeric
ratings into [1, 10] and fills in time_of_day from the server clock, so
the engine only ever sees a valid MentalState. Enum fields are validated
by Pydantic (unknown values are a 422).

No authentication: the catalog is static configuration and the engine
stores nothing.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Response, status

from mindtune.config import get_settings
from mindtune.models.music import (
    MentalState,
    MentalStateRequest,
    RecommendationsResponse,
    Track,
)
from mindtune.services.recommendation import current_time_of_day, get_recommendation_engine
from mindtune.services.tones import encode_wav, render_track_audio, synthesize_bell

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/music", tags=["music"])

RATING_MIN = 1
RATING_MAX = 10


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _clamp_rating(value: int) -> int:
    return max(RATING_MIN, min(RATING_MAX, value))


def _to_mental_state(body: MentalStateRequest) -> MentalState:
    return MentalState(
        stress_level=_clamp_rating(body.stress_level),
        mood=body.mood,
        sleep_quality=_clamp_rating(body.sleep_quality),
        time_of_day=body.time_of_day or current_time_of_day(),
        session_goal=body.session_goal,
        preferred_genres=body.preferred_genres,
    )


def _get_track_or_404(track_id: str) -> Track:
    track = get_recommendation_engine().get_track_by_id(track_id)
    if track is None:
        logger.debug("Track lookup miss: %s", track_id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": f"Unknown track: {track_id}", "code": "track_not_found"},
        )
    return track


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/recommendations",
    response_model=RecommendationsResponse,
    status_code=status.HTTP_200_OK,
    summary="Get music recommendations for the current mental state",
    description=(
        "Returns up to six music categories, highest score first. Stress and "
        "sleep ratings outside 1-10 are clamped. If time_of_day is omitted the "
        "server's current time of day is used."
    ),
    responses={
        200: {"description": "Recommendations returned (categories may have no tracks)"},
        422: {"description": "Unknown mood, session goal or time of day"},
    },
)
async def get_recommendations(body: MentalStateRequest) -> RecommendationsResponse:
    state = _to_mental_state(body)
    categories = get_recommendation_engine().generate_recommendations(state)
    return RecommendationsResponse(time_of_day=state.time_of_day, categories=categories)


@router.get(
    "/tracks",
    response_model=list[Track],
    summary="List the track catalog",
)
async def list_tracks() -> list[Track]:
    return get_recommendation_engine().get_all_tracks()


@router.get(
    "/tracks/{track_id}",
    response_model=Track,
    summary="Get one track",
    responses={404: {"description": "Unknown track id"}},
)
async def get_track(track_id: str) -> Track:
    return _get_track_or_404(track_id)


@router.get(
    "/tracks/{track_id}/audio.wav",
    response_class=Response,
    summary="Stream a track's generated audio",
    responses={
        200: {"content": {"audio/wav": {}}, "description": "16-bit mono PCM WAV"},
        404: {"description": "Unknown track id"},
    },
)
def get_track_audio(track_id: str) -> Response:
    # Sync handler: synthesis is CPU-bound, FastAPI runs it in the threadpool
    track = _get_track_or_404(track_id)
    audio = render_track_audio(track, get_settings().audio_sample_rate)
    return Response(
        content=audio,
        media_type="audio/wav",
        headers={"Cache-Control": "public, max-age=86400"},
    )


@router.get(
    "/bell.wav",
    response_class=Response,
    summary="Meditation bell",
    description="A struck-bell chime for marking the start and end of a session.",
    responses={200: {"content": {"audio/wav": {}}, "description": "16-bit mono PCM WAV"}},
)
def get_bell_audio(
    duration_seconds: float = Query(3.0, gt=0, le=10),
) -> Response:
    sample_rate = get_settings().audio_sample_rate
    audio = encode_wav(synthesize_bell(duration_seconds, sample_rate), sample_rate)
    return Response(
        content=audio,
        media_type="audio/wav",
        headers={"Cache-Control": "public, max-age=86400"},
    )
