"""
Music Schemas
=============
Pydantic models for the track catalog and the recommendation API.

Key design decisions:
- Tracks are frozen: the catalog is configuration, loaded once and shared
  by every request.
- MentalState is what the engine consumes. Its numeric fields are already
  clamped by the router; the engine never re-validates them.
- MentalStateRequest is the looser public payload. time_of_day is optional
  and derived from the server clock when the client leaves it out.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


Mood = Literal["anxious", "calm", "depressed", "energetic", "neutral"]
TimeOfDay = Literal["morning", "afternoon", "evening", "night"]
SessionGoal = Literal["relaxation", "focus", "sleep", "energy", "meditation"]
Waveform = Literal["sine", "triangle", "square"]


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class AudioSource(BaseModel):
    """One playable rendition of a track. Clients try sources in order."""

    model_config = ConfigDict(frozen=True)

    url: str
    format: Literal["wav", "mp3", "ogg"]
    quality: Literal["high", "medium", "low"]
    description: str = ""
    generated: bool = False


class ToneSpec(BaseModel):
    """Recipe for the synthesised audio behind a generated source."""

    model_config = ConfigDict(frozen=True)

    frequency_hz: float = Field(..., gt=0)
    waveform: Waveform = "sine"


class Track(BaseModel):
    """A single catalog entry, tagged for recommendation filtering."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    artist: str
    genre: str
    language: str
    duration_seconds: int = Field(..., gt=0)
    artwork: str = ""
    mood: str = Field(..., description="Free-text mood tag, e.g. 'calm', 'peaceful'.")
    category: str = Field(..., description="Free-text category tag, e.g. 'sleep', 'nature'.")
    sources: tuple[AudioSource, ...] = Field(..., min_length=1)
    tone: ToneSpec


# ---------------------------------------------------------------------------
# Engine input
# ---------------------------------------------------------------------------

class MentalState(BaseModel):
    """Snapshot of the user's current state, as consumed by the engine."""

    stress_level: int
    mood: Mood
    sleep_quality: int
    time_of_day: TimeOfDay
    session_goal: SessionGoal
    preferred_genres: list[str] = Field(default_factory=list)


class MentalStateRequest(BaseModel):
    """Payload the client sends when asking for music recommendations."""

    stress_level: int = Field(
        ...,
        description="Self-reported stress, 1-10. Out-of-range values are clamped.",
    )
    mood: Mood
    sleep_quality: int = Field(
        ...,
        description="Self-reported sleep quality, 1-10. Out-of-range values are clamped.",
    )
    session_goal: SessionGoal
    time_of_day: Optional[TimeOfDay] = Field(
        default=None,
        description="Defaults to the server's current time of day.",
    )
    preferred_genres: list[str] = Field(
        default_factory=list,
        description="Accepted for forward compatibility; not used for filtering.",
    )


# ---------------------------------------------------------------------------
# Engine output
# ---------------------------------------------------------------------------

class RecommendationCategory(BaseModel):
    """A labelled group of tracks the engine suggests for the current state."""

    name: str
    description: str
    reasoning: str
    tracks: list[Track] = Field(
        default_factory=list,
        description="Matching tracks in catalog order. May be empty.",
    )
    score: int = Field(..., ge=0, le=100, description="Sort key only.")


class RecommendationsResponse(BaseModel):
    """Response envelope returned by POST /api/v1/music/recommendations."""

    time_of_day: TimeOfDay
    categories: list[RecommendationCategory]
    disclaimer: str = Field(
        default="MindTune is a wellness tool, not a medical device.",
        description="Must always be shown alongside recommendations.",
    )
