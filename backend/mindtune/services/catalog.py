"""
Track Catalog
=============
The fixed set of tracks the recommendation engine draws from.

The catalog is configuration, not a managed entity: it is built once,
never mutated, and handed to the engine through its constructor so tests
can swap in their own.

Every default track is backed by a server-generated tone (first source)
with a static placeholder file as the fallback (second source).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from functools import lru_cache
from typing import Optional

from mindtune.config import get_settings
from mindtune.models.music import AudioSource, ToneSpec, Track

logger = logging.getLogger(__name__)

PLACEHOLDER_AUDIO_URL = "/placeholder-audio.mp3"


class TrackCatalog:
    """Immutable, ordered collection of tracks with unique ids."""

    def __init__(self, tracks: Iterable[Track]) -> None:
        self._tracks: tuple[Track, ...] = tuple(tracks)
        self._by_id: dict[str, Track] = {}
        for track in self._tracks:
            if track.id in self._by_id:
                raise ValueError(f"Duplicate track id in catalog: {track.id!r}")
            self._by_id[track.id] = track

    @property
    def tracks(self) -> tuple[Track, ...]:
        return self._tracks

    def get(self, track_id: str) -> Optional[Track]:
        return self._by_id.get(track_id)

    def filter_by_mood(self, moods: Iterable[str]) -> list[Track]:
        wanted = frozenset(moods)
        return [t for t in self._tracks if t.mood in wanted]

    def filter_by_category(self, categories: Iterable[str]) -> list[Track]:
        wanted = frozenset(categories)
        return [t for t in self._tracks if t.category in wanted]

    def __iter__(self) -> Iterator[Track]:
        return iter(self._tracks)

    def __len__(self) -> int:
        return len(self._tracks)


# ---------------------------------------------------------------------------
# Default catalog
# ---------------------------------------------------------------------------

# (id, title, artist, genre, language, seconds, mood, category, Hz, waveform)
# nature_1 and sleep_1 reuse the calm_1 and meditation_1 tones.
_DEFAULT_TRACKS: tuple[tuple, ...] = (
    ("meditation_1", "Om Meditation", "Spiritual Voices", "Meditation", "Sanskrit",
     30, "calm", "meditation", 220.0, "sine"),
    ("meditation_2", "Tibetan Bowls Healing", "Healing Sounds", "Meditation", "Instrumental",
     25, "peaceful", "meditation", 174.0, "sine"),
    ("devotional_1", "Hanuman Chalisa", "Hariharan", "Devotional", "Hindi",
     28, "peaceful", "devotional", 432.0, "triangle"),
    ("classical_1", "Raga Bhairav", "Pandit Ravi Shankar", "Classical", "Instrumental",
     35, "relaxed", "classical", 528.0, "sine"),
    ("energetic_1", "Kun Faya Kun", "A.R. Rahman", "Sufi", "Hindi",
     20, "energetic", "spiritual", 741.0, "square"),
    ("calm_1", "Peaceful Flute", "Pandit Hariprasad Chaurasia", "Instrumental", "Instrumental",
     40, "calm", "relaxation", 396.0, "sine"),
    ("spiritual_1", "Gayatri Mantra", "Anuradha Paudwal", "Devotional", "Sanskrit",
     32, "peaceful", "spiritual", 852.0, "triangle"),
    ("healing_1", "Nature Sounds Meditation", "Ambient Collective", "Ambient", "Instrumental",
     45, "calm", "ambient", 963.0, "sine"),
    ("nature_1", "Forest Sounds", "Nature Collective", "Nature", "Instrumental",
     60, "calm", "nature", 396.0, "sine"),
    ("sleep_1", "Deep Sleep Waves", "Sleep Collective", "Sleep", "Instrumental",
     90, "calm", "sleep", 220.0, "sine"),
)


def _build_track(row: tuple, audio_base_url: str, artwork_index: int) -> Track:
    (track_id, title, artist, genre, language, seconds,
     mood, category, hz, waveform) = row
    base = audio_base_url.rstrip("/")
    return Track(
        id=track_id,
        title=title,
        artist=artist,
        genre=genre,
        language=language,
        duration_seconds=seconds,
        artwork=f"https://picsum.photos/300/300?random={artwork_index}",
        mood=mood,
        category=category,
        sources=(
            AudioSource(
                url=f"{base}/{track_id}/audio.wav",
                format="wav",
                quality="high",
                description=f"Generated {waveform} tone at {hz:.0f}Hz",
                generated=True,
            ),
            AudioSource(
                url=PLACEHOLDER_AUDIO_URL,
                format="mp3",
                quality="low",
                description="Static placeholder audio",
                generated=False,
            ),
        ),
        tone=ToneSpec(frequency_hz=hz, waveform=waveform),
    )


def build_default_catalog(audio_base_url: str = "/api/v1/music/tracks") -> TrackCatalog:
    """Build the built-in ten-track catalog."""
    return TrackCatalog(
        _build_track(row, audio_base_url, index)
        for index, row in enumerate(_DEFAULT_TRACKS, start=1)
    )


@lru_cache
def get_track_catalog() -> TrackCatalog:
    settings = get_settings()
    catalog = build_default_catalog(settings.audio_base_url)
    logger.info("Loaded track catalog with %d tracks", len(catalog))
    return catalog
