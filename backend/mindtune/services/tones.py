"""
Tone Synthesis
==============
Renders the catalog's audio as short, quiet, generated tones so playback
never depends on an external host.

Every track carries a ToneSpec (frequency + waveform). This module turns
that into 16-bit mono PCM wrapped in a RIFF/WAVE container, which is what
the /audio.wav endpoint streams back.
"""

from __future__ import annotations

import io
import logging

import numpy as np
import soundfile as sf

from mindtune.models.music import Track

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_AMPLITUDE = 0.1  # tones play quietly under the UI
PCM_MAX = 32767
WAV_HEADER_BYTES = 44

# Partial frequencies and weights for the meditation bell
_BELL_PARTIALS: tuple[tuple[float, float], ...] = (
    (440.0, 0.5),
    (880.0, 0.3),
    (1320.0, 0.2),
)
_BELL_DECAY_PER_SECOND = 2.0

WAVEFORMS = frozenset({"sine", "triangle", "square"})


# ---------------------------------------------------------------------------
# Sample generation
# ---------------------------------------------------------------------------

def _time_axis(duration_seconds: float, sample_rate: int) -> np.ndarray:
    if duration_seconds <= 0:
        raise ValueError(f"duration_seconds must be positive, got {duration_seconds}")
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    num_samples = int(sample_rate * duration_seconds)
    return np.arange(num_samples, dtype=np.float64) / sample_rate


def synthesize_waveform(
    frequency_hz: float,
    duration_seconds: float,
    waveform: str = "sine",
    sample_rate: int = 22050,
    amplitude: float = DEFAULT_AMPLITUDE,
) -> np.ndarray:
    """Return float samples in [-amplitude, amplitude] for a periodic tone."""
    if frequency_hz <= 0:
        raise ValueError(f"frequency_hz must be positive, got {frequency_hz}")
    if waveform not in WAVEFORMS:
        raise ValueError(f"Unknown waveform {waveform!r}; expected one of {sorted(WAVEFORMS)}")

    t = _time_axis(duration_seconds, sample_rate)
    phase = 2 * np.pi * frequency_hz * t

    if waveform == "sine":
        wave_ = np.sin(phase)
    elif waveform == "square":
        wave_ = np.sign(np.sin(phase))
    else:
        # triangle: 2/pi * arcsin(sin(x)) spans [-1, 1] with linear ramps
        wave_ = (2 / np.pi) * np.arcsin(np.sin(phase))

    return np.clip(wave_ * amplitude, -1.0, 1.0)


def synthesize_bell(duration_seconds: float, sample_rate: int = 22050) -> np.ndarray:
    """A struck-bell sound: three harmonics under an exponential decay."""
    t = _time_axis(duration_seconds, sample_rate)
    samples = np.zeros_like(t)
    for freq, weight in _BELL_PARTIALS:
        samples += np.sin(2 * np.pi * freq * t) * weight
    samples *= np.exp(-t * _BELL_DECAY_PER_SECOND)
    return np.clip(samples, -1.0, 1.0)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def encode_wav(samples: np.ndarray, sample_rate: int) -> bytes:
    """Encode float samples in [-1, 1] as 16-bit mono PCM WAV bytes."""
    # int16 frames are written verbatim
    pcm = np.round(np.clip(samples, -1.0, 1.0) * PCM_MAX).astype(np.int16)

    buf = io.BytesIO()
    sf.write(buf, pcm, sample_rate, format="WAV", subtype="PCM_16")
    return buf.getvalue()


def render_track_audio(track: Track, sample_rate: int) -> bytes:
    """Render the generated WAV for *track* from its tone recipe."""
    samples = synthesize_waveform(
        track.tone.frequency_hz,
        track.duration_seconds,
        waveform=track.tone.waveform,
        sample_rate=sample_rate,
    )
    logger.debug(
        "Rendered %s: %.0f Hz %s, %d samples",
        track.id, track.tone.frequency_hz, track.tone.waveform, samples.size,
    )
    return encode_wav(samples, sample_rate)
