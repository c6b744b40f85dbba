"""Audio buffer contract shared by the mastering, rendering and analysis modules.

Invariants
----------
* Every buffer handed between stages is channel-first float32 PCM with shape
  ``(channels, frames)``.
* Stages never mutate the buffer they receive; they return a new one.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

# Source formats accepted by the filesystem project store (lower-case, with leading dot).
ACCEPTED_SOURCE_EXTENSIONS: tuple[str, ...] = (".wav", ".aiff", ".aif", ".flac")

# Formats encoded without a bitrate; size is derived from sample count and bit depth.
PCM_FORMATS: frozenset[str] = frozenset({"wav", "flac", "aiff"})
LOSSY_FORMATS: frozenset[str] = frozenset({"mp3", "aac", "ogg"})

MIN_SILENCE_DB = -120.0


class AudioContractError(ValueError):
    """Raised when a buffer does not follow the channel-first float32 contract."""


def ensure_channel_first(samples: np.ndarray) -> np.ndarray:
    """Return ``samples`` as a 2D channel-first float32 array."""

    array = np.asarray(samples)
    if array.ndim == 1:
        array = array[np.newaxis, :]
    if array.ndim != 2:
        raise AudioContractError("Audio must be a 1D mono or 2D channel-first array.")
    return array.astype(np.float32, copy=False)


@dataclass(frozen=True, slots=True)
class AudioBuffer:
    """Channel-first float32 PCM with its sample rate."""

    samples: np.ndarray
    sample_rate_hz: int

    def __post_init__(self) -> None:
        if self.sample_rate_hz <= 0:
            raise AudioContractError("Sample rate must be a positive integer.")
        object.__setattr__(self, "samples", ensure_channel_first(self.samples))

    @property
    def channel_count(self) -> int:
        return int(self.samples.shape[0])

    @property
    def frame_count(self) -> int:
        return int(self.samples.shape[1])

    @property
    def duration_seconds(self) -> float:
        return self.frame_count / float(self.sample_rate_hz)

    def copy(self) -> "AudioBuffer":
        return AudioBuffer(samples=self.samples.copy(), sample_rate_hz=self.sample_rate_hz)

    def with_samples(self, samples: np.ndarray) -> "AudioBuffer":
        return AudioBuffer(samples=samples, sample_rate_hz=self.sample_rate_hz)
