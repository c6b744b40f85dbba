"""Domain services that contain pure business rules."""

from __future__ import annotations

import numpy as np

from mixport.audio_contract import MIN_SILENCE_DB

# Offset turning an RMS level into a rough LUFS figure. Approximation only; not BS.1770.
LUFS_RMS_OFFSET_DB = -0.691

_LOUDNESS_GAIN_MIN_DB = -24.0
_LOUDNESS_GAIN_MAX_DB = 24.0

_BASE_EXPORT_SECONDS = 30.0
_SECONDS_PER_PROFILE = 45.0


def db_to_linear(value_db: float) -> float:
    return float(10.0 ** (value_db / 20.0))


def linear_to_db(value: float) -> float:
    if value <= 0.0:
        return MIN_SILENCE_DB
    return float(max(MIN_SILENCE_DB, 20.0 * np.log10(value)))


def estimate_loudness_lufs(samples: np.ndarray) -> float:
    """Coarse loudness estimate: RMS over every sample of every channel, in dB, minus 0.691."""

    if samples.size == 0:
        return MIN_SILENCE_DB + LUFS_RMS_OFFSET_DB
    rms = float(np.sqrt(np.mean(np.square(samples, dtype=np.float64))))
    return float(20.0 * np.log10(rms + 1e-10)) + LUFS_RMS_OFFSET_DB


def peak_dbfs(samples: np.ndarray) -> float:
    """Sample peak across all channels in dBFS."""

    if samples.size == 0:
        return MIN_SILENCE_DB
    return linear_to_db(float(np.max(np.abs(samples))))


def compute_loudness_gain_delta_db(current_lufs: float, target_lufs: float) -> float:
    """Compute a safe gain delta that moves ``current_lufs`` to ``target_lufs``."""

    return float(np.clip(target_lufs - current_lufs, _LOUDNESS_GAIN_MIN_DB, _LOUDNESS_GAIN_MAX_DB))


def estimate_export_duration_seconds(profile_count: int) -> float:
    """Rough wall-clock estimate shown to callers at submission time."""

    return _BASE_EXPORT_SECONDS + _SECONDS_PER_PROFILE * max(0, profile_count)


def profile_progress_window(index: int, total: int, start: float = 20.0, end: float = 80.0) -> tuple[float, float]:
    """Progress span reserved for profile ``index`` of ``total``; windows never overlap."""

    if total <= 0:
        return start, end
    step = (end - start) / total
    return start + step * index, start + step * (index + 1)
