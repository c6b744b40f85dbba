from __future__ import annotations

import math

import numpy as np

from .base import BaseProcessor

DETECTOR_BLOCK_FRAMES = 64


def smoothing_coefficient(time_seconds: float, update_rate_hz: float) -> float:
    """One-pole coefficient reaching ~63% of a step after ``time_seconds``."""

    if time_seconds <= 0.0:
        return 1.0
    return 1.0 - math.exp(-1.0 / (time_seconds * update_rate_hz))


def follow_envelope(level_db: np.ndarray, attack_coefficient: float, release_coefficient: float) -> np.ndarray:
    """Exponentially smooth a level track onto an envelope (attack when rising, release when falling)."""

    envelope = np.empty(level_db.size, dtype=np.float64)
    if level_db.size == 0:
        return envelope

    state = float(level_db[0])
    for idx, level in enumerate(level_db.tolist()):
        coefficient = attack_coefficient if level > state else release_coefficient
        state += (level - state) * coefficient
        envelope[idx] = state
    return envelope


def gain_reduction_db(envelope_db: np.ndarray, threshold_db: float, ratio: float) -> np.ndarray:
    """``(envelope - threshold) * (1 - 1/ratio)`` above threshold, zero elsewhere."""

    over = envelope_db - threshold_db
    return np.where(over > 0.0, over * (1.0 - 1.0 / ratio), 0.0)


class CompressorProcessor(BaseProcessor):
    """Feed-forward envelope-follower compressor with a channel-linked peak detector.

    The detector runs on blocks of ``block_frames`` samples; the resulting gain curve
    is interpolated back to per-sample resolution.
    """

    def __init__(
        self,
        threshold_db: float,
        ratio: float,
        attack_seconds: float,
        release_seconds: float,
        block_frames: int = DETECTOR_BLOCK_FRAMES,
    ) -> None:
        if ratio < 1.0:
            raise ValueError("Compressor ratio must be >= 1.0.")
        if block_frames < 1:
            raise ValueError("block_frames must be >= 1.")
        self.threshold_db = float(threshold_db)
        self.ratio = float(ratio)
        self.attack_seconds = float(attack_seconds)
        self.release_seconds = float(release_seconds)
        self.block_frames = int(block_frames)

    def process(self, audio: np.ndarray, sample_rate: int) -> np.ndarray:
        frames = audio.shape[-1]
        if frames == 0:
            return audio.copy()

        detector = np.max(np.abs(audio), axis=0) if audio.ndim == 2 else np.abs(audio)
        block_count = -(-frames // self.block_frames)
        padded = np.zeros(block_count * self.block_frames, dtype=np.float64)
        padded[:frames] = detector
        block_levels = padded.reshape(block_count, self.block_frames).max(axis=1)
        level_db = 20.0 * np.log10(block_levels + 1e-10)

        update_rate_hz = sample_rate / self.block_frames
        envelope_db = follow_envelope(
            level_db,
            smoothing_coefficient(self.attack_seconds, update_rate_hz),
            smoothing_coefficient(self.release_seconds, update_rate_hz),
        )
        reduction_db = gain_reduction_db(envelope_db, self.threshold_db, self.ratio)

        block_centers = np.arange(block_count, dtype=np.float64) * self.block_frames + self.block_frames / 2.0
        per_frame_db = np.interp(np.arange(frames, dtype=np.float64), block_centers, reduction_db)
        gain = np.power(10.0, -per_frame_db / 20.0)
        return (audio * gain).astype(np.float32, copy=False)
