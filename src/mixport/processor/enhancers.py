"""Optional enhancement stages gated by a profile's enhancement flags."""

from __future__ import annotations

import numpy as np

from .base import BaseProcessor


class StereoWidenerProcessor(BaseProcessor):
    """Scale the side signal of a mid/side decomposition."""

    def __init__(self, width_factor: float = 1.3) -> None:
        self.width_factor = float(width_factor)

    def process(self, audio: np.ndarray, sample_rate: int) -> np.ndarray:
        if audio.ndim != 2 or audio.shape[0] != 2:
            return audio.copy()

        left = audio[0].astype(np.float64, copy=False)
        right = audio[1].astype(np.float64, copy=False)
        mid = (left + right) / 2.0
        side = (left - right) / 2.0 * self.width_factor
        return np.stack((mid + side, mid - side)).astype(np.float32, copy=False)


class HarmonicExciterProcessor(BaseProcessor):
    """Blend a tanh-saturated copy into the dry signal."""

    def __init__(self, drive: float = 1.5, mix: float = 0.8) -> None:
        self.drive = float(drive)
        self.mix = float(mix)

    def process(self, audio: np.ndarray, sample_rate: int) -> np.ndarray:
        dry = audio.astype(np.float64, copy=False)
        excited = np.tanh(dry * self.drive) * self.mix + dry * (1.0 - self.mix)
        return excited.astype(np.float32, copy=False)


class SpectralShaperProcessor(BaseProcessor):
    """Platform emphasis expressed as a broadband gain multiplier."""

    def __init__(self, gain: float = 1.0) -> None:
        self.gain = float(gain)

    def process(self, audio: np.ndarray, sample_rate: int) -> np.ndarray:
        return (audio * self.gain).astype(np.float32, copy=False)
