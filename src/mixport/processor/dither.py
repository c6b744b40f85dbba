from __future__ import annotations

import numpy as np

from .base import BaseProcessor

DEFAULT_DITHER_SEED = 0x5EED


class DitherProcessor(BaseProcessor):
    """Add triangular (TPDF) dither of one quantisation step ahead of bit-depth reduction.

    Noise comes from a generator seeded per call, so identical input renders identically.
    """

    def __init__(self, bit_depth: int, seed: int = DEFAULT_DITHER_SEED) -> None:
        self.bit_depth = int(bit_depth)
        self.seed = int(seed)

    @property
    def step(self) -> float:
        return 1.0 / float(2 ** (self.bit_depth - 1))

    def process(self, audio: np.ndarray, sample_rate: int) -> np.ndarray:
        rng = np.random.default_rng(self.seed)
        noise = (rng.random(audio.shape) - rng.random(audio.shape)) * self.step
        return (audio + noise).astype(audio.dtype, copy=False)
