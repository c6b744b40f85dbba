from __future__ import annotations

import numpy as np
from pedalboard import Gain, HighShelfFilter, LowShelfFilter, Pedalboard

from mixport.domain.services import linear_to_db

from .base import BaseProcessor

LOW_SHELF_CUTOFF_HZ = 250.0
HIGH_SHELF_CUTOFF_HZ = 4_000.0


class PlatformEqProcessor(BaseProcessor):
    """Static three-region gain curve: broadband mid gain plus low and high shelves."""

    def __init__(self, low_gain: float = 1.0, mid_gain: float = 1.0, high_gain: float = 1.0) -> None:
        self.low_gain_db = linear_to_db(float(low_gain))
        self.mid_gain_db = linear_to_db(float(mid_gain))
        self.high_gain_db = linear_to_db(float(high_gain))

    @property
    def is_flat(self) -> bool:
        return self.low_gain_db == 0.0 and self.mid_gain_db == 0.0 and self.high_gain_db == 0.0

    def process(self, audio: np.ndarray, sample_rate: int) -> np.ndarray:
        if self.is_flat or audio.shape[-1] == 0:
            return audio.copy()

        # Keep the high shelf below Nyquist for low-rate sources.
        high_cutoff = min(HIGH_SHELF_CUTOFF_HZ, sample_rate * 0.45)
        board = Pedalboard(
            [
                Gain(gain_db=round(self.mid_gain_db, 6)),
                LowShelfFilter(cutoff_frequency_hz=LOW_SHELF_CUTOFF_HZ, gain_db=round(self.low_gain_db, 6)),
                HighShelfFilter(cutoff_frequency_hz=high_cutoff, gain_db=round(self.high_gain_db, 6)),
            ]
        )
        return board(audio.astype(np.float32, copy=False), sample_rate).astype(np.float32, copy=False)
