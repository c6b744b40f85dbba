from __future__ import annotations

import numpy as np

from mixport.domain.services import db_to_linear

from .base import BaseProcessor

DEFAULT_KNEE_DB = 1.0


def soft_clip(audio: np.ndarray, ceiling_db: float, knee_db: float = DEFAULT_KNEE_DB) -> np.ndarray:
    """Saturate magnitudes above the knee with tanh so no sample reaches the ceiling.

    Samples at or below ``ceiling - knee_db`` pass unchanged. Above the knee the
    magnitude becomes ``knee + (ceiling - knee) * tanh((|x| - knee) / (ceiling - knee))``,
    which is continuous at the knee and approaches but never reaches the ceiling.
    """

    if knee_db <= 0.0:
        raise ValueError("knee_db must be positive.")

    ceiling = db_to_linear(ceiling_db)
    knee = ceiling * db_to_linear(-knee_db)
    width = ceiling - knee

    magnitude = np.abs(audio).astype(np.float64, copy=False)
    over = magnitude > knee
    if not np.any(over):
        return audio.astype(np.float32, copy=True)

    limited = magnitude.copy()
    limited[over] = knee + width * np.tanh((magnitude[over] - knee) / width)
    return (np.sign(audio) * limited).astype(np.float32, copy=False)


class SoftLimiterProcessor(BaseProcessor):
    """Peak ceiling guard using a tanh soft knee instead of hard truncation."""

    def __init__(self, ceiling_db: float = -1.0, knee_db: float = DEFAULT_KNEE_DB) -> None:
        if ceiling_db > 0.0:
            raise ValueError("ceiling_db must be <= 0.0.")
        self.ceiling_db = float(ceiling_db)
        self.knee_db = float(knee_db)

    def process(self, audio: np.ndarray, sample_rate: int) -> np.ndarray:
        return soft_clip(audio, self.ceiling_db, self.knee_db)
