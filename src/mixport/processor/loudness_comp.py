from __future__ import annotations

import numpy as np

from mixport.domain.services import compute_loudness_gain_delta_db, db_to_linear, estimate_loudness_lufs

from .base import BaseProcessor
from .limiter import DEFAULT_KNEE_DB, soft_clip

DEFAULT_MAX_PASSES = 8
DEFAULT_TOLERANCE_DB = 0.05


class LoudnessCompProcessor(BaseProcessor):
    """Apply broadband gain so the coarse loudness estimate hits a target."""

    def __init__(self, target_lufs: float) -> None:
        self.target_lufs = float(target_lufs)

    def gain_db_for(self, audio: np.ndarray) -> float:
        return compute_loudness_gain_delta_db(estimate_loudness_lufs(audio), self.target_lufs)

    def process(self, audio: np.ndarray, sample_rate: int) -> np.ndarray:
        gain = db_to_linear(self.gain_db_for(audio))
        return (audio * gain).astype(np.float32, copy=False)


class LoudnessCeilingProcessor(BaseProcessor):
    """Normalise to a loudness target under a soft-limited peak ceiling.

    A single gain-then-limit pass undershoots on transient material because the
    limiter removes energy from the peaks the gain just raised. Gain and limiting
    are repeated until the loudness error drops under ``tolerance_db`` or
    ``max_passes`` is reached. Every pass ends on the limiter, so the ceiling
    always holds.
    """

    def __init__(
        self,
        target_lufs: float,
        ceiling_db: float,
        *,
        knee_db: float = DEFAULT_KNEE_DB,
        max_passes: int = DEFAULT_MAX_PASSES,
        tolerance_db: float = DEFAULT_TOLERANCE_DB,
    ) -> None:
        if ceiling_db > 0.0:
            raise ValueError("ceiling_db must be <= 0.0.")
        if max_passes < 1:
            raise ValueError("max_passes must be at least 1.")
        self.loudness = LoudnessCompProcessor(target_lufs)
        self.ceiling_db = float(ceiling_db)
        self.knee_db = float(knee_db)
        self.max_passes = int(max_passes)
        self.tolerance_db = float(tolerance_db)

    @property
    def target_lufs(self) -> float:
        return self.loudness.target_lufs

    def process(self, audio: np.ndarray, sample_rate: int) -> np.ndarray:
        result = audio
        for _ in range(self.max_passes):
            result = soft_clip(self.loudness.process(result, sample_rate), self.ceiling_db, self.knee_db)
            if abs(self.loudness.gain_db_for(result)) <= self.tolerance_db:
                break
        return result
