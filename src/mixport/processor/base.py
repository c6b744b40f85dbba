from abc import ABC, abstractmethod

import numpy as np


class BaseProcessor(ABC):
    """Base class for mastering and rendering stages.

    Implementations are pure: they never modify ``audio`` in place and return a new
    channel-first float32 array.
    """

    @abstractmethod
    def process(self, audio: np.ndarray, sample_rate: int) -> np.ndarray:
        """Process channel-first audio and return the transformed signal."""
        raise NotImplementedError
