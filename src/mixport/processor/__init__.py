from .base import BaseProcessor
from .compressor import CompressorProcessor
from .dither import DitherProcessor
from .enhancers import HarmonicExciterProcessor, SpectralShaperProcessor, StereoWidenerProcessor
from .limiter import SoftLimiterProcessor, soft_clip
from .loudness_comp import LoudnessCeilingProcessor, LoudnessCompProcessor
from .platform_eq import PlatformEqProcessor

__all__ = [
    "BaseProcessor",
    "CompressorProcessor",
    "DitherProcessor",
    "HarmonicExciterProcessor",
    "LoudnessCeilingProcessor",
    "LoudnessCompProcessor",
    "PlatformEqProcessor",
    "SoftLimiterProcessor",
    "SpectralShaperProcessor",
    "StereoWidenerProcessor",
    "soft_clip",
]
