"""Platform-tuned mastering chain construction and application."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .audio_contract import AudioBuffer
from .domain.errors import DSPProcessingError
from .domain.profiles import ExportProfile
from .mastering_options import MasteringStyle
from .normalization import convert_for_delivery
from .processor import (
    BaseProcessor,
    CompressorProcessor,
    HarmonicExciterProcessor,
    LoudnessCeilingProcessor,
    LoudnessCompProcessor,
    PlatformEqProcessor,
    SoftLimiterProcessor,
    SpectralShaperProcessor,
    StereoWidenerProcessor,
)

LOGGER = logging.getLogger(__name__)

PIPELINE_VERSION = "v2"


@dataclass(frozen=True, slots=True)
class CompressionTuning:
    """Compressor voicing for one mastering style."""

    threshold_db: float
    ratio: float
    attack_seconds: float
    release_seconds: float


COMPRESSION_TUNINGS: dict[MasteringStyle, CompressionTuning] = {
    MasteringStyle.COMMERCIAL: CompressionTuning(
        threshold_db=-18.0, ratio=4.0, attack_seconds=0.003, release_seconds=0.1
    ),
    MasteringStyle.ARTISTIC: CompressionTuning(
        threshold_db=-24.0, ratio=2.5, attack_seconds=0.01, release_seconds=0.3
    ),
    MasteringStyle.PODCAST: CompressionTuning(
        threshold_db=-20.0, ratio=3.0, attack_seconds=0.005, release_seconds=0.2
    ),
    MasteringStyle.STREAMING: CompressionTuning(
        threshold_db=-16.0, ratio=3.5, attack_seconds=0.003, release_seconds=0.15
    ),
}


def resolve_compression_tuning(style: MasteringStyle | str) -> CompressionTuning:
    return COMPRESSION_TUNINGS[MasteringStyle(style)]


def apply_platform_eq(audio: np.ndarray, sample_rate: int, profile: ExportProfile) -> np.ndarray:
    curve = profile.platform_eq
    return PlatformEqProcessor(curve.low_gain, curve.mid_gain, curve.high_gain).process(audio, sample_rate)


def compress_dynamics(audio: np.ndarray, sample_rate: int, style: MasteringStyle | str) -> np.ndarray:
    tuning = resolve_compression_tuning(style)
    compressor = CompressorProcessor(
        threshold_db=tuning.threshold_db,
        ratio=tuning.ratio,
        attack_seconds=tuning.attack_seconds,
        release_seconds=tuning.release_seconds,
    )
    return compressor.process(audio, sample_rate)


def normalize_loudness(audio: np.ndarray, sample_rate: int, target_lufs: float) -> np.ndarray:
    return LoudnessCompProcessor(target_lufs).process(audio, sample_rate)


def soft_limit(audio: np.ndarray, sample_rate: int, ceiling_db: float) -> np.ndarray:
    return SoftLimiterProcessor(ceiling_db=ceiling_db).process(audio, sample_rate)


def normalize_under_ceiling(audio: np.ndarray, sample_rate: int, target_lufs: float, ceiling_db: float) -> np.ndarray:
    return LoudnessCeilingProcessor(target_lufs, ceiling_db).process(audio, sample_rate)


def build_enhancement_chain(profile: ExportProfile) -> list[tuple[str, BaseProcessor]]:
    """Enhancement stages enabled by the profile, in fixed order."""

    optimizations = profile.ai_optimizations
    flags = optimizations.enhancement_flags
    chain: list[tuple[str, BaseProcessor]] = []
    if flags.stereo_widen:
        chain.append(("stereo_widen", StereoWidenerProcessor(optimizations.stereo_width_factor)))
    if flags.harmonic_excite:
        chain.append(
            (
                "harmonic_excite",
                HarmonicExciterProcessor(optimizations.excitation_drive, optimizations.excitation_mix),
            )
        )
    if flags.spectral_shape:
        chain.append(("spectral_shape", SpectralShaperProcessor(profile.spectral_shaping_gain)))
    return chain


def build_mastering_chain(profile: ExportProfile) -> list[tuple[str, BaseProcessor]]:
    """Build the ordered, named stage list for one profile."""

    spec = profile.audio_spec
    tuning = resolve_compression_tuning(profile.ai_optimizations.mastering_style)
    curve = profile.platform_eq

    chain: list[tuple[str, BaseProcessor]] = [
        ("platform_eq", PlatformEqProcessor(curve.low_gain, curve.mid_gain, curve.high_gain)),
        (
            "compression",
            CompressorProcessor(
                threshold_db=tuning.threshold_db,
                ratio=tuning.ratio,
                attack_seconds=tuning.attack_seconds,
                release_seconds=tuning.release_seconds,
            ),
        ),
        ("loudness", LoudnessCeilingProcessor(spec.loudness_target_lufs, spec.peak_limit_db)),
    ]
    enhancements = build_enhancement_chain(profile)
    chain.extend(enhancements)
    if enhancements:
        # Enhancements move both loudness and peaks; bring both back in line.
        chain.append(("enhancement_trim", LoudnessCeilingProcessor(spec.loudness_target_lufs, spec.peak_limit_db)))
    return chain


class MasteringPipeline:
    """Deterministic per-profile mastering chain.

    The source is first converted to the profile's delivery sample rate and
    channel layout, so the loudness set here is the loudness that gets rendered.
    ``process`` never mutates its input. When a profile disables mastering the
    result is an unmodified copy of the source.
    """

    version = PIPELINE_VERSION

    def process(self, buffer: AudioBuffer, profile: ExportProfile) -> AudioBuffer:
        if not profile.ai_optimizations.mastering_enabled:
            return buffer.copy()

        spec = profile.audio_spec
        try:
            converted = convert_for_delivery(
                buffer,
                target_sample_rate_hz=spec.sample_rate_hz,
                target_channel_count=spec.channel_layout.channel_count,
            ).buffer
        except Exception as error:
            raise DSPProcessingError(profile.id, f"Mastering stage 'delivery_format' failed: {error}") from error

        audio = converted.samples.copy()
        for stage_name, processor in build_mastering_chain(profile):
            try:
                audio = processor.process(audio, converted.sample_rate_hz)
            except Exception as error:
                raise DSPProcessingError(
                    profile.id, f"Mastering stage '{stage_name}' failed: {error}"
                ) from error
            if not np.all(np.isfinite(audio)):
                raise DSPProcessingError(profile.id, f"Mastering stage '{stage_name}' produced non-finite samples.")

        LOGGER.debug(
            "mastering_pipeline_completed",
            extra={"profile_id": profile.id, "pipeline_version": self.version, "sample_rate_hz": converted.sample_rate_hz},
        )
        return converted.with_samples(audio)
