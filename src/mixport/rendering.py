"""Delivery rendering: format conversion, fades, ceiling guard and quantisation."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass

import numpy as np

from .audio_contract import PCM_FORMATS, AudioBuffer
from .domain.errors import RenderError
from .domain.models import ProjectMetadata, RenderSettings
from .domain.profiles import ExportProfile
from .domain.services import db_to_linear, estimate_loudness_lufs, linear_to_db
from .mastering_options import LimiterStyle
from .normalization import convert_for_delivery
from .processor import DitherProcessor, soft_clip

LOGGER = logging.getLogger(__name__)

EXPORT_DIRECTORY = "exports"
NORMALIZE_TARGET_DB = -0.45
FLOAT_BIT_DEPTH = 32

# Knee width below the ceiling where the final guard starts saturating.
LIMITER_KNEE_DB: dict[LimiterStyle, float] = {
    LimiterStyle.TRANSPARENT: 0.3,
    LimiterStyle.VINTAGE: 1.5,
    LimiterStyle.AGGRESSIVE: 3.0,
}

_UNSAFE_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]+')


@dataclass(frozen=True, slots=True)
class RenderedArtifact:
    """Delivery-ready audio plus the facts reported about it."""

    profile_id: str
    buffer: AudioBuffer
    format: str
    bit_depth: int
    bitrate_kbps: int | None
    artifact_path: str
    file_size_bytes: int
    duration_seconds: float
    metadata_warnings: tuple[str, ...] = ()


def _safe_component(value: str, fallback: str) -> str:
    cleaned = _UNSAFE_NAME_CHARS.sub("_", value).strip(" .")
    return cleaned or fallback


def artifact_name(metadata: ProjectMetadata, profile: ExportProfile) -> str:
    """``exports/<artist> - <title>_<profile name>.<ext>`` with filesystem-unsafe characters replaced."""

    artist = _safe_component(metadata.artist, "Unknown Artist")
    title = _safe_component(metadata.title, "Untitled")
    profile_name = _safe_component(profile.name, profile.id)
    extension = profile.audio_spec.format.value
    return f"{EXPORT_DIRECTORY}/{artist} - {title}_{profile_name}.{extension}"


def estimate_file_size_bytes(profile: ExportProfile, frame_count: int, channel_count: int, duration_seconds: float) -> int:
    spec = profile.audio_spec
    if spec.format.value in PCM_FORMATS:
        return int(frame_count * channel_count * spec.bit_depth // 8)
    bitrate_kbps = spec.bitrate_kbps or 0
    return int(math.ceil(duration_seconds * bitrate_kbps * 1000 / 8))


def apply_fades(audio: np.ndarray, sample_rate: int, fade_in_seconds: float, fade_out_seconds: float) -> np.ndarray:
    """Linear fade in/out; fades longer than the buffer are truncated to it."""

    faded = audio.copy()
    frames = faded.shape[1]
    fade_in_frames = min(frames, int(round(fade_in_seconds * sample_rate)))
    fade_out_frames = min(frames, int(round(fade_out_seconds * sample_rate)))
    if fade_in_frames > 0:
        faded[:, :fade_in_frames] *= np.arange(fade_in_frames, dtype=np.float32) / fade_in_frames
    if fade_out_frames > 0:
        faded[:, frames - fade_out_frames :] *= np.arange(fade_out_frames - 1, -1, -1, dtype=np.float32) / fade_out_frames
    return faded


def normalize_peak(audio: np.ndarray, target_db: float, *, loudness_limit_lufs: float | None = None) -> np.ndarray:
    """Scale so the sample peak lands on ``target_db``.

    With ``loudness_limit_lufs`` a boost stops where the loudness estimate reaches
    that level, so normalising a mastered file never pushes it past its target.
    Attenuation is never capped.
    """

    peak = float(np.max(np.abs(audio))) if audio.size else 0.0
    if peak <= 0.0:
        return audio.copy()
    gain_db = target_db - linear_to_db(peak)
    if loudness_limit_lufs is not None:
        gain_db = min(gain_db, max(0.0, loudness_limit_lufs - estimate_loudness_lufs(audio)))
    return (audio * db_to_linear(gain_db)).astype(np.float32, copy=False)


def quantize(audio: np.ndarray, bit_depth: int) -> np.ndarray:
    """Round to the integer grid of ``bit_depth``; 32-bit output stays float."""

    if bit_depth >= FLOAT_BIT_DEPTH:
        return audio.astype(np.float32, copy=True)
    scale = float(2 ** (bit_depth - 1))
    quantized = np.round(audio.astype(np.float64) * scale)
    quantized = np.clip(quantized, -scale, scale - 1.0) / scale
    return quantized.astype(np.float32)


def check_metadata(metadata: ProjectMetadata, profile: ExportProfile, duration_seconds: float) -> tuple[str, ...]:
    """Warnings for metadata the target platform will reject or flag."""

    rules = profile.metadata_rules
    warnings: list[str] = []
    for field_name in rules.required_fields:
        value = getattr(metadata, field_name, None)
        if value is None or value == "" or value == ():
            warnings.append(f"Missing required metadata field '{field_name}' for {profile.name}.")
    if rules.artwork.required and not metadata.artwork:
        warnings.append(f"{profile.name} requires artwork.")

    limits = rules.duration
    if limits.min_seconds is not None and duration_seconds < limits.min_seconds:
        warnings.append(f"Duration {duration_seconds:.1f}s is shorter than the {limits.min_seconds:g}s minimum.")
    if limits.max_seconds is not None and duration_seconds > limits.max_seconds:
        warnings.append(f"Duration {duration_seconds:.1f}s exceeds the {limits.max_seconds:g}s maximum.")
    return tuple(warnings)


class Renderer:
    """Turns a mastered buffer into a delivery artifact for one profile."""

    def render(
        self,
        buffer: AudioBuffer,
        profile: ExportProfile,
        metadata: ProjectMetadata,
        settings: RenderSettings,
    ) -> RenderedArtifact:
        try:
            return self._render(buffer, profile, metadata, settings)
        except RenderError:
            raise
        except Exception as error:
            raise RenderError(profile.id, f"Rendering failed: {error}") from error

    def _render(
        self,
        buffer: AudioBuffer,
        profile: ExportProfile,
        metadata: ProjectMetadata,
        settings: RenderSettings,
    ) -> RenderedArtifact:
        spec = profile.audio_spec
        converted = convert_for_delivery(
            buffer,
            target_sample_rate_hz=spec.sample_rate_hz,
            target_channel_count=spec.channel_layout.channel_count,
        ).buffer
        sample_rate = converted.sample_rate_hz

        audio = apply_fades(converted.samples, sample_rate, settings.fade_in_seconds, settings.fade_out_seconds)
        if settings.normalize:
            audio = normalize_peak(
                audio,
                min(NORMALIZE_TARGET_DB, spec.peak_limit_db),
                loudness_limit_lufs=spec.loudness_target_lufs,
            )
        is_pcm = spec.format.value in PCM_FORMATS
        if is_pcm and settings.dithering and spec.bit_depth < FLOAT_BIT_DEPTH:
            audio = DitherProcessor(spec.bit_depth).process(audio, sample_rate)
        audio = soft_clip(audio, spec.peak_limit_db, LIMITER_KNEE_DB[LimiterStyle(settings.limiter_style)])
        if is_pcm:
            audio = quantize(audio, spec.bit_depth)

        rendered = AudioBuffer(samples=audio, sample_rate_hz=sample_rate)
        duration = rendered.duration_seconds
        artifact = RenderedArtifact(
            profile_id=profile.id,
            buffer=rendered,
            format=spec.format.value,
            bit_depth=spec.bit_depth,
            bitrate_kbps=spec.bitrate_kbps,
            artifact_path=artifact_name(metadata, profile),
            file_size_bytes=estimate_file_size_bytes(profile, rendered.frame_count, rendered.channel_count, duration),
            duration_seconds=duration,
            metadata_warnings=check_metadata(metadata, profile, duration),
        )
        LOGGER.debug(
            "profile_rendered",
            extra={"profile_id": profile.id, "artifact_path": artifact.artifact_path, "frames": rendered.frame_count},
        )
        return artifact
