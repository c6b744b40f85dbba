"""Export profile value objects.

Profiles are pure data: everything platform specific (EQ curve, shaping gain,
loudness target, delivery format) is a field here so processing code never
branches on a platform name.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from mixport.audio_contract import LOSSY_FORMATS
from mixport.mastering_options import AudioFormat, ChannelLayout, MasteringStyle


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class DynamicRangeRange(_FrozenModel):
    min_db: float = Field(..., ge=0.0)
    max_db: float = Field(..., ge=0.0)

    @model_validator(mode="after")
    def _check_order(self) -> "DynamicRangeRange":
        if self.min_db > self.max_db:
            raise ValueError("dynamic_range.min_db must be <= dynamic_range.max_db.")
        return self


class AudioSpec(_FrozenModel):
    sample_rate_hz: int = Field(..., ge=8_000, le=192_000)
    bit_depth: int = Field(..., ge=8, le=32)
    format: AudioFormat
    bitrate_kbps: int | None = Field(None, gt=0)
    channel_layout: ChannelLayout = ChannelLayout.STEREO
    loudness_target_lufs: float = Field(..., le=0.0)
    peak_limit_db: float = Field(..., le=0.0)
    dynamic_range: DynamicRangeRange

    @model_validator(mode="after")
    def _check_bitrate(self) -> "AudioSpec":
        if self.format.value in LOSSY_FORMATS and self.bitrate_kbps is None:
            raise ValueError(f"{self.format.value} profiles require bitrate_kbps.")
        return self


class ArtworkRules(_FrozenModel):
    required: bool = False
    width: int | None = Field(None, gt=0)
    height: int | None = Field(None, gt=0)
    formats: tuple[str, ...] = ()
    max_file_size_bytes: int | None = Field(None, gt=0)


class DurationLimits(_FrozenModel):
    min_seconds: float | None = Field(None, ge=0.0)
    max_seconds: float | None = Field(None, gt=0.0)
    recommended_seconds: float | None = Field(None, gt=0.0)


class MetadataRules(_FrozenModel):
    required_fields: tuple[str, ...] = ("title", "artist")
    artwork: ArtworkRules = ArtworkRules()
    duration: DurationLimits = DurationLimits()
    tags: tuple[str, ...] = ()


class EnhancementFlags(_FrozenModel):
    stereo_widen: bool = False
    harmonic_excite: bool = False
    spectral_shape: bool = False

    @property
    def any_enabled(self) -> bool:
        return self.stereo_widen or self.harmonic_excite or self.spectral_shape


class AIOptimizations(_FrozenModel):
    mastering_enabled: bool = True
    mastering_style: MasteringStyle = MasteringStyle.STREAMING
    enhancement_flags: EnhancementFlags = EnhancementFlags()
    stereo_width_factor: float = Field(1.3, gt=0.0, le=3.0)
    excitation_drive: float = Field(1.5, gt=0.0, le=10.0)
    excitation_mix: float = Field(0.8, ge=0.0, le=1.0)


class PlatformEqCurve(_FrozenModel):
    """Linear gain multipliers for the low/mid/high regions of the platform EQ."""

    low_gain: float = Field(1.0, gt=0.0, le=4.0)
    mid_gain: float = Field(1.0, gt=0.0, le=4.0)
    high_gain: float = Field(1.0, gt=0.0, le=4.0)


class ExportProfile(_FrozenModel):
    """Immutable bundle of a target platform's delivery requirements."""

    id: str = Field(..., min_length=1)
    name: str
    platform: str
    version: str = "v1"
    audio_spec: AudioSpec
    metadata_rules: MetadataRules = MetadataRules()
    ai_optimizations: AIOptimizations = AIOptimizations()
    platform_eq: PlatformEqCurve = PlatformEqCurve()
    spectral_shaping_gain: float = Field(1.0, gt=0.0, le=4.0)

    @field_validator("id", "platform")
    @classmethod
    def _normalize_key(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("must not be blank")
        return normalized


class ProfileCatalog(BaseModel):
    """On-disk layout of a profile catalog file."""

    profiles: list[ExportProfile]

    @model_validator(mode="after")
    def _check_unique_ids(self) -> "ProfileCatalog":
        seen: set[str] = set()
        duplicates = []
        for profile in self.profiles:
            if profile.id in seen:
                duplicates.append(profile.id)
            seen.add(profile.id)
        if duplicates:
            raise ValueError(f"Duplicate profile ids: {', '.join(sorted(set(duplicates)))}")
        return self
