import numpy as np
import pytest

from mixport.domain.errors import DSPProcessingError
from mixport.domain.profiles import AIOptimizations
from mixport.domain.services import estimate_loudness_lufs, peak_dbfs
from mixport.processing import (
    COMPRESSION_TUNINGS,
    MasteringPipeline,
    apply_platform_eq,
    build_mastering_chain,
    compress_dynamics,
    normalize_loudness,
    normalize_under_ceiling,
    resolve_compression_tuning,
    soft_limit,
)
from mixport.processor.compressor import CompressorProcessor
from mixport.processor.enhancers import SpectralShaperProcessor
from mixport.mastering_options import MasteringStyle


def test_every_mastering_style_has_a_tuning():
    assert set(COMPRESSION_TUNINGS) == set(MasteringStyle)
    assert resolve_compression_tuning("commercial").ratio == 4.0
    assert resolve_compression_tuning(MasteringStyle.STREAMING).threshold_db == -16.0


def test_chain_order_for_profile_with_enhancements(registry):
    names = [name for name, _ in build_mastering_chain(registry.get("spotify_hq"))]

    assert names == [
        "platform_eq",
        "compression",
        "loudness",
        "stereo_widen",
        "spectral_shape",
        "enhancement_trim",
    ]


def test_chain_without_enhancements_ends_at_loudness(registry):
    names = [name for name, _ in build_mastering_chain(registry.get("bandcamp_lossless"))]

    assert names == ["platform_eq", "compression", "loudness"]


def test_pipeline_is_deterministic(registry, stereo_mix):
    pipeline = MasteringPipeline()
    profile = registry.get("youtube_music")

    first = pipeline.process(stereo_mix, profile)
    second = pipeline.process(stereo_mix, profile)

    assert np.array_equal(first.samples, second.samples)


def test_pipeline_does_not_mutate_input(registry, stereo_mix):
    original = stereo_mix.samples.copy()

    MasteringPipeline().process(stereo_mix, registry.get("tiktok_optimized"))

    assert np.array_equal(stereo_mix.samples, original)


@pytest.mark.parametrize("profile_id", ["spotify_hq", "tiktok_optimized", "apple_music_mastered", "instagram_reels"])
def test_pipeline_hits_target_under_ceiling(registry, stereo_mix, profile_id):
    profile = registry.get(profile_id)

    mastered = MasteringPipeline().process(stereo_mix, profile)

    assert estimate_loudness_lufs(mastered.samples) == pytest.approx(profile.audio_spec.loudness_target_lufs, abs=1.0)
    assert peak_dbfs(mastered.samples) < profile.audio_spec.peak_limit_db


def test_disabled_mastering_returns_unmodified_copy(registry, stereo_mix):
    profile = registry.get("spotify_hq").model_copy(
        update={"ai_optimizations": AIOptimizations(mastering_enabled=False)}
    )

    mastered = MasteringPipeline().process(stereo_mix, profile)

    assert np.array_equal(mastered.samples, stereo_mix.samples)
    assert mastered.samples is not stereo_mix.samples


def test_stage_failure_is_wrapped_with_stage_name(monkeypatch, registry, stereo_mix):
    def boom(self, audio, sample_rate):
        raise RuntimeError("detector exploded")

    monkeypatch.setattr(CompressorProcessor, "process", boom)

    with pytest.raises(DSPProcessingError) as excinfo:
        MasteringPipeline().process(stereo_mix, registry.get("spotify_hq"))

    assert excinfo.value.profile_id == "spotify_hq"
    assert "compression" in excinfo.value.message
    assert "detector exploded" in excinfo.value.message


def test_non_finite_stage_output_is_rejected(monkeypatch, registry, stereo_mix):
    monkeypatch.setattr(
        SpectralShaperProcessor,
        "process",
        lambda self, audio, sample_rate: np.full_like(audio, np.nan),
    )

    with pytest.raises(DSPProcessingError, match="spectral_shape"):
        MasteringPipeline().process(stereo_mix, registry.get("spotify_hq"))


def test_transient_source_reaches_target_without_enhancements(registry, click_mix):
    profile = registry.get("bandcamp_lossless")

    mastered = MasteringPipeline().process(click_mix, profile)

    assert estimate_loudness_lufs(mastered.samples) == pytest.approx(-14.0, abs=0.25)
    assert peak_dbfs(mastered.samples) < profile.audio_spec.peak_limit_db


def test_pipeline_masters_at_the_delivery_rate(registry, stereo_mix):
    profile = registry.get("apple_music_mastered")

    mastered = MasteringPipeline().process(stereo_mix, profile)

    assert mastered.sample_rate_hz == 96_000
    assert mastered.channel_count == 2
    assert mastered.duration_seconds == pytest.approx(stereo_mix.duration_seconds, abs=1e-3)


def test_disabled_mastering_keeps_the_source_rate(registry, stereo_mix):
    profile = registry.get("apple_music_mastered").model_copy(
        update={"ai_optimizations": AIOptimizations(mastering_enabled=False)}
    )

    assert MasteringPipeline().process(stereo_mix, profile).sample_rate_hz == 44_100


def test_stage_functions_run_standalone(registry, click_mix):
    profile = registry.get("bandcamp_lossless")
    audio, rate = click_mix.samples, click_mix.sample_rate_hz

    equalized = apply_platform_eq(audio, rate, profile)
    compressed = compress_dynamics(equalized, rate, "commercial")
    once = soft_limit(normalize_loudness(compressed, rate, -14.0), rate, -1.0)
    converged = normalize_under_ceiling(compressed, rate, -14.0, -1.0)

    assert equalized.shape == compressed.shape == audio.shape
    assert abs(estimate_loudness_lufs(converged) + 14.0) < abs(estimate_loudness_lufs(once) + 14.0)
    assert peak_dbfs(converged) < -1.0
