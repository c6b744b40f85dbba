import numpy as np

from mixport.processor.dither import DitherProcessor
from mixport.processor.enhancers import HarmonicExciterProcessor, SpectralShaperProcessor, StereoWidenerProcessor


def test_widener_leaves_centered_signal_unchanged(sine_wave):
    audio = np.stack((sine_wave["quiet"], sine_wave["quiet"])).astype(np.float32)

    processed = StereoWidenerProcessor(width_factor=1.5).process(audio, sine_wave["sample_rate"])

    assert np.allclose(processed, audio, atol=1e-6)


def test_widener_scales_side_signal():
    audio = np.array([[0.5, 0.2], [0.1, 0.2]], dtype=np.float32)

    processed = StereoWidenerProcessor(width_factor=2.0).process(audio, 44_100)

    side_before = (audio[0] - audio[1]) / 2.0
    side_after = (processed[0] - processed[1]) / 2.0
    assert np.allclose(side_after, side_before * 2.0)
    assert np.allclose(processed[0] + processed[1], audio[0] + audio[1])


def test_widener_ignores_mono():
    audio = np.array([[0.1, -0.1, 0.3]], dtype=np.float32)

    processed = StereoWidenerProcessor().process(audio, 44_100)

    assert np.array_equal(processed, audio)


def test_exciter_with_zero_mix_is_dry():
    audio = np.array([[0.5, -0.5, 0.9]], dtype=np.float32)

    processed = HarmonicExciterProcessor(drive=3.0, mix=0.0).process(audio, 44_100)

    assert np.allclose(processed, audio)


def test_exciter_saturates_with_full_mix():
    audio = np.array([[2.0, -2.0]], dtype=np.float32)

    processed = HarmonicExciterProcessor(drive=1.0, mix=1.0).process(audio, 44_100)

    assert np.allclose(processed, np.tanh(audio))


def test_spectral_shaper_applies_gain():
    audio = np.array([[0.1, -0.2]], dtype=np.float32)

    processed = SpectralShaperProcessor(gain=1.5).process(audio, 44_100)

    assert np.allclose(processed, audio * 1.5)


def test_dither_is_deterministic_and_bounded(sine_wave):
    audio = np.stack((sine_wave["quiet"], sine_wave["quiet"])).astype(np.float32)
    dither = DitherProcessor(bit_depth=16)

    first = dither.process(audio, sine_wave["sample_rate"])
    second = dither.process(audio, sine_wave["sample_rate"])

    assert np.array_equal(first, second)
    assert np.max(np.abs(first - audio)) <= dither.step
    assert not np.array_equal(first, audio)


def test_dither_seed_changes_noise():
    audio = np.zeros((1, 1024), dtype=np.float32)

    assert not np.array_equal(
        DitherProcessor(16, seed=1).process(audio, 44_100),
        DitherProcessor(16, seed=2).process(audio, 44_100),
    )
