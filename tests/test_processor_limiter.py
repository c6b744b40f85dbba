import numpy as np
import pytest

from mixport.processor.limiter import SoftLimiterProcessor, soft_clip


def test_soft_clip_stays_below_ceiling():
    audio = np.array([-2.0, -0.25, 0.25, 2.0], dtype=np.float32)

    processed = soft_clip(audio, ceiling_db=-6.0)
    ceiling = 10 ** (-6.0 / 20.0)

    assert np.max(np.abs(processed)) < ceiling


def test_soft_clip_passes_samples_below_knee():
    audio = np.array([-0.25, 0.1, 0.25], dtype=np.float32)

    processed = soft_clip(audio, ceiling_db=-1.0, knee_db=1.0)

    assert np.array_equal(processed, audio)
    assert processed is not audio


def test_soft_clip_preserves_sign_and_order():
    audio = np.linspace(-3.0, 3.0, 101, dtype=np.float32)

    processed = soft_clip(audio, ceiling_db=0.0)

    assert np.all(np.sign(processed) == np.sign(audio))
    assert np.all(np.diff(processed) >= 0.0)


def test_soft_clip_rejects_non_positive_knee():
    with pytest.raises(ValueError):
        soft_clip(np.zeros(4, dtype=np.float32), ceiling_db=-1.0, knee_db=0.0)


def test_limiter_processor_rejects_positive_ceiling():
    with pytest.raises(ValueError):
        SoftLimiterProcessor(ceiling_db=1.0)


def test_limiter_processor_handles_channel_first_audio(sine_wave):
    audio = np.stack((sine_wave["loud"], -sine_wave["loud"])) * 4.0
    limiter = SoftLimiterProcessor(ceiling_db=-1.0)

    processed = limiter.process(audio, sine_wave["sample_rate"])

    assert processed.shape == audio.shape
    assert processed.dtype == np.float32
    assert np.max(np.abs(processed)) < 10 ** (-1.0 / 20.0)
