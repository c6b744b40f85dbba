import numpy as np
import pytest

from mixport.analysis import (
    QualityAnalyzer,
    analyze,
    build_recommendations,
    measure_bs1770_lufs,
    spectral_balance,
    stereo_figures,
)
from mixport.audio_contract import AudioBuffer


@pytest.mark.parametrize(
    ("frequency_hz", "band"),
    [(100.0, "bass"), (1_000.0, "mid"), (3_000.0, "treble"), (5_000.0, "presence"), (10_000.0, "brilliance")],
)
def test_single_tone_energy_lands_in_its_band(make_tone, frequency_hz, band):
    buffer = make_tone(frequency_hz)

    balance = spectral_balance(buffer.samples, buffer.sample_rate_hz)

    assert getattr(balance, band) > 0.9


def test_spectral_balance_sums_to_one(stereo_mix):
    balance = spectral_balance(stereo_mix.samples, stereo_mix.sample_rate_hz)

    total = balance.bass + balance.mid + balance.treble + balance.presence + balance.brilliance
    assert total == pytest.approx(1.0)


def test_silence_reports_zero_balance_and_no_bs1770():
    silent = AudioBuffer(samples=np.zeros((2, 44_100), dtype=np.float32), sample_rate_hz=44_100)

    report = QualityAnalyzer().analyze(silent)

    balance = report.metrics.spectral_balance
    assert (balance.bass, balance.mid, balance.treble, balance.presence, balance.brilliance) == (0.0,) * 5
    assert report.metrics.integrated_lufs_bs1770 is None
    assert report.metrics.phase_ok
    assert any("quiet" in item for item in report.recommendations)


def test_inverted_channels_flag_phase_problem(make_tone):
    buffer = make_tone(440.0)
    inverted = buffer.with_samples(np.stack((buffer.samples[0], -buffer.samples[0])))

    width, correlation = stereo_figures(inverted.samples)
    report = analyze(inverted)

    assert correlation == pytest.approx(-1.0)
    assert width > 1.0
    assert not report.metrics.phase_ok
    assert any("out of phase" in item for item in report.recommendations)


def test_identical_channels_are_narrow_and_correlated(make_tone):
    width, correlation = stereo_figures(make_tone(440.0).samples)

    assert width == pytest.approx(0.0, abs=1e-6)
    assert correlation == pytest.approx(1.0)


def test_mono_input_reads_as_centered(make_tone):
    assert stereo_figures(make_tone(440.0, channels=1).samples) == (0.0, 1.0)


def test_bs1770_needs_at_least_400ms(make_tone):
    short = make_tone(440.0, seconds=0.2)
    long = make_tone(440.0, seconds=1.0)

    assert measure_bs1770_lufs(short.samples, short.sample_rate_hz) is None
    assert measure_bs1770_lufs(long.samples, long.sample_rate_hz) < 0.0


def test_metrics_follow_rms_estimate(make_tone):
    report = analyze(make_tone(440.0, amplitude=0.5))

    # RMS of a 0.5 sine is -9.03 dB; minus 0.691.
    assert report.metrics.lufs == pytest.approx(-9.72, abs=0.05)
    assert report.metrics.peak_db == pytest.approx(-6.02, abs=0.05)
    assert report.metrics.dynamic_range_db == pytest.approx(report.metrics.peak_db - report.metrics.lufs)


def test_recommendations_compare_against_profile(registry, make_tone):
    quiet = analyze(make_tone(440.0, amplitude=0.02), registry.get("spotify_hq"))

    assert any("below the Spotify High Quality target" in item for item in quiet.recommendations)


def test_recommendations_flag_loud_and_clipping(make_tone):
    metrics = analyze(make_tone(440.0, amplitude=1.0)).metrics

    recommendations = build_recommendations(metrics)

    assert any("very loud" in item for item in recommendations)
    assert any("clipping" in item for item in recommendations)
    assert any("narrow" in item for item in recommendations)
