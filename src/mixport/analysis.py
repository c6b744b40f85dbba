"""Quality scoring for rendered exports."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pyloudnorm as pyln

from .audio_contract import AudioBuffer
from .domain.models import QualityMetrics, SpectralBalance
from .domain.profiles import ExportProfile
from .domain.services import estimate_loudness_lufs, peak_dbfs

_SPECTRUM_FRAME_SIZE = 4096
_SPECTRUM_MAX_FRAMES = 64
# Upper band edges in Hz: bass, mid, treble, presence; brilliance takes the rest.
_BAND_EDGES_HZ = (250.0, 2_000.0, 4_000.0, 6_000.0)
_BS1770_MIN_SECONDS = 0.4

TOO_LOUD_LUFS = -6.0
TOO_QUIET_LUFS = -25.0
OVER_COMPRESSED_DR_DB = 4.0
CLIPPING_RISK_PEAK_DB = -0.1
TARGET_TOLERANCE_DB = 1.0
WEAK_BASS_RATIO = 0.05
DULL_HIGHS_RATIO = 0.01


@dataclass(frozen=True, slots=True)
class QualityReport:
    """Metrics plus human-readable recommendations."""

    metrics: QualityMetrics
    recommendations: tuple[str, ...]


def _mono(audio: np.ndarray) -> np.ndarray:
    return np.mean(audio, axis=0, dtype=np.float64)


def _average_power_spectrum(mono: np.ndarray) -> np.ndarray:
    """Hann-windowed power spectrum averaged over evenly spaced frames."""

    if mono.size < _SPECTRUM_FRAME_SIZE:
        padded = np.zeros(_SPECTRUM_FRAME_SIZE, dtype=np.float64)
        padded[: mono.size] = mono
        frames = padded[np.newaxis, :]
    else:
        last_start = mono.size - _SPECTRUM_FRAME_SIZE
        frame_count = min(_SPECTRUM_MAX_FRAMES, last_start // _SPECTRUM_FRAME_SIZE + 1)
        starts = np.linspace(0, last_start, num=frame_count).astype(np.int64)
        frames = np.stack([mono[start : start + _SPECTRUM_FRAME_SIZE] for start in starts])

    window = np.hanning(_SPECTRUM_FRAME_SIZE)
    spectra = np.abs(np.fft.rfft(frames * window, axis=1)) ** 2
    return np.mean(spectra, axis=0)


def spectral_balance(audio: np.ndarray, sample_rate: int) -> SpectralBalance:
    """Share of spectral energy per band; all zeros for silent input."""

    if audio.size == 0:
        return SpectralBalance(0.0, 0.0, 0.0, 0.0, 0.0)

    power = _average_power_spectrum(_mono(audio))
    freqs = np.fft.rfftfreq(_SPECTRUM_FRAME_SIZE, d=1.0 / sample_rate)
    total = float(np.sum(power))
    if total <= 0.0:
        return SpectralBalance(0.0, 0.0, 0.0, 0.0, 0.0)

    lower = 0.0
    ratios: list[float] = []
    for upper in _BAND_EDGES_HZ:
        mask = (freqs >= lower) & (freqs < upper)
        ratios.append(float(np.sum(power[mask])) / total)
        lower = upper
    ratios.append(float(np.sum(power[freqs >= lower])) / total)
    return SpectralBalance(*ratios)


def stereo_figures(audio: np.ndarray) -> tuple[float, float]:
    """Return ``(width, correlation)``; mono or silent input reads as (0.0, 1.0)."""

    if audio.shape[0] < 2 or audio.shape[1] == 0:
        return 0.0, 1.0

    left = audio[0].astype(np.float64, copy=False)
    right = audio[1].astype(np.float64, copy=False)
    mid = (left + right) / 2.0
    side = (left - right) / 2.0
    mid_rms = float(np.sqrt(np.mean(np.square(mid))))
    side_rms = float(np.sqrt(np.mean(np.square(side))))
    width = side_rms / (mid_rms + 1e-10)

    left_centered = left - np.mean(left)
    right_centered = right - np.mean(right)
    denominator = float(np.sqrt(np.sum(left_centered**2) * np.sum(right_centered**2)))
    correlation = float(np.sum(left_centered * right_centered) / denominator) if denominator > 0.0 else 1.0
    return width, correlation


def measure_bs1770_lufs(audio: np.ndarray, sample_rate: int) -> float | None:
    """Gated integrated loudness via pyloudnorm, or ``None`` when too short or silent."""

    if audio.shape[1] / float(sample_rate) < _BS1770_MIN_SECONDS:
        return None
    meter = pyln.Meter(sample_rate)
    measured = float(meter.integrated_loudness(np.moveaxis(audio, 0, -1).astype(np.float64, copy=False)))
    if not np.isfinite(measured):
        return None
    return measured


def analyze_metrics(buffer: AudioBuffer) -> QualityMetrics:
    audio = buffer.samples
    lufs = estimate_loudness_lufs(audio)
    peak_db = peak_dbfs(audio)
    width, correlation = stereo_figures(audio)
    return QualityMetrics(
        lufs=lufs,
        peak_db=peak_db,
        dynamic_range_db=peak_db - lufs,
        spectral_balance=spectral_balance(audio, buffer.sample_rate_hz),
        stereo_width=width,
        phase_correlation=correlation,
        phase_ok=correlation >= 0.0,
        integrated_lufs_bs1770=measure_bs1770_lufs(audio, buffer.sample_rate_hz),
    )


def build_recommendations(metrics: QualityMetrics, profile: ExportProfile | None = None) -> tuple[str, ...]:
    recommendations: list[str] = []
    if metrics.lufs > TOO_LOUD_LUFS:
        recommendations.append("Audio is very loud; reduce the overall level to avoid listener fatigue.")
    elif metrics.lufs < TOO_QUIET_LUFS:
        recommendations.append("Audio is very quiet; raise the overall level.")
    if metrics.dynamic_range_db < OVER_COMPRESSED_DR_DB:
        recommendations.append("Dynamic range is narrow; the mix may be over-compressed.")
    if metrics.peak_db > CLIPPING_RISK_PEAK_DB:
        recommendations.append("Peaks are close to 0 dBFS; there is a risk of clipping after encoding.")

    if profile is not None:
        spec = profile.audio_spec
        delta = metrics.lufs - spec.loudness_target_lufs
        if abs(delta) > TARGET_TOLERANCE_DB:
            direction = "above" if delta > 0 else "below"
            recommendations.append(
                f"Loudness is {abs(delta):.1f} dB {direction} the {profile.name} target of {spec.loudness_target_lufs:g} LUFS."
            )
        dynamic_range = spec.dynamic_range
        if not dynamic_range.min_db <= metrics.dynamic_range_db <= dynamic_range.max_db:
            recommendations.append(
                f"Dynamic range {metrics.dynamic_range_db:.1f} dB is outside the {profile.name} range "
                f"of {dynamic_range.min_db:g}-{dynamic_range.max_db:g} dB."
            )

    balance = metrics.spectral_balance
    has_energy = (balance.bass + balance.mid + balance.treble + balance.presence + balance.brilliance) > 0.0
    if has_energy and balance.bass < WEAK_BASS_RATIO:
        recommendations.append("Low end is weak; consider reinforcing bass below 250 Hz.")
    if has_energy and balance.brilliance < DULL_HIGHS_RATIO:
        recommendations.append("High frequencies are dull; consider adding air above 6 kHz.")
    if not metrics.phase_ok:
        recommendations.append("Left and right channels are out of phase; check mono compatibility.")
    return tuple(recommendations)


class QualityAnalyzer:
    """Scores a buffer, optionally against a profile's targets."""

    def analyze(self, buffer: AudioBuffer, profile: ExportProfile | None = None) -> QualityReport:
        metrics = analyze_metrics(buffer)
        return QualityReport(metrics=metrics, recommendations=build_recommendations(metrics, profile))


def analyze(buffer: AudioBuffer, profile: ExportProfile | None = None) -> QualityReport:
    return QualityAnalyzer().analyze(buffer, profile)
