"""Sample-rate and channel-layout conversion to a profile's delivery format.

The mastering pipeline converts the source here before any gain staging, so the
loudness it sets survives delivery; the renderer converts again, which is a
no-op for mastered audio and formats buffers that skipped mastering:

* Sample rate: linear interpolation to ``target_sample_rate_hz``. Linear
  interpolation never produces a sample larger than its neighbours, so a peak
  ceiling established upstream still holds after conversion.
* Channel policy: mono -> stereo duplicates the channel; stereo -> mono averages
  left/right equally; wider sources are truncated or padded with the last channel.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .audio_contract import AudioBuffer


@dataclass(frozen=True, slots=True)
class ConversionResult:
    """Converted buffer plus what was changed to get there."""

    buffer: AudioBuffer
    resampled: bool
    channels_remapped: bool


def _resample_linear(audio: np.ndarray, source_rate_hz: int, target_rate_hz: int) -> np.ndarray:
    if source_rate_hz <= 0 or target_rate_hz <= 0:
        raise ValueError("Sample rate must be a positive integer.")
    if source_rate_hz == target_rate_hz:
        return audio

    source_frames = audio.shape[1]
    if source_frames == 0:
        return np.zeros((audio.shape[0], 0), dtype=np.float32)

    target_frames = max(1, int(round(source_frames * target_rate_hz / source_rate_hz)))
    source_positions = np.arange(source_frames, dtype=np.float64) / source_rate_hz
    target_positions = np.arange(target_frames, dtype=np.float64) / target_rate_hz

    resampled = np.empty((audio.shape[0], target_frames), dtype=np.float32)
    for idx in range(audio.shape[0]):
        resampled[idx] = np.interp(target_positions, source_positions, audio[idx]).astype(np.float32, copy=False)
    return resampled


def _convert_channel_layout(audio: np.ndarray, target_channel_count: int) -> np.ndarray:
    current_channels = audio.shape[0]
    if current_channels == target_channel_count:
        return audio

    if target_channel_count == 1:
        return np.mean(audio, axis=0, keepdims=True, dtype=np.float32)

    if current_channels == 1:
        return np.repeat(audio, repeats=target_channel_count, axis=0)

    if current_channels > target_channel_count:
        return audio[:target_channel_count]

    repeats = target_channel_count - current_channels
    return np.concatenate((audio, np.repeat(audio[-1:], repeats=repeats, axis=0)), axis=0)


def convert_for_delivery(
    buffer: AudioBuffer,
    *,
    target_sample_rate_hz: int,
    target_channel_count: int,
) -> ConversionResult:
    """Convert a buffer to the delivery sample rate and channel count."""

    resampled_audio = _resample_linear(buffer.samples, buffer.sample_rate_hz, target_sample_rate_hz)
    channel_mapped_audio = _convert_channel_layout(resampled_audio, target_channel_count)

    return ConversionResult(
        buffer=AudioBuffer(samples=channel_mapped_audio.astype(np.float32, copy=False), sample_rate_hz=target_sample_rate_hz),
        resampled=buffer.sample_rate_hz != target_sample_rate_hz,
        channels_remapped=buffer.channel_count != target_channel_count,
    )
