"""Audio encode adapters backed by pedalboard."""

from __future__ import annotations

import io
from pathlib import Path

import numpy as np
from pedalboard.io import AudioFile

from mixport.audio_contract import PCM_FORMATS

CONTENT_TYPES: dict[str, str] = {
    "wav": "audio/wav",
    "flac": "audio/flac",
    "aiff": "audio/aiff",
    "mp3": "audio/mpeg",
    "aac": "audio/aac",
    "ogg": "audio/ogg",
}


def _writer_options(audio_format: str, bit_depth: int, bitrate_kbps: int | None) -> dict[str, object]:
    if audio_format in PCM_FORMATS:
        return {"bit_depth": bit_depth}
    if bitrate_kbps is not None and audio_format == "mp3":
        return {"quality": f"{bitrate_kbps} kbps"}
    return {}


def write_audio_file(
    path: Path,
    audio: np.ndarray,
    sample_rate: int,
    *,
    bit_depth: int = 16,
    bitrate_kbps: int | None = None,
) -> None:
    """Encode audio to ``path``; the container follows the file extension."""

    audio_format = path.suffix.lstrip(".").lower()
    options = _writer_options(audio_format, bit_depth, bitrate_kbps)
    with AudioFile(str(path), "w", sample_rate, audio.shape[0], **options) as output_file:
        output_file.write(audio)


def encode_audio_bytes(
    audio: np.ndarray,
    sample_rate: int,
    audio_format: str,
    *,
    bit_depth: int = 16,
    bitrate_kbps: int | None = None,
) -> bytes:
    """Encode audio to an in-memory container of ``audio_format``."""

    buffer = io.BytesIO()
    options = _writer_options(audio_format, bit_depth, bitrate_kbps)
    with AudioFile(buffer, "w", sample_rate, audio.shape[0], format=audio_format, **options) as output_file:
        output_file.write(audio)
    return buffer.getvalue()


def load_audio_file(path: Path) -> tuple[np.ndarray, int]:
    """Read an encoded artifact back as channel-first float32."""

    with AudioFile(str(path), "r") as audio_file:
        return audio_file.read(audio_file.frames), int(audio_file.samplerate)
