from __future__ import annotations

import io
from pathlib import Path

import numpy as np
import soundfile as sf


def read_audio(path: Path) -> tuple[np.ndarray, int]:
    """Read any libsndfile-supported file as channel-first float32."""

    audio, sample_rate = sf.read(path, dtype="float32", always_2d=True)
    return np.ascontiguousarray(audio.T), int(sample_rate)


def write_audio(path: Path, audio: np.ndarray, sample_rate: int) -> None:
    sf.write(path, np.asarray(audio).T, samplerate=sample_rate, subtype="FLOAT")


def decode_audio_bytes(payload: bytes) -> tuple[np.ndarray, int]:
    """Decode an uploaded file held in memory as channel-first float32."""

    audio, sample_rate = sf.read(io.BytesIO(payload), dtype="float32", always_2d=True)
    return np.ascontiguousarray(audio.T), int(sample_rate)
