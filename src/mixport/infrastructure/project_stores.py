"""Project store adapters supplying source mixes by project id."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

import soundfile as sf

from mixport.audio_contract import ACCEPTED_SOURCE_EXTENSIONS, AudioBuffer, AudioContractError
from mixport.domain.errors import ProjectLoadError
from mixport.io.audio_file import read_audio

logger = logging.getLogger(__name__)


class InMemoryProjectStore:
    """Thread-safe dict of project id to source buffer."""

    def __init__(self, projects: dict[str, AudioBuffer] | None = None) -> None:
        self._lock = threading.Lock()
        self._projects: dict[str, AudioBuffer] = dict(projects or {})

    def put(self, project_id: str, buffer: AudioBuffer) -> None:
        with self._lock:
            self._projects[project_id] = buffer

    def load_audio(self, project_id: str) -> AudioBuffer:
        with self._lock:
            buffer = self._projects.get(project_id)
        if buffer is None:
            raise ProjectLoadError(f"Project '{project_id}' not found.")
        return buffer.copy()


@dataclass(frozen=True, slots=True)
class FilesystemProjectStore:
    """Resolve ``<root>/<project_id>.<ext>`` and decode it with soundfile."""

    root: Path

    def resolve(self, project_id: str) -> Path:
        if not project_id or Path(project_id).name != project_id or project_id in {".", ".."}:
            raise ProjectLoadError(f"Invalid project id '{project_id}'.")
        for extension in ACCEPTED_SOURCE_EXTENSIONS:
            candidate = self.root / f"{project_id}{extension}"
            if candidate.is_file():
                return candidate
        raise ProjectLoadError(f"Project '{project_id}' not found under {self.root}.")

    def load_audio(self, project_id: str) -> AudioBuffer:
        path = self.resolve(project_id)
        try:
            samples, sample_rate = read_audio(path)
            buffer = AudioBuffer(samples=samples, sample_rate_hz=sample_rate)
        except (sf.LibsndfileError, RuntimeError, AudioContractError) as error:
            raise ProjectLoadError(f"Could not decode '{path.name}': {error}") from error
        logger.info(
            "project_audio_loaded",
            extra={"project_id": project_id, "path": str(path), "frames": buffer.frame_count},
        )
        return buffer
