"""Application port for loading project source audio."""

from __future__ import annotations

from typing import Protocol

from mixport.audio_contract import AudioBuffer


class ProjectStore(Protocol):
    """Supplies the finished mix for a project id."""

    def load_audio(self, project_id: str) -> AudioBuffer:
        """Return the project's source audio or raise ``ProjectLoadError``."""
