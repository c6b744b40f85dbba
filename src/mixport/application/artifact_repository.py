"""Application port for persisting rendered export artifacts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from mixport.rendering import RenderedArtifact


@dataclass(frozen=True, slots=True)
class PersistedArtifact:
    """Result of an artifact persistence request."""

    status: str
    object_url: str | None = None
    destination: str | None = None


class ArtifactRepository(Protocol):
    """Port implemented by infrastructure adapters for artifact persistence."""

    def persist(self, artifact: RenderedArtifact) -> PersistedArtifact:
        """Persist a rendered artifact and return persistence metadata."""


class ArtifactPersistenceError(RuntimeError):
    """Raised when a rendered artifact cannot be encoded or stored."""
