"""Infrastructure adapters for rendered artifact persistence."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from mixport.application.artifact_repository import ArtifactPersistenceError, PersistedArtifact
from mixport.infrastructure.pedalboard_codec import CONTENT_TYPES, encode_audio_bytes, write_audio_file
from mixport.rendering import RenderedArtifact
from mixport.storage import StorageWriteError, store_export_artifact

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DeferredArtifactRepository:
    """Adapter that hands persistence to a downstream queue and returns immediately."""

    queue_name: str = "export-artifacts"

    def persist(self, artifact: RenderedArtifact) -> PersistedArtifact:
        logger.info(
            "export_artifact_deferred",
            extra={
                "queue_name": self.queue_name,
                "artifact_path": artifact.artifact_path,
                "format": artifact.format,
                "file_size_bytes": artifact.file_size_bytes,
            },
        )
        return PersistedArtifact(status="deferred", destination=f"queue://{self.queue_name}/{artifact.artifact_path}")


@dataclass(frozen=True, slots=True)
class FilesystemArtifactRepository:
    """Encode artifacts with pedalboard under ``root``.

    Each write goes to a uniquely named sibling file that then replaces the
    destination, so jobs sharing an artifact name never interleave bytes in one
    file; the last finished write wins.
    """

    root: Path

    def persist(self, artifact: RenderedArtifact) -> PersistedArtifact:
        destination = self.root / artifact.artifact_path
        staging = destination.with_name(f".{destination.stem}.{uuid4().hex}{destination.suffix}")
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            write_audio_file(
                staging,
                artifact.buffer.samples,
                artifact.buffer.sample_rate_hz,
                bit_depth=artifact.bit_depth,
                bitrate_kbps=artifact.bitrate_kbps,
            )
            staging.replace(destination)
        except (OSError, ValueError, RuntimeError) as error:
            if staging.exists():
                staging.unlink()
            raise ArtifactPersistenceError(f"Could not write {destination}: {error}") from error
        return PersistedArtifact(status="stored", destination=str(destination))


@dataclass(frozen=True, slots=True)
class MinIOArtifactRepository:
    """Adapter that persists encoded artifacts to S3-compatible object storage."""

    def persist(self, artifact: RenderedArtifact) -> PersistedArtifact:
        try:
            audio_bytes = encode_audio_bytes(
                artifact.buffer.samples,
                artifact.buffer.sample_rate_hz,
                artifact.format,
                bit_depth=artifact.bit_depth,
                bitrate_kbps=artifact.bitrate_kbps,
            )
            object_url = store_export_artifact(
                object_name=artifact.artifact_path,
                audio_bytes=audio_bytes,
                content_type=CONTENT_TYPES.get(artifact.format, "application/octet-stream"),
            )
        except (StorageWriteError, ValueError, RuntimeError) as error:
            raise ArtifactPersistenceError(str(error)) from error
        if object_url:
            return PersistedArtifact(status="stored", object_url=object_url, destination=artifact.artifact_path)
        return PersistedArtifact(status="skipped", destination=artifact.artifact_path)
