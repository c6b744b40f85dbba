"""CLI-facing handlers that delegate to the export service."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from mixport.analysis import QualityAnalyzer, QualityReport
from mixport.application.export_service import ExportService
from mixport.audio_contract import AudioBuffer
from mixport.domain.models import JobSnapshot, ProjectMetadata, RenderSettings
from mixport.domain.profiles import ExportProfile
from mixport.infrastructure.artifact_repositories import FilesystemArtifactRepository
from mixport.infrastructure.project_stores import FilesystemProjectStore, InMemoryProjectStore
from mixport.interfaces.bootstrap import build_export_service, build_registry
from mixport.io.audio_file import read_audio
from mixport.utils.config import EngineConfig, load_engine_config


def resolve_config(config_path: Path | None, **overrides: object) -> EngineConfig:
    base = load_engine_config(config_path) if config_path is not None else EngineConfig()
    updates = {key: value for key, value in overrides.items() if value is not None}
    return base.model_copy(update=updates) if updates else base


def list_profiles(config: EngineConfig) -> tuple[ExportProfile, ...]:
    return build_registry(config).list()


def load_buffer(path: Path) -> AudioBuffer:
    samples, sample_rate = read_audio(path)
    return AudioBuffer(samples=samples, sample_rate_hz=sample_rate)


def export_file(
    source: Path,
    profile_ids: Sequence[str],
    *,
    config: EngineConfig,
    output_dir: Path,
    metadata: ProjectMetadata,
    settings: RenderSettings,
    timeout_seconds: float | None = None,
) -> JobSnapshot:
    """Export one local file to every requested profile and block until the job ends."""

    project_id = source.stem
    store = InMemoryProjectStore({project_id: load_buffer(source)})
    service = build_export_service(
        config,
        project_store=store,
        artifact_repository=FilesystemArtifactRepository(root=output_dir),
    )
    try:
        submitted = service.start_export(project_id, profile_ids, metadata, settings)
        return service.scheduler.wait(submitted.job_id, timeout=timeout_seconds)
    finally:
        service.scheduler.shutdown(wait=timeout_seconds is None)


def batch_export_directory(
    project_root: Path,
    project_ids: Sequence[str],
    profile_ids: Sequence[str],
    *,
    config: EngineConfig,
    output_dir: Path,
    timeout_seconds: float | None = None,
) -> list[JobSnapshot]:
    """Export several projects found under ``project_root`` with bulk metadata."""

    service: ExportService = build_export_service(
        config,
        project_store=FilesystemProjectStore(root=project_root),
        artifact_repository=FilesystemArtifactRepository(root=output_dir),
    )
    try:
        batch = service.batch_export(project_ids, profile_ids)
        return [service.scheduler.wait(job.job_id, timeout=timeout_seconds) for job in batch.jobs]
    finally:
        service.scheduler.shutdown(wait=timeout_seconds is None)


def analyze_file(path: Path, profile_id: str, *, config: EngineConfig) -> QualityReport:
    registry = build_registry(config)
    return QualityAnalyzer().analyze(load_buffer(path), registry.get(profile_id))
