"""Application service exposing the export engine's use-cases."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

import numpy as np

from mixport.analysis import QualityAnalyzer, QualityReport
from mixport.application.commands import (
    DEFAULT_ANALYSIS_PROFILE_ID,
    AnalyzeQuality,
    BatchExport,
    CancelExport,
    GetEngineStatus,
    GetExportStatus,
    ListExportProfiles,
    PreviewMastering,
    StartExport,
)
from mixport.application.export_scheduler import EngineStatus, ExportScheduler, submit_many
from mixport.application.profile_registry import ProfileRegistry
from mixport.audio_contract import AudioBuffer
from mixport.domain.errors import InvalidExportRequest
from mixport.domain.models import (
    CancelAck,
    JobSnapshot,
    ProjectMetadata,
    QualityMetrics,
    RenderSettings,
    SubmittedJob,
)
from mixport.domain.profiles import ExportProfile
from mixport.processing import MasteringPipeline

LOGGER = logging.getLogger(__name__)

BATCH_DEFAULT_SETTINGS = RenderSettings(normalize=True)


def batch_metadata(project_id: str) -> ProjectMetadata:
    """Placeholder release metadata for projects exported in bulk."""

    return ProjectMetadata(
        title=f"Project {project_id}",
        artist="Artist",
        genre="Electronic",
        bpm=120.0,
        key="C",
        mood=("energetic",),
        tags=("music",),
    )


@dataclass(frozen=True, slots=True)
class BatchSubmitted:
    batch_id: str
    jobs: tuple[SubmittedJob, ...]
    project_count: int
    profile_count: int


@dataclass(frozen=True, slots=True)
class MasteringPreview:
    """Metrics for a fully mastered buffer plus its first ``preview_seconds`` of audio."""

    profile_id: str
    metrics: QualityMetrics
    recommendations: tuple[str, ...]
    preview: AudioBuffer


@dataclass(slots=True)
class ExportService:
    """Use-case facade over the scheduler, registry and stateless DSP components."""

    scheduler: ExportScheduler
    pipeline: MasteringPipeline = field(default_factory=MasteringPipeline)
    analyzer: QualityAnalyzer = field(default_factory=QualityAnalyzer)

    @property
    def registry(self) -> ProfileRegistry:
        return self.scheduler.registry

    def start_export(
        self,
        project_id: str,
        profile_ids: Sequence[str],
        metadata: ProjectMetadata | None = None,
        settings: RenderSettings | None = None,
    ) -> SubmittedJob:
        return self.scheduler.submit(project_id, profile_ids, metadata, settings)

    def get_export_status(self, job_id: str) -> JobSnapshot:
        return self.scheduler.status(job_id)

    def cancel_export(self, job_id: str) -> CancelAck:
        return self.scheduler.cancel(job_id)

    def list_export_profiles(self) -> tuple[ExportProfile, ...]:
        return self.registry.list()

    def batch_export(
        self,
        project_ids: Sequence[str],
        profile_ids: Sequence[str],
        settings: RenderSettings | None = None,
    ) -> BatchSubmitted:
        if not project_ids:
            raise InvalidExportRequest("At least one project is required.")
        jobs = submit_many(
            self.scheduler,
            project_ids,
            profile_ids,
            batch_metadata,
            settings or BATCH_DEFAULT_SETTINGS,
        )
        batch = BatchSubmitted(
            batch_id=f"batch_{uuid4().hex}",
            jobs=tuple(jobs),
            project_count=len(project_ids),
            profile_count=len(profile_ids),
        )
        LOGGER.info(
            "export_batch_queued",
            extra={"batch_id": batch.batch_id, "project_count": batch.project_count, "profile_count": batch.profile_count},
        )
        return batch

    def analyze_quality(self, buffer: AudioBuffer, profile_id: str = DEFAULT_ANALYSIS_PROFILE_ID) -> QualityReport:
        return self.analyzer.analyze(buffer, self.registry.get(profile_id))

    def preview_mastering(self, buffer: AudioBuffer, profile_id: str, preview_seconds: float = 1.0) -> MasteringPreview:
        profile = self.registry.get(profile_id)
        mastered = self.pipeline.process(buffer, profile)
        report = self.analyzer.analyze(mastered, profile)
        preview_frames = max(1, int(round(preview_seconds * mastered.sample_rate_hz)))
        return MasteringPreview(
            profile_id=profile.id,
            metrics=report.metrics,
            recommendations=report.recommendations,
            preview=mastered.with_samples(mastered.samples[:, :preview_frames].copy()),
        )

    def engine_status(self) -> EngineStatus:
        return self.scheduler.engine_status()

    def handle(self, command: Any) -> Any:
        """Dispatch a parsed command to its use-case."""

        if isinstance(command, StartExport):
            return self.start_export(command.project_id, command.profile_ids, command.metadata, command.settings)
        if isinstance(command, GetExportStatus):
            return self.get_export_status(command.job_id)
        if isinstance(command, CancelExport):
            return self.cancel_export(command.job_id)
        if isinstance(command, ListExportProfiles):
            return self.list_export_profiles()
        if isinstance(command, BatchExport):
            return self.batch_export(command.project_ids, command.profile_ids, command.settings)
        if isinstance(command, AnalyzeQuality):
            return self.analyze_quality(_buffer_from_command(command), command.profile_id)
        if isinstance(command, PreviewMastering):
            return self.preview_mastering(_buffer_from_command(command), command.profile_id, command.preview_seconds)
        if isinstance(command, GetEngineStatus):
            return self.engine_status()
        raise InvalidExportRequest(f"Unsupported command: {type(command).__name__}")


def _buffer_from_command(command: AnalyzeQuality | PreviewMastering) -> AudioBuffer:
    return AudioBuffer(samples=np.asarray(command.samples, dtype=np.float32), sample_rate_hz=command.sample_rate_hz)
