"""Domain models for export jobs and their outputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from mixport.mastering_options import LimiterStyle


class JobStatus(str, Enum):
    """Lifecycle states of an export job."""

    QUEUED = "queued"
    PROCESSING = "processing"
    MASTERING = "mastering"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        return self in {JobStatus.PROCESSING, JobStatus.MASTERING}


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED})

_ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.QUEUED: frozenset({JobStatus.PROCESSING, JobStatus.CANCELLED}),
    JobStatus.PROCESSING: frozenset(
        {JobStatus.MASTERING, JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED}
    ),
    JobStatus.MASTERING: frozenset(
        {JobStatus.PROCESSING, JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED}
    ),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
    JobStatus.CANCELLED: frozenset(),
}


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    return target in _ALLOWED_TRANSITIONS[current]


class ProjectMetadata(BaseModel):
    """User-supplied release metadata attached to an export."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    artist: str = ""
    album: str | None = None
    genre: str | None = None
    bpm: float | None = Field(None, gt=0.0)
    key: str | None = None
    mood: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    description: str | None = None
    artwork: str | None = None
    isrc: str | None = None


class RenderSettings(BaseModel):
    """Per-job rendering options."""

    model_config = ConfigDict(frozen=True)

    fade_in_seconds: float = Field(0.0, ge=0.0)
    fade_out_seconds: float = Field(0.0, ge=0.0)
    normalize: bool = False
    dithering: bool = False
    limiter_style: LimiterStyle = LimiterStyle.TRANSPARENT


@dataclass(frozen=True, slots=True)
class SpectralBalance:
    """Share of spectral energy per coarse band; sums to 1 for non-silent audio."""

    bass: float
    mid: float
    treble: float
    presence: float
    brilliance: float


@dataclass(frozen=True, slots=True)
class QualityMetrics:
    """Measured loudness, dynamics, tone and stereo figures for a rendered buffer."""

    lufs: float
    peak_db: float
    dynamic_range_db: float
    spectral_balance: SpectralBalance
    stereo_width: float
    phase_correlation: float
    phase_ok: bool
    integrated_lufs_bs1770: float | None = None


@dataclass(frozen=True, slots=True)
class ExportOutput:
    """A successfully rendered artifact for one profile of a job."""

    profile_id: str
    platform: str
    format: str
    sample_rate_hz: int
    bit_depth: int
    bitrate_kbps: int | None
    artifact_path: str
    file_size_bytes: int
    duration_seconds: float
    quality: QualityMetrics
    recommendations: tuple[str, ...] = ()
    metadata_warnings: tuple[str, ...] = ()
    artifact_status: str = "deferred"


@dataclass(frozen=True, slots=True)
class ProfileFailure:
    """A profile that could not be exported; siblings in the job continue."""

    profile_id: str
    stage: str
    code: str
    message: str


@dataclass(frozen=True, slots=True)
class JobError:
    """Reason a whole job failed."""

    code: str
    message: str


@dataclass(slots=True)
class ExportJob:
    """Mutable export job; owned by the scheduler queue, then by one worker."""

    id: str
    project_id: str
    profile_ids: tuple[str, ...]
    metadata: ProjectMetadata
    settings: RenderSettings
    created_at: datetime
    status: JobStatus = JobStatus.QUEUED
    progress: float = 0.0
    started_at: datetime | None = None
    finished_at: datetime | None = None
    outputs: list[ExportOutput] = field(default_factory=list)
    failures: list[ProfileFailure] = field(default_factory=list)
    error: JobError | None = None
    cancel_requested: bool = False

    def transition(self, target: JobStatus) -> None:
        if not can_transition(self.status, target):
            raise ValueError(f"Illegal job transition {self.status.value} -> {target.value}")
        self.status = target

    def advance_progress(self, value: float) -> float:
        """Raise progress to ``value``; never lowers it."""

        self.progress = max(self.progress, min(100.0, max(0.0, float(value))))
        return self.progress


@dataclass(frozen=True, slots=True)
class JobSnapshot:
    """Point-in-time, immutable view of a job for callers outside the worker."""

    job_id: str
    project_id: str
    status: JobStatus
    progress: float
    profile_ids: tuple[str, ...]
    outputs: tuple[ExportOutput, ...]
    failures: tuple[ProfileFailure, ...]
    error: JobError | None
    created_at: datetime
    started_at: datetime | None
    finished_at: datetime | None

    @classmethod
    def of(cls, job: ExportJob) -> "JobSnapshot":
        return cls(
            job_id=job.id,
            project_id=job.project_id,
            status=job.status,
            progress=job.progress,
            profile_ids=job.profile_ids,
            outputs=tuple(job.outputs),
            failures=tuple(job.failures),
            error=job.error,
            created_at=job.created_at,
            started_at=job.started_at,
            finished_at=job.finished_at,
        )


@dataclass(frozen=True, slots=True)
class SubmittedJob:
    """Acknowledgement returned when a job is accepted into the queue."""

    job_id: str
    queue_position: int
    estimated_duration_seconds: float


@dataclass(frozen=True, slots=True)
class CancelAck:
    """Result of a cancellation request."""

    job_id: str
    status: JobStatus
    accepted: bool
