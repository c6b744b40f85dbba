"""DDD domain layer."""

from .errors import (
    DSPProcessingError,
    ExportCancelledError,
    ExportError,
    InvalidExportRequest,
    JobNotFound,
    JobTimeout,
    ProfileProcessingError,
    ProjectLoadError,
    RenderError,
    UnknownProfile,
)
from .events import (
    DomainEvent,
    ExportCancelled,
    ExportCompleted,
    ExportFailed,
    ExportProgressed,
    ExportQueued,
    ProfileExported,
    ProfileFailed,
)
from .models import (
    CancelAck,
    ExportJob,
    ExportOutput,
    JobError,
    JobSnapshot,
    JobStatus,
    ProfileFailure,
    ProjectMetadata,
    QualityMetrics,
    RenderSettings,
    SpectralBalance,
    SubmittedJob,
)
from .profiles import ExportProfile
from .services import compute_loudness_gain_delta_db, estimate_loudness_lufs, peak_dbfs

__all__ = [
    "ExportError",
    "UnknownProfile",
    "InvalidExportRequest",
    "JobNotFound",
    "ProjectLoadError",
    "ProfileProcessingError",
    "DSPProcessingError",
    "RenderError",
    "JobTimeout",
    "ExportCancelledError",
    "DomainEvent",
    "ExportQueued",
    "ExportProgressed",
    "ProfileExported",
    "ProfileFailed",
    "ExportCompleted",
    "ExportFailed",
    "ExportCancelled",
    "CancelAck",
    "ExportJob",
    "ExportOutput",
    "JobError",
    "JobSnapshot",
    "JobStatus",
    "ProfileFailure",
    "ProjectMetadata",
    "QualityMetrics",
    "RenderSettings",
    "SpectralBalance",
    "SubmittedJob",
    "ExportProfile",
    "compute_loudness_gain_delta_db",
    "estimate_loudness_lufs",
    "peak_dbfs",
]
