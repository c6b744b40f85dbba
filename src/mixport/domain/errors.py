"""Export error taxonomy.

Submission errors (``UnknownProfile``, ``InvalidExportRequest``) are raised to the
caller before a job exists. ``ProjectLoadError`` and ``JobTimeout`` end a whole
job. ``DSPProcessingError`` and ``RenderError`` are scoped to one profile and are
recorded on the job instead of escaping it.
"""

from __future__ import annotations

from collections.abc import Iterable


class ExportError(Exception):
    """Base class for export failures carrying a stable machine-readable code."""

    code = "export_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def as_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class UnknownProfile(ExportError):
    code = "unknown_profile"

    def __init__(self, profile_ids: Iterable[str]) -> None:
        self.profile_ids = tuple(profile_ids)
        super().__init__(f"Unknown export profile(s): {', '.join(self.profile_ids)}")


class InvalidExportRequest(ExportError):
    code = "invalid_request"


class JobNotFound(ExportError):
    code = "job_not_found"

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Export job not found: {job_id}")


class ProjectLoadError(ExportError):
    code = "project_load_error"


class ProfileProcessingError(ExportError):
    """Failure isolated to one profile of a job."""

    stage = "profile"

    def __init__(self, profile_id: str, message: str) -> None:
        self.profile_id = profile_id
        super().__init__(message)


class DSPProcessingError(ProfileProcessingError):
    code = "dsp_processing_error"
    stage = "mastering"


class RenderError(ProfileProcessingError):
    code = "render_error"
    stage = "render"


class JobTimeout(ExportError):
    code = "timeout"


class ExportCancelledError(ExportError):
    code = "cancelled"
