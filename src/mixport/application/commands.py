"""Closed set of commands accepted by the export service."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from mixport.domain.models import ProjectMetadata, RenderSettings

DEFAULT_ANALYSIS_PROFILE_ID = "spotify_hq"


class _Command(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class _AudioPayload(_Command):
    """Raw channel-first samples; a flat list is read as mono."""

    samples: list[list[float]] | list[float]
    sample_rate_hz: int = Field(..., ge=8_000, le=192_000)

    @model_validator(mode="after")
    def _check_samples(self) -> "_AudioPayload":
        if not self.samples:
            raise ValueError("samples must not be empty.")
        if isinstance(self.samples[0], list):
            lengths = {len(channel) for channel in self.samples}
            if len(lengths) != 1:
                raise ValueError("all channels must have the same number of samples.")
        return self


class StartExport(_Command):
    type: Literal["start_export"] = "start_export"
    project_id: str = Field(..., min_length=1)
    profile_ids: list[str]
    metadata: ProjectMetadata = ProjectMetadata()
    settings: RenderSettings = RenderSettings()


class GetExportStatus(_Command):
    type: Literal["get_export_status"] = "get_export_status"
    job_id: str


class CancelExport(_Command):
    type: Literal["cancel_export"] = "cancel_export"
    job_id: str


class ListExportProfiles(_Command):
    type: Literal["list_export_profiles"] = "list_export_profiles"


class BatchExport(_Command):
    type: Literal["batch_export"] = "batch_export"
    project_ids: list[str] = Field(..., min_length=1)
    profile_ids: list[str]
    settings: RenderSettings | None = None


class AnalyzeQuality(_AudioPayload):
    type: Literal["analyze_quality"] = "analyze_quality"
    profile_id: str = DEFAULT_ANALYSIS_PROFILE_ID


class PreviewMastering(_AudioPayload):
    type: Literal["preview_mastering"] = "preview_mastering"
    profile_id: str
    preview_seconds: float = Field(1.0, gt=0.0, le=30.0)


class GetEngineStatus(_Command):
    type: Literal["get_engine_status"] = "get_engine_status"


ExportCommand = Annotated[
    Union[
        StartExport,
        GetExportStatus,
        CancelExport,
        ListExportProfiles,
        BatchExport,
        AnalyzeQuality,
        PreviewMastering,
        GetEngineStatus,
    ],
    Field(discriminator="type"),
]

_COMMAND_ADAPTER: TypeAdapter[Any] = TypeAdapter(ExportCommand)


def parse_command(payload: dict[str, Any]) -> Any:
    """Validate a raw payload into one of the command models."""

    return _COMMAND_ADAPTER.validate_python(payload)
