from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

_TRUE_VALUES = {"1", "true", "yes", "on"}


class EngineConfig(BaseModel):
    """Runtime settings for the export engine."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_concurrent_jobs: int = Field(3, ge=1, le=64)
    max_job_duration_seconds: float = Field(600.0, gt=0.0)
    profiles_path: Path | None = None
    project_root: Path | None = None
    artifact_mode: Literal["deferred", "filesystem", "object_storage"] = "deferred"
    output_dir: Path = Path(".")
    log_events: bool = True

    @field_validator("profiles_path", "project_root")
    @classmethod
    def _expand_user(cls, value: Path | None) -> Path | None:
        return value.expanduser() if value is not None else None


def load_engine_config(path: Path) -> EngineConfig:
    return EngineConfig.model_validate(load_config_data(path))


def engine_config_from_env(environ: dict[str, str] | None = None) -> EngineConfig:
    """Build an ``EngineConfig`` from ``MIXPORT_*`` variables; a config file, when given, is the base."""

    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}
    config_path = env.get("MIXPORT_CONFIG")
    if config_path:
        data.update(load_config_data(Path(config_path)))

    overrides = {
        "max_concurrent_jobs": env.get("MIXPORT_MAX_CONCURRENT_JOBS"),
        "max_job_duration_seconds": env.get("MIXPORT_MAX_JOB_DURATION_SECONDS"),
        "profiles_path": env.get("MIXPORT_PROFILES_PATH"),
        "project_root": env.get("MIXPORT_PROJECT_ROOT"),
        "artifact_mode": env.get("MIXPORT_ARTIFACT_MODE"),
        "output_dir": env.get("MIXPORT_OUTPUT_DIR"),
    }
    data.update({key: value for key, value in overrides.items() if value})
    log_events = env.get("MIXPORT_LOG_EVENTS")
    if log_events:
        data["log_events"] = log_events.lower() in _TRUE_VALUES
    return EngineConfig.model_validate(data)


def load_config_data(path: Path) -> dict:
    if path.suffix.lower() in {".yaml", ".yml"}:
        try:
            import yaml
        except ImportError as exc:
            raise ImportError("PyYAML is required to load YAML configs.") from exc

        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}

    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)
