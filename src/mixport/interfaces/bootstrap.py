"""Composition root shared by the HTTP and CLI surfaces."""

from __future__ import annotations

import math
from dataclasses import fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any

import numpy as np
from pydantic import BaseModel

from mixport.application.artifact_repository import ArtifactRepository
from mixport.application.event_publisher import EventPublisher
from mixport.application.export_scheduler import ExportScheduler
from mixport.application.export_service import ExportService
from mixport.application.profile_registry import ProfileRegistry, load_default_registry, load_profile_registry
from mixport.application.project_store import ProjectStore
from mixport.audio_contract import AudioBuffer
from mixport.infrastructure.artifact_repositories import (
    DeferredArtifactRepository,
    FilesystemArtifactRepository,
    MinIOArtifactRepository,
)
from mixport.infrastructure.fanout_event_publisher import FanoutEventPublisher
from mixport.infrastructure.logging_event_publisher import LoggingEventPublisher
from mixport.infrastructure.project_stores import FilesystemProjectStore, InMemoryProjectStore
from mixport.utils.config import EngineConfig


def build_registry(config: EngineConfig) -> ProfileRegistry:
    if config.profiles_path is not None:
        return load_profile_registry(config.profiles_path)
    return load_default_registry()


def build_artifact_repository(config: EngineConfig) -> ArtifactRepository:
    if config.artifact_mode == "filesystem":
        return FilesystemArtifactRepository(root=config.output_dir)
    if config.artifact_mode == "object_storage":
        return MinIOArtifactRepository()
    return DeferredArtifactRepository()


def build_event_publisher(config: EngineConfig) -> FanoutEventPublisher:
    publisher = FanoutEventPublisher()
    if config.log_events:
        publisher.subscribe(LoggingEventPublisher().publish)
    return publisher


def build_export_service(
    config: EngineConfig,
    *,
    project_store: ProjectStore | None = None,
    event_publisher: EventPublisher | None = None,
    artifact_repository: ArtifactRepository | None = None,
) -> ExportService:
    if project_store is None:
        project_store = (
            FilesystemProjectStore(root=config.project_root)
            if config.project_root is not None
            else InMemoryProjectStore()
        )
    scheduler = ExportScheduler(
        registry=build_registry(config),
        project_store=project_store,
        artifact_repository=artifact_repository or build_artifact_repository(config),
        event_publisher=event_publisher or build_event_publisher(config),
        max_concurrent_jobs=config.max_concurrent_jobs,
        max_job_duration_seconds=config.max_job_duration_seconds,
    )
    return ExportService(scheduler=scheduler)


def to_payload(value: Any) -> Any:
    """Convert service results into JSON-compatible structures."""

    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, AudioBuffer):
        return {
            "sample_rate_hz": value.sample_rate_hz,
            "channels": value.channel_count,
            "frames": value.frame_count,
            "samples": value.samples.tolist(),
        }
    if is_dataclass(value) and not isinstance(value, type):
        return {item.name: to_payload(getattr(value, item.name)) for item in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): to_payload(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_payload(item) for item in value]
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value
