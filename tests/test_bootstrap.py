import math
from datetime import datetime, timezone

import numpy as np

from mixport.domain.events import ExportQueued
from mixport.domain.models import JobStatus, ProjectMetadata
from mixport.infrastructure.artifact_repositories import (
    DeferredArtifactRepository,
    FilesystemArtifactRepository,
    MinIOArtifactRepository,
)
from mixport.infrastructure.project_stores import FilesystemProjectStore, InMemoryProjectStore
from mixport.interfaces.bootstrap import (
    build_artifact_repository,
    build_event_publisher,
    build_export_service,
    to_payload,
)
from mixport.utils.config import EngineConfig


def test_artifact_repository_follows_mode(tmp_path):
    assert isinstance(build_artifact_repository(EngineConfig()), DeferredArtifactRepository)
    filesystem = build_artifact_repository(EngineConfig(artifact_mode="filesystem", output_dir=tmp_path))
    assert isinstance(filesystem, FilesystemArtifactRepository)
    assert filesystem.root == tmp_path
    assert isinstance(build_artifact_repository(EngineConfig(artifact_mode="object_storage")), MinIOArtifactRepository)


def test_service_uses_filesystem_store_when_project_root_set(tmp_path):
    service = build_export_service(EngineConfig(project_root=tmp_path, max_concurrent_jobs=2))
    try:
        assert isinstance(service.scheduler.project_store, FilesystemProjectStore)
        assert service.scheduler.max_concurrent_jobs == 2
    finally:
        service.scheduler.shutdown()


def test_service_defaults_to_in_memory_store():
    service = build_export_service(EngineConfig())
    try:
        assert isinstance(service.scheduler.project_store, InMemoryProjectStore)
    finally:
        service.scheduler.shutdown()


def test_event_publisher_fans_out_to_subscribers():
    received = []
    publisher = build_event_publisher(EngineConfig(log_events=False))
    publisher.subscribe(received.append)

    publisher.publish(ExportQueued(correlation_id="export_1", payload_summary={}))

    assert len(received) == 1


def test_to_payload_converts_nested_values():
    payload = to_payload(
        {
            "status": JobStatus.MASTERING,
            "at": datetime(2024, 1, 1, tzinfo=timezone.utc),
            "values": (np.float32(0.5), math.nan, -math.inf),
            "metadata": ProjectMetadata(title="t", mood=("calm",)),
        }
    )

    assert payload["status"] == "mastering"
    assert payload["at"] == "2024-01-01T00:00:00+00:00"
    assert payload["values"] == [0.5, None, None]
    assert payload["metadata"]["mood"] == ["calm"]
