"""S3-compatible object storage helpers backed by MinIO client."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from io import BytesIO
from typing import Any

from minio import Minio

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Runtime configuration for S3-compatible object storage."""

    enabled: bool
    endpoint: str
    access_key: str
    secret_key: str
    bucket: str
    secure: bool
    region: str | None
    url_expiry_hours: int = 1


@lru_cache(maxsize=1)
def load_storage_config() -> StorageConfig:
    """Load storage configuration from environment."""

    return StorageConfig(
        enabled=os.getenv("MIXPORT_STORAGE_ENABLED", "false").lower() in _TRUE_VALUES,
        endpoint=os.getenv("MIXPORT_S3_ENDPOINT", "minio:9000"),
        access_key=os.getenv("MIXPORT_S3_ACCESS_KEY", "minioadmin"),
        secret_key=os.getenv("MIXPORT_S3_SECRET_KEY", "minioadmin"),
        bucket=os.getenv("MIXPORT_S3_BUCKET", "mixport-exports"),
        secure=os.getenv("MIXPORT_S3_SECURE", "false").lower() in _TRUE_VALUES,
        region=os.getenv("MIXPORT_S3_REGION"),
        url_expiry_hours=int(os.getenv("MIXPORT_S3_URL_EXPIRY_HOURS", "1")),
    )


class StorageWriteError(RuntimeError):
    """Raised when an enabled object store rejects an upload."""


@lru_cache(maxsize=1)
def get_storage_client() -> Any:
    """Build and cache a MinIO client for object storage."""

    config = load_storage_config()
    return Minio(
        endpoint=config.endpoint,
        access_key=config.access_key,
        secret_key=config.secret_key,
        secure=config.secure,
        region=config.region,
    )


def store_export_artifact(*, object_name: str, audio_bytes: bytes, content_type: str = "audio/wav") -> str | None:
    """Upload an encoded artifact and return a presigned URL, or ``None`` when storage is disabled."""

    config = load_storage_config()
    if not config.enabled:
        return None

    try:
        client = get_storage_client()
        if not client.bucket_exists(config.bucket):
            client.make_bucket(config.bucket)

        client.put_object(
            bucket_name=config.bucket,
            object_name=object_name,
            data=BytesIO(audio_bytes),
            length=len(audio_bytes),
            content_type=content_type,
        )

        return client.presigned_get_object(
            bucket_name=config.bucket,
            object_name=object_name,
            expires=timedelta(hours=config.url_expiry_hours),
        )
    except Exception as error:
        logger.warning("export_artifact_upload_failed", extra={"object_name": object_name}, exc_info=error)
        raise StorageWriteError(f"Could not store '{object_name}' in bucket '{config.bucket}'.") from error
