"""Domain event contracts for export jobs.

Every event's ``correlation_id`` is the export job id, so subscribers can follow a
single job through the stream.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True, slots=True)
class DomainEvent:
    """Base domain event emitted by application services."""

    correlation_id: str
    payload_summary: dict[str, Any]
    occurred_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))


@dataclass(frozen=True, slots=True)
class ExportQueued(DomainEvent):
    """A job was accepted and placed in the admission queue."""


@dataclass(frozen=True, slots=True)
class ExportProgressed(DomainEvent):
    """Job progress advanced; ``percent`` never decreases for a job."""

    percent: float = 0.0
    note: str = ""


@dataclass(frozen=True, slots=True)
class ProfileExported(DomainEvent):
    """One profile of a job was rendered and scored."""


@dataclass(frozen=True, slots=True)
class ProfileFailed(DomainEvent):
    """One profile of a job failed; the rest of the job continues."""


@dataclass(frozen=True, slots=True)
class ExportCompleted(DomainEvent):
    """Job finished with at least one successful output."""

    outputs: tuple[Any, ...] = ()


@dataclass(frozen=True, slots=True)
class ExportFailed(DomainEvent):
    """Job ended without a usable output, or was aborted."""

    reason: str = ""


@dataclass(frozen=True, slots=True)
class ExportCancelled(DomainEvent):
    """Job was cancelled by a caller."""
