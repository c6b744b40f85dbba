"""DDD application layer."""

from .commands import ExportCommand, parse_command
from .event_publisher import EventPublisher, NullEventPublisher
from .export_scheduler import EngineStatus, ExportScheduler
from .export_service import BatchSubmitted, ExportService, MasteringPreview
from .profile_registry import ProfileRegistry, load_default_registry, load_profile_registry

__all__ = [
    "BatchSubmitted",
    "EngineStatus",
    "EventPublisher",
    "ExportCommand",
    "ExportScheduler",
    "ExportService",
    "MasteringPreview",
    "NullEventPublisher",
    "ProfileRegistry",
    "load_default_registry",
    "load_profile_registry",
    "parse_command",
]
