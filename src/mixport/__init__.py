"""Public package exports for mixport with lazy imports."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "AudioBuffer",
    "ExportProfile",
    "ExportScheduler",
    "ExportService",
    "MasteringPipeline",
    "ProfileRegistry",
    "QualityAnalyzer",
    "Renderer",
    "load_default_registry",
    "parse_command",
]

_EXPORT_MODULES: dict[str, str] = {
    "AudioBuffer": "mixport.audio_contract",
    "ExportProfile": "mixport.domain.profiles",
    "ExportScheduler": "mixport.application.export_scheduler",
    "ExportService": "mixport.application.export_service",
    "MasteringPipeline": "mixport.processing",
    "ProfileRegistry": "mixport.application.profile_registry",
    "QualityAnalyzer": "mixport.analysis",
    "Renderer": "mixport.rendering",
    "load_default_registry": "mixport.application.profile_registry",
    "parse_command": "mixport.application.commands",
}


def __getattr__(name: str) -> Any:
    if name not in _EXPORT_MODULES:
        raise AttributeError(f"module 'mixport' has no attribute {name!r}")

    module = import_module(_EXPORT_MODULES[name])
    value = getattr(module, name)
    globals()[name] = value
    return value
