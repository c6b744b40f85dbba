"""API-facing handlers that delegate to the export service."""

from __future__ import annotations

from functools import lru_cache

import soundfile as sf

from mixport.application.export_service import ExportService
from mixport.audio_contract import AudioBuffer, AudioContractError
from mixport.domain.errors import ExportError
from mixport.interfaces.bootstrap import build_export_service
from mixport.io.audio_file import decode_audio_bytes
from mixport.utils.config import engine_config_from_env

ERROR_STATUS_CODES: dict[str, int] = {
    "unknown_profile": 400,
    "invalid_request": 400,
    "job_not_found": 404,
    "dsp_processing_error": 422,
    "render_error": 422,
}


class UploadDecodeError(ValueError):
    code = "invalid_audio"

    def as_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": str(self)}


@lru_cache(maxsize=1)
def get_export_service() -> ExportService:
    """Process-wide service built from ``MIXPORT_*`` environment settings."""

    return build_export_service(engine_config_from_env())


def shutdown_export_service() -> None:
    if get_export_service.cache_info().currsize:
        get_export_service().scheduler.shutdown(wait=False)
        get_export_service.cache_clear()


def status_code_for(error: ExportError) -> int:
    return ERROR_STATUS_CODES.get(error.code, 500)


def decode_upload(payload: bytes) -> AudioBuffer:
    if not payload:
        raise UploadDecodeError("Uploaded file is empty.")
    try:
        samples, sample_rate = decode_audio_bytes(payload)
        return AudioBuffer(samples=samples, sample_rate_hz=sample_rate)
    except (sf.LibsndfileError, RuntimeError, AudioContractError) as error:
        raise UploadDecodeError(f"Could not decode uploaded audio: {error}") from error


__all__ = ["UploadDecodeError", "decode_upload", "get_export_service", "shutdown_export_service", "status_code_for"]
