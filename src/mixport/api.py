"""FastAPI interface for mixport."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, Depends, FastAPI, File, HTTPException, Query, UploadFile
from pydantic import ValidationError

from .application.commands import BatchExport, StartExport, parse_command
from .application.export_service import ExportService
from .domain.errors import ExportError
from .interfaces.api_handlers import (
    UploadDecodeError,
    decode_upload,
    get_export_service,
    shutdown_export_service,
    status_code_for,
)
from .interfaces.bootstrap import to_payload


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    shutdown_export_service()


app = FastAPI(title="mixport API", version="0.1.0", lifespan=lifespan)


def _http_error(error: ExportError) -> HTTPException:
    return HTTPException(status_code=status_code_for(error), detail=error.as_dict())


async def _read_upload(upload: UploadFile):
    try:
        return decode_upload(await upload.read())
    except UploadDecodeError as error:
        raise HTTPException(status_code=400, detail=error.as_dict()) from error


@app.get("/health")
def health() -> dict[str, str]:
    """Health check endpoint."""

    return {"status": "ok"}


@app.get("/profiles")
def list_profiles(service: ExportService = Depends(get_export_service)) -> list[dict[str, Any]]:
    return [profile.model_dump(mode="json") for profile in service.list_export_profiles()]


@app.post("/exports", status_code=202)
def start_export(request: StartExport, service: ExportService = Depends(get_export_service)) -> dict[str, Any]:
    """Queue an export job for one project and a set of profiles."""

    try:
        submitted = service.start_export(request.project_id, request.profile_ids, request.metadata, request.settings)
    except ExportError as error:
        raise _http_error(error) from error
    return to_payload(submitted)


@app.post("/exports/batch", status_code=202)
def batch_export(request: BatchExport, service: ExportService = Depends(get_export_service)) -> dict[str, Any]:
    try:
        batch = service.batch_export(request.project_ids, request.profile_ids, request.settings)
    except ExportError as error:
        raise _http_error(error) from error
    return to_payload(batch)


@app.get("/exports/{job_id}")
def export_status(job_id: str, service: ExportService = Depends(get_export_service)) -> dict[str, Any]:
    try:
        return to_payload(service.get_export_status(job_id))
    except ExportError as error:
        raise _http_error(error) from error


@app.post("/exports/{job_id}/cancel")
def cancel_export(job_id: str, service: ExportService = Depends(get_export_service)) -> dict[str, Any]:
    try:
        return to_payload(service.cancel_export(job_id))
    except ExportError as error:
        raise _http_error(error) from error


@app.post("/commands")
def run_command(
    payload: dict[str, Any] = Body(...),
    service: ExportService = Depends(get_export_service),
) -> Any:
    """Dispatch any command from the tagged command union."""

    try:
        command = parse_command(payload)
    except ValidationError as error:
        raise HTTPException(
            status_code=422,
            detail={"code": "invalid_command", "message": str(error)},
        ) from error

    try:
        result = service.handle(command)
    except ExportError as error:
        raise _http_error(error) from error
    return {"type": command.type, "result": to_payload(result)}


@app.post("/analysis")
async def analyze_upload(
    audio: UploadFile = File(..., description="Audio file to score"),
    profile_id: str = Query("spotify_hq", description="Profile whose targets the report is checked against."),
    service: ExportService = Depends(get_export_service),
) -> dict[str, Any]:
    buffer = await _read_upload(audio)
    try:
        report = service.analyze_quality(buffer, profile_id)
    except ExportError as error:
        raise _http_error(error) from error
    return to_payload(report)


@app.post("/profiles/{profile_id}/preview")
async def preview_mastering(
    profile_id: str,
    audio: UploadFile = File(..., description="Audio file to master"),
    preview_seconds: float = Query(1.0, gt=0.0, le=30.0),
    include_samples: bool = Query(False, description="Return the preview samples in the response."),
    service: ExportService = Depends(get_export_service),
) -> dict[str, Any]:
    """Run the profile's mastering chain and report quality of the result."""

    buffer = await _read_upload(audio)
    try:
        preview = service.preview_mastering(buffer, profile_id, preview_seconds)
    except ExportError as error:
        raise _http_error(error) from error

    payload = to_payload(preview)
    if not include_samples:
        payload["preview"].pop("samples")
    return payload


@app.get("/engine")
def engine_status(service: ExportService = Depends(get_export_service)) -> dict[str, Any]:
    return to_payload(service.engine_status())
