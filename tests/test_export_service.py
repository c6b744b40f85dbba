import numpy as np
import pytest
from pydantic import ValidationError

from mixport.application.commands import (
    AnalyzeQuality,
    BatchExport,
    CancelExport,
    GetEngineStatus,
    ListExportProfiles,
    PreviewMastering,
    StartExport,
    parse_command,
)
from mixport.application.export_service import BatchSubmitted, ExportService, batch_metadata
from mixport.domain.errors import InvalidExportRequest, UnknownProfile
from mixport.domain.models import JobStatus


@pytest.fixture
def service(make_scheduler, make_tone):
    scheduler = make_scheduler(projects={"alpha": make_tone(), "beta": make_tone(220.0)})
    return ExportService(scheduler=scheduler)


def test_parse_start_export_command():
    command = parse_command(
        {
            "type": "start_export",
            "project_id": "alpha",
            "profile_ids": ["spotify_hq"],
            "metadata": {"title": "Song", "artist": "Band"},
            "settings": {"fade_out_seconds": 2.0, "limiter_style": "vintage"},
        }
    )

    assert isinstance(command, StartExport)
    assert command.metadata.title == "Song"
    assert command.settings.limiter_style.value == "vintage"


def test_parse_rejects_unknown_command_type():
    with pytest.raises(ValidationError):
        parse_command({"type": "delete_everything"})


def test_parse_rejects_unexpected_fields():
    with pytest.raises(ValidationError):
        parse_command({"type": "cancel_export", "job_id": "x", "force": True})


def test_analyze_quality_defaults_to_spotify_profile():
    command = parse_command({"type": "analyze_quality", "samples": [0.0, 0.1], "sample_rate_hz": 44_100})

    assert isinstance(command, AnalyzeQuality)
    assert command.profile_id == "spotify_hq"


def test_audio_payload_rejects_ragged_channels():
    with pytest.raises(ValidationError):
        parse_command({"type": "analyze_quality", "samples": [[0.0, 0.1], [0.0]], "sample_rate_hz": 44_100})


def test_batch_export_requires_a_project():
    with pytest.raises(ValidationError):
        BatchExport(project_ids=[], profile_ids=["spotify_hq"])


def test_batch_metadata_placeholders():
    metadata = batch_metadata("alpha")

    assert metadata.title == "Project alpha"
    assert metadata.artist == "Artist"
    assert (metadata.genre, metadata.bpm, metadata.key) == ("Electronic", 120.0, "C")
    assert metadata.mood == ("energetic",)


def test_start_and_follow_export(service):
    submitted = service.handle(StartExport(project_id="alpha", profile_ids=["bandcamp_lossless"]))

    service.scheduler.wait(submitted.job_id, timeout=60)
    snapshot = service.get_export_status(submitted.job_id)

    assert snapshot.status is JobStatus.COMPLETED
    assert snapshot.outputs[0].format == "wav"


def test_cancel_finished_export_is_not_accepted(service):
    job_id = service.start_export("alpha", ["bandcamp_lossless"]).job_id
    service.scheduler.wait(job_id, timeout=60)

    ack = service.handle(CancelExport(job_id=job_id))

    assert not ack.accepted
    assert ack.status is JobStatus.COMPLETED


def test_list_profiles_command(service):
    profiles = service.handle(ListExportProfiles())

    assert len(profiles) == 7


def test_batch_export_submits_one_job_per_project(service):
    batch = service.handle(BatchExport(project_ids=["alpha", "beta"], profile_ids=["bandcamp_lossless"]))

    assert isinstance(batch, BatchSubmitted)
    assert batch.project_count == 2
    assert batch.profile_count == 1
    snapshots = [service.scheduler.wait(job.job_id, timeout=60) for job in batch.jobs]
    assert [snapshot.project_id for snapshot in snapshots] == ["alpha", "beta"]
    assert snapshots[0].outputs[0].artifact_path == "exports/Artist - Project alpha_Bandcamp Lossless.wav"


def test_batch_with_unknown_profile_submits_nothing(service):
    with pytest.raises(UnknownProfile):
        service.batch_export(["alpha", "beta"], ["bandcamp_lossless", "nope"])

    assert service.scheduler.jobs() == ()


def test_batch_without_projects_is_invalid(service):
    with pytest.raises(InvalidExportRequest):
        service.batch_export([], ["spotify_hq"])


def test_analyze_quality_command(service, make_tone):
    samples = make_tone(amplitude=0.02).samples.tolist()

    report = service.handle(AnalyzeQuality(samples=samples, sample_rate_hz=44_100))

    assert report.metrics.lufs < -25.0
    assert any("Spotify High Quality" in item for item in report.recommendations)


def test_preview_mastering_truncates_preview(service, make_tone):
    samples = make_tone(seconds=2.0).samples.tolist()

    preview = service.handle(
        PreviewMastering(samples=samples, sample_rate_hz=44_100, profile_id="spotify_hq", preview_seconds=0.5)
    )

    assert preview.profile_id == "spotify_hq"
    assert preview.preview.frame_count == 22_050
    assert preview.metrics.lufs == pytest.approx(-14.0, abs=1.0)
    assert np.all(np.isfinite(preview.preview.samples))


def test_preview_with_unknown_profile(service):
    with pytest.raises(UnknownProfile):
        service.preview_mastering(service.scheduler.project_store.load_audio("alpha"), "nope")


def test_engine_status_command(service):
    status = service.handle(GetEngineStatus())

    assert status.profile_count == 7
    assert status.pipeline_version == "v2"
