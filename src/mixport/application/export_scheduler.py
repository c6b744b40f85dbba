"""Bounded-concurrency export job scheduler.

Jobs wait in a FIFO deque owned by the scheduler and are executed by a fixed
``ThreadPoolExecutor``. Every submission schedules one worker task and each
task pops the current head of the deque, so admission order is preserved and a
job cancelled while queued is simply removed before any worker sees it.

Each running job gets its own single-thread stage executor. Waiting on a
stage future with the remaining budget is what enforces
``max_job_duration_seconds``; a stage that overruns is abandoned and the job
fails with ``timeout``.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, TypeVar
from uuid import uuid4

from mixport.analysis import QualityAnalyzer
from mixport.application.artifact_repository import ArtifactPersistenceError, ArtifactRepository, PersistedArtifact
from mixport.application.event_publisher import EventPublisher, NullEventPublisher
from mixport.application.profile_registry import ProfileRegistry
from mixport.application.project_store import ProjectStore
from mixport.audio_contract import AudioBuffer
from mixport.domain.errors import (
    ExportCancelledError,
    InvalidExportRequest,
    JobNotFound,
    JobTimeout,
    ProfileProcessingError,
    ProjectLoadError,
    RenderError,
)
from mixport.domain.events import (
    DomainEvent,
    ExportCancelled,
    ExportCompleted,
    ExportFailed,
    ExportProgressed,
    ExportQueued,
    ProfileExported,
    ProfileFailed,
)
from mixport.domain.models import (
    CancelAck,
    ExportJob,
    ExportOutput,
    JobError,
    JobSnapshot,
    JobStatus,
    ProfileFailure,
    ProjectMetadata,
    RenderSettings,
    SubmittedJob,
)
from mixport.domain.profiles import ExportProfile
from mixport.domain.services import estimate_export_duration_seconds, profile_progress_window
from mixport.processing import PIPELINE_VERSION, MasteringPipeline
from mixport.rendering import Renderer

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT_JOBS = 3
DEFAULT_MAX_JOB_DURATION_SECONDS = 600.0

PROGRESS_PREPARING = 10.0
PROGRESS_SOURCE_LOADED = 20.0
PROGRESS_PROFILES_END = 80.0
PROGRESS_FINALIZING = 90.0
PROGRESS_COMPLETED = 100.0

# Fractions of a profile's progress window reached when each stage starts.
_MASTERING_FRACTION = 0.25
_RENDERING_FRACTION = 0.60
_ANALYSIS_FRACTION = 0.85

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class EngineStatus:
    """Point-in-time engine figures for dashboards."""

    profile_count: int
    job_count: int
    queue_length: int
    active_jobs: int
    max_concurrent_jobs: int
    supported_platforms: tuple[str, ...]
    pipeline_version: str
    running: bool


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class ExportScheduler:
    """Accepts export jobs and runs at most ``max_concurrent_jobs`` of them at once."""

    def __init__(
        self,
        *,
        registry: ProfileRegistry,
        project_store: ProjectStore,
        pipeline: MasteringPipeline | None = None,
        renderer: Renderer | None = None,
        analyzer: QualityAnalyzer | None = None,
        artifact_repository: ArtifactRepository | None = None,
        event_publisher: EventPublisher | None = None,
        max_concurrent_jobs: int = DEFAULT_MAX_CONCURRENT_JOBS,
        max_job_duration_seconds: float = DEFAULT_MAX_JOB_DURATION_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        if max_concurrent_jobs < 1:
            raise ValueError("max_concurrent_jobs must be >= 1.")
        if max_job_duration_seconds <= 0:
            raise ValueError("max_job_duration_seconds must be positive.")

        self.registry = registry
        self.project_store = project_store
        self.pipeline = pipeline or MasteringPipeline()
        self.renderer = renderer or Renderer()
        self.analyzer = analyzer or QualityAnalyzer()
        self.artifact_repository = artifact_repository
        self.event_publisher = event_publisher or NullEventPublisher()
        self.max_concurrent_jobs = max_concurrent_jobs
        self.max_job_duration_seconds = float(max_job_duration_seconds)
        self._clock = clock
        self._id_factory = id_factory or (lambda: f"export_{uuid4().hex}")

        self._condition = threading.Condition(threading.RLock())
        self._jobs: dict[str, ExportJob] = {}
        self._queue: deque[str] = deque()
        self._active: set[str] = set()
        self._executor: ThreadPoolExecutor | None = None
        self._closed = False

    # Lifecycle -----------------------------------------------------------------

    def start(self) -> None:
        with self._condition:
            if self._closed:
                raise RuntimeError("Scheduler has been shut down.")
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_concurrent_jobs, thread_name_prefix="mixport-export"
                )

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; jobs still queued are cancelled."""

        with self._condition:
            self._closed = True
            executor, self._executor = self._executor, None
            pending = [self._jobs[job_id] for job_id in self._queue]
            self._queue.clear()
            for job in pending:
                self._finish_locked(job, JobStatus.CANCELLED)
            self._condition.notify_all()

        for job in pending:
            self._publish(ExportCancelled(correlation_id=job.id, payload_summary={"stage": "queued", "reason": "shutdown"}))
        if executor is not None:
            executor.shutdown(wait=wait, cancel_futures=not wait)

    def __enter__(self) -> "ExportScheduler":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown(wait=True)

    # Operations ----------------------------------------------------------------

    def submit(
        self,
        project_id: str,
        profile_ids: Sequence[str],
        metadata: ProjectMetadata | None = None,
        settings: RenderSettings | None = None,
    ) -> SubmittedJob:
        """Validate and enqueue a job; never blocks on running work."""

        requested = tuple(profile_ids)
        if not project_id or not project_id.strip():
            raise InvalidExportRequest("project_id must not be blank.")
        if not requested:
            raise InvalidExportRequest("At least one export profile is required.")
        self.registry.require_all(requested)
        duplicates = sorted({profile_id for profile_id in requested if requested.count(profile_id) > 1})
        if duplicates:
            raise InvalidExportRequest(f"Duplicate export profile(s): {', '.join(duplicates)}")

        self.start()
        job = ExportJob(
            id=self._id_factory(),
            project_id=project_id,
            profile_ids=requested,
            metadata=metadata or ProjectMetadata(),
            settings=settings or RenderSettings(),
            created_at=self._clock(),
        )
        estimate = estimate_export_duration_seconds(len(requested))

        with self._condition:
            if self._closed or self._executor is None:
                raise RuntimeError("Scheduler has been shut down.")
            self._jobs[job.id] = job
            self._queue.append(job.id)
            position = len(self._queue)
            # Published before a worker can pop the job so ExportQueued is always first.
            self._publish(
                ExportQueued(
                    correlation_id=job.id,
                    payload_summary={
                        "project_id": project_id,
                        "profile_ids": list(requested),
                        "queue_position": position,
                        "estimated_duration_seconds": estimate,
                    },
                )
            )
            self._executor.submit(self._run_next)

        LOGGER.info("export_job_queued", extra={"job_id": job.id, "project_id": project_id, "queue_position": position})
        return SubmittedJob(job_id=job.id, queue_position=position, estimated_duration_seconds=estimate)

    def cancel(self, job_id: str) -> CancelAck:
        with self._condition:
            job = self._require_job(job_id)
            if job.status.is_terminal:
                return CancelAck(job_id=job_id, status=job.status, accepted=False)

            if job.status is JobStatus.QUEUED:
                self._queue.remove(job_id)
                self._finish_locked(job, JobStatus.CANCELLED)
                self._publish(ExportCancelled(correlation_id=job_id, payload_summary={"stage": "queued"}))
                LOGGER.info("export_job_cancelled", extra={"job_id": job_id, "stage": "queued"})
                return CancelAck(job_id=job_id, status=job.status, accepted=True)

            job.cancel_requested = True
            LOGGER.info("export_job_cancel_requested", extra={"job_id": job_id, "status": job.status.value})
            return CancelAck(job_id=job_id, status=job.status, accepted=True)

    def status(self, job_id: str) -> JobSnapshot:
        with self._condition:
            return JobSnapshot.of(self._require_job(job_id))

    def wait(self, job_id: str, timeout: float | None = None) -> JobSnapshot:
        """Block until the job is terminal or ``timeout`` elapses, then return its snapshot."""

        with self._condition:
            job = self._require_job(job_id)
            self._condition.wait_for(lambda: job.status.is_terminal, timeout=timeout)
            return JobSnapshot.of(job)

    def jobs(self) -> tuple[JobSnapshot, ...]:
        with self._condition:
            return tuple(JobSnapshot.of(job) for job in self._jobs.values())

    def engine_status(self) -> EngineStatus:
        with self._condition:
            return EngineStatus(
                profile_count=len(self.registry),
                job_count=len(self._jobs),
                queue_length=len(self._queue),
                active_jobs=len(self._active),
                max_concurrent_jobs=self.max_concurrent_jobs,
                supported_platforms=self.registry.platforms(),
                pipeline_version=PIPELINE_VERSION,
                running=self._executor is not None and not self._closed,
            )

    # Worker --------------------------------------------------------------------

    def _run_next(self) -> None:
        with self._condition:
            if not self._queue:
                return
            job = self._jobs[self._queue.popleft()]
            job.transition(JobStatus.PROCESSING)
            job.started_at = self._clock()
            self._active.add(job.id)

        try:
            self._execute(job)
        finally:
            with self._condition:
                self._active.discard(job.id)
                self._condition.notify_all()

    def _execute(self, job: ExportJob) -> None:
        deadline = time.monotonic() + self.max_job_duration_seconds
        stage_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"mixport-stage-{job.id[-8:]}")
        LOGGER.info("export_job_started", extra={"job_id": job.id, "profile_count": len(job.profile_ids)})
        try:
            self._advance(job, PROGRESS_PREPARING, "preparing")
            source = self._run_stage(stage_executor, deadline, self._load_source, job)
            self._advance(job, PROGRESS_SOURCE_LOADED, "source loaded")

            total = len(job.profile_ids)
            for index, profile_id in enumerate(job.profile_ids):
                self._raise_if_cancelled(job)
                profile = self.registry.get(profile_id)
                window = profile_progress_window(index, total, PROGRESS_SOURCE_LOADED, PROGRESS_PROFILES_END)
                self._export_profile(stage_executor, deadline, job, profile, source, window)

            self._raise_if_cancelled(job)
            self._advance(job, PROGRESS_FINALIZING, "finalizing")
            self._finalize(job)
        except ExportCancelledError:
            self._end(job, JobStatus.CANCELLED)
            self._publish(ExportCancelled(correlation_id=job.id, payload_summary={"stage": "processing"}))
            LOGGER.info("export_job_cancelled", extra={"job_id": job.id, "stage": "processing"})
        except (ProjectLoadError, JobTimeout) as error:
            self._fail(job, error.code, error.message)
        except Exception as error:
            LOGGER.exception("export_job_crashed", extra={"job_id": job.id})
            self._fail(job, "internal_error", str(error) or error.__class__.__name__)
        finally:
            stage_executor.shutdown(wait=False, cancel_futures=True)

    def _export_profile(
        self,
        stage_executor: ThreadPoolExecutor,
        deadline: float,
        job: ExportJob,
        profile: ExportProfile,
        source: AudioBuffer,
        window: tuple[float, float],
    ) -> None:
        start, end = window
        span = end - start
        self._advance(job, start, f"{profile.id}: starting")
        try:
            self._set_status(job, JobStatus.MASTERING)
            self._advance(job, start + span * _MASTERING_FRACTION, f"{profile.id}: mastering")
            mastered = self._run_stage(stage_executor, deadline, self.pipeline.process, source, profile)
            self._set_status(job, JobStatus.PROCESSING)

            self._advance(job, start + span * _RENDERING_FRACTION, f"{profile.id}: rendering")
            artifact = self._run_stage(
                stage_executor, deadline, self.renderer.render, mastered, profile, job.metadata, job.settings
            )

            self._advance(job, start + span * _ANALYSIS_FRACTION, f"{profile.id}: analyzing")
            report = self._run_stage(stage_executor, deadline, self.analyzer.analyze, artifact.buffer, profile)
            persisted = self._run_stage(stage_executor, deadline, self._persist, artifact)
        except ProfileProcessingError as error:
            self._set_status(job, JobStatus.PROCESSING)
            failure = ProfileFailure(profile_id=profile.id, stage=error.stage, code=error.code, message=error.message)
            with self._condition:
                job.failures.append(failure)
            LOGGER.warning(
                "export_profile_failed",
                extra={"job_id": job.id, "profile_id": profile.id, "stage": error.stage, "error_code": error.code},
            )
            self._publish(
                ProfileFailed(
                    correlation_id=job.id,
                    payload_summary={
                        "profile_id": profile.id,
                        "stage": error.stage,
                        "code": error.code,
                        "message": error.message,
                    },
                )
            )
            self._advance(job, end, f"{profile.id}: failed")
            return

        output = ExportOutput(
            profile_id=profile.id,
            platform=profile.platform,
            format=artifact.format,
            sample_rate_hz=artifact.buffer.sample_rate_hz,
            bit_depth=artifact.bit_depth,
            bitrate_kbps=artifact.bitrate_kbps,
            artifact_path=artifact.artifact_path,
            file_size_bytes=artifact.file_size_bytes,
            duration_seconds=artifact.duration_seconds,
            quality=report.metrics,
            recommendations=report.recommendations,
            metadata_warnings=artifact.metadata_warnings,
            artifact_status=persisted.status,
        )
        with self._condition:
            job.outputs.append(output)
        self._publish(
            ProfileExported(
                correlation_id=job.id,
                payload_summary={
                    "profile_id": profile.id,
                    "format": output.format,
                    "file_size_bytes": output.file_size_bytes,
                    "lufs": round(output.quality.lufs, 2),
                    "peak_db": round(output.quality.peak_db, 2),
                },
            )
        )
        self._advance(job, end, f"{profile.id}: done")

    def _finalize(self, job: ExportJob) -> None:
        with self._condition:
            outputs = tuple(job.outputs)
            failures = tuple(job.failures)
        if not outputs:
            self._fail(job, "all_profiles_failed", f"All {len(failures)} profile(s) failed.")
            return

        with self._condition:
            # A cancel accepted before this point must win over completion.
            if job.cancel_requested:
                raise ExportCancelledError(f"Export job {job.id} was cancelled.")
            job.advance_progress(PROGRESS_COMPLETED)
            self._finish_locked(job, JobStatus.COMPLETED)
            self._condition.notify_all()
        self._publish(
            ExportProgressed(
                correlation_id=job.id,
                payload_summary={"status": JobStatus.COMPLETED.value},
                percent=PROGRESS_COMPLETED,
                note="completed",
            )
        )
        self._publish(
            ExportCompleted(
                correlation_id=job.id,
                payload_summary={"succeeded": len(outputs), "failed": len(failures)},
                outputs=outputs,
            )
        )
        LOGGER.info(
            "export_job_completed",
            extra={"job_id": job.id, "succeeded": len(outputs), "failed": len(failures)},
        )

    # Stage helpers -------------------------------------------------------------

    def _load_source(self, job: ExportJob) -> AudioBuffer:
        try:
            buffer = self.project_store.load_audio(job.project_id)
        except ProjectLoadError:
            raise
        except Exception as error:
            raise ProjectLoadError(f"Could not load project '{job.project_id}': {error}") from error
        # Workers never share a source buffer.
        return buffer.copy()

    def _persist(self, artifact: Any) -> PersistedArtifact:
        if self.artifact_repository is None:
            return PersistedArtifact(status="deferred", destination=artifact.artifact_path)
        try:
            return self.artifact_repository.persist(artifact)
        except ArtifactPersistenceError as error:
            raise RenderError(artifact.profile_id, f"Artifact persistence failed: {error}") from error

    def _run_stage(self, executor: ThreadPoolExecutor, deadline: float, fn: Callable[..., T], *args: Any) -> T:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise JobTimeout(f"Export exceeded {self.max_job_duration_seconds:g}s.")
        future = executor.submit(fn, *args)
        try:
            return future.result(timeout=remaining)
        except FutureTimeoutError:
            future.cancel()
            raise JobTimeout(f"Export exceeded {self.max_job_duration_seconds:g}s.") from None

    def _raise_if_cancelled(self, job: ExportJob) -> None:
        with self._condition:
            if job.cancel_requested:
                raise ExportCancelledError(f"Export job {job.id} was cancelled.")

    # State helpers -------------------------------------------------------------

    def _advance(self, job: ExportJob, value: float, note: str) -> None:
        with self._condition:
            previous = job.progress
            current = job.advance_progress(value)
        if current > previous:
            self._publish(
                ExportProgressed(
                    correlation_id=job.id,
                    payload_summary={"status": job.status.value},
                    percent=current,
                    note=note,
                )
            )

    def _set_status(self, job: ExportJob, status: JobStatus) -> None:
        with self._condition:
            if job.status is not status:
                job.transition(status)

    def _fail(self, job: ExportJob, code: str, message: str) -> None:
        with self._condition:
            if job.status.is_terminal:
                LOGGER.error("export_job_error_after_terminal", extra={"job_id": job.id, "error_code": code})
                return
            job.error = JobError(code=code, message=message)
            self._finish_locked(job, JobStatus.FAILED)
            self._condition.notify_all()
        self._publish(ExportFailed(correlation_id=job.id, payload_summary={"code": code}, reason=message))
        LOGGER.warning("export_job_failed", extra={"job_id": job.id, "error_code": code, "reason": message})

    def _end(self, job: ExportJob, status: JobStatus) -> None:
        with self._condition:
            self._finish_locked(job, status)
            self._condition.notify_all()

    def _finish_locked(self, job: ExportJob, status: JobStatus) -> None:
        job.transition(status)
        job.finished_at = self._clock()

    def _require_job(self, job_id: str) -> ExportJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFound(job_id)
        return job

    def _publish(self, event: DomainEvent) -> None:
        self.event_publisher.publish(event)


def submit_many(
    scheduler: ExportScheduler,
    project_ids: Iterable[str],
    profile_ids: Sequence[str],
    metadata_factory: Callable[[str], ProjectMetadata],
    settings: RenderSettings | None = None,
) -> list[SubmittedJob]:
    """Submit one job per project; profile ids are validated once, before any job exists."""

    scheduler.registry.require_all(profile_ids)
    return [
        scheduler.submit(project_id, profile_ids, metadata_factory(project_id), settings)
        for project_id in project_ids
    ]
