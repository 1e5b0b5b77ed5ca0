"""File-backed job store: one JSON document per job."""

from __future__ import annotations

import asyncio
import os
import re
import uuid
from collections.abc import Callable, Iterable
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from services.jobs.progress import calculate_overall_progress
from shared.enums import JobStatus, LogLevel, UploadKind
from shared.exceptions import JobNotFoundError
from shared.models import (
    Job,
    JobConfig,
    JobListItem,
    JobLog,
    JobOutputs,
    KeyMoment,
    NarrativeOutline,
    UploadedFile,
    utcnow,
)
from shared.utils import config, ensure_directory, remove_path, setup_logging

logger = setup_logging("job-store")

MAX_LOG_ENTRIES = 100
JOB_ID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


class JobStore:
    """
    Persist jobs under ``jobs_dir`` and own each job's upload/output folders.

    Every read-modify-write on a job runs under that job's asyncio lock, so
    concurrent coroutines in one process never interleave updates to the same
    record.
    """

    def __init__(
        self,
        jobs_dir: str | Path | None = None,
        uploads_dir: str | Path | None = None,
        outputs_dir: str | Path | None = None,
    ) -> None:
        self.jobs_dir = Path(jobs_dir or config.get("jobs_dir"))
        self.uploads_dir = Path(uploads_dir or config.get("uploads_dir"))
        self.outputs_dir = Path(outputs_dir or config.get("outputs_dir"))
        for directory in (self.jobs_dir, self.uploads_dir, self.outputs_dir):
            ensure_directory(directory)
        self._locks: dict[str, asyncio.Lock] = {}

    # Paths
    def _job_path(self, job_id: str) -> Path:
        return self.jobs_dir / f"{job_id}.json"

    def get_upload_dir(self, job_id: str) -> Path:
        return self.uploads_dir / job_id

    def get_output_dir(self, job_id: str) -> Path:
        return self.outputs_dir / job_id

    def relative_output_path(self, path: str | Path) -> str:
        return Path(path).resolve().relative_to(self.outputs_dir.resolve()).as_posix()

    def resolve_output_path(self, relative: str) -> Path:
        return self.outputs_dir / relative

    def _exists(self, job_id: str) -> bool:
        return bool(JOB_ID_RE.match(job_id)) and self._job_path(job_id).exists()

    def _lock(self, job_id: str) -> asyncio.Lock:
        lock = self._locks.get(job_id)
        if lock is None:
            lock = self._locks[job_id] = asyncio.Lock()
        return lock

    # Raw persistence
    def _read(self, job_id: str) -> Job | None:
        if not JOB_ID_RE.match(job_id):
            return None
        path = self._job_path(job_id)
        if not path.exists():
            return None
        try:
            return Job.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, PydanticValidationError) as e:
            logger.error(f"Failed to read job {job_id}: {e}")
            return None

    def _write(self, job: Job) -> None:
        job.updated_at = utcnow()
        path = self._job_path(job.id)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(job.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp_path, path)

    async def _mutate(self, job_id: str, change: Callable[[Job], None]) -> Job:
        if not self._exists(job_id):
            raise JobNotFoundError(job_id)
        async with self._lock(job_id):
            job = self._read(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            change(job)
            self._write(job)
            return job

    # Public API
    async def create(self, job_config: JobConfig) -> Job:
        job = Job(id=str(uuid.uuid4()), config=job_config)
        async with self._lock(job.id):
            self._write(job)
        ensure_directory(self.get_upload_dir(job.id))
        ensure_directory(self.get_output_dir(job.id))
        logger.info(f"Created job {job.id} for {job_config.series_name} S{job_config.season}")
        return job

    async def get(self, job_id: str) -> Job | None:
        # Locks are only kept for jobs that exist on disk
        if not self._exists(job_id):
            return None
        async with self._lock(job_id):
            return self._read(job_id)

    async def require(self, job_id: str) -> Job:
        job = await self.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    async def try_begin(self, job_id: str) -> bool:
        """
        Atomically move a pending job to ``validating``.

        Returns False when the job has already left ``pending``; only one
        caller can ever win for a given job.
        """
        if not self._exists(job_id):
            raise JobNotFoundError(job_id)
        async with self._lock(job_id):
            job = self._read(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            if job.status != JobStatus.PENDING:
                return False
            job.status = JobStatus.VALIDATING
            job.progress.stage = JobStatus.VALIDATING
            job.progress.stage_progress = 0
            job.progress.current_step = "Starting"
            job.progress.started_at = utcnow()
            self._write(job)
            return True

    async def update_status(
        self, job_id: str, status: JobStatus, current_step: str, stage_progress: float = 0
    ) -> Job:
        def change(job: Job) -> None:
            previous = job.status
            if (
                previous != status
                and previous not in (JobStatus.PENDING, JobStatus.FAILED)
                and previous not in job.progress.completed_stages
            ):
                job.progress.completed_stages.append(previous)
            if job.progress.started_at is None:
                job.progress.started_at = utcnow()
            job.status = status
            job.progress.stage = status
            job.progress.stage_progress = stage_progress
            job.progress.current_step = current_step
            if status == JobStatus.COMPLETED:
                job.completed_at = utcnow()

        return await self._mutate(job_id, change)

    async def update_progress(self, job_id: str, current_step: str, stage_progress: float) -> Job:
        def change(job: Job) -> None:
            job.progress.current_step = current_step
            job.progress.stage_progress = max(0, min(100, stage_progress))

        return await self._mutate(job_id, change)

    async def set_failed(self, job_id: str, error: str) -> Job:
        def change(job: Job) -> None:
            _append_log(job, LogLevel.ERROR, f"Pipeline failed: {error}")
            job.status = JobStatus.FAILED
            job.progress.stage = JobStatus.FAILED
            job.progress.errors.append(error)
            job.error = error
            job.completed_at = utcnow()

        return await self._mutate(job_id, change)

    async def add_log(self, job_id: str, level: LogLevel, message: str) -> None:
        """Append a user-facing log line; unknown jobs are ignored."""
        try:
            await self._mutate(job_id, lambda job: _append_log(job, level, message))
        except JobNotFoundError:
            logger.debug(f"Dropping log for missing job {job_id}: {message}")

    async def add_files(self, job_id: str, files: Iterable[UploadedFile], kind: UploadKind) -> Job:
        def change(job: Job) -> None:
            target = job.srt_files if kind == UploadKind.SRT else job.video_files
            target.extend(files)

        return await self._mutate(job_id, change)

    async def update_outputs(self, job_id: str, **paths: str | None) -> Job:
        def change(job: Job) -> None:
            merged = job.outputs.model_dump()
            merged.update({key: value for key, value in paths.items() if value is not None})
            job.outputs = JobOutputs(**merged)

        return await self._mutate(job_id, change)

    async def update_analysis(
        self,
        job_id: str,
        key_moments: list[KeyMoment],
        narrative_outline: NarrativeOutline,
        narrative: str | None,
    ) -> Job:
        def change(job: Job) -> None:
            job.key_moments = key_moments
            job.narrative_outline = narrative_outline
            job.narrative = narrative

        return await self._mutate(job_id, change)

    async def list(self) -> list[JobListItem]:
        items = []
        for path in self.jobs_dir.glob("*.json"):
            job = await self.get(path.stem)
            if job is None:
                continue
            items.append(
                JobListItem(
                    id=job.id,
                    series_name=job.config.series_name,
                    season=job.config.season,
                    mode=job.config.mode,
                    status=job.status,
                    created_at=job.created_at,
                    progress=calculate_overall_progress(job),
                )
            )
        return sorted(items, key=lambda item: item.created_at, reverse=True)

    async def delete(self, job_id: str) -> bool:
        """Remove the record with its uploads and outputs. Running pipelines are not stopped."""
        if not self._exists(job_id):
            return False
        async with self._lock(job_id):
            if not self._job_path(job_id).exists():
                return False
            remove_path(self._job_path(job_id))
            remove_path(self.get_upload_dir(job_id))
            remove_path(self.get_output_dir(job_id))
        self._locks.pop(job_id, None)
        logger.info(f"Deleted job {job_id}")
        return True


def _append_log(job: Job, level: LogLevel, message: str) -> None:
    job.progress.logs.append(JobLog(level=level, message=message, stage=job.status))
    if len(job.progress.logs) > MAX_LOG_ENTRIES:
        job.progress.logs = job.progress.logs[-MAX_LOG_ENTRIES:]
