"""Jobs API: create jobs, upload inputs, start the pipeline and fetch results."""

from __future__ import annotations

import time
from pathlib import Path

from fastapi import APIRouter, Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from services.jobs.progress import calculate_overall_progress
from services.jobs.store import JobStore
from services.llm.factory import check_all_providers
from services.pipeline.orchestrator import SummaryPipeline
from services.subtitles.episode_resolver import extract_episode_id
from shared.config import ServiceConfig
from shared.enums import (
    SUBTITLE_EXTENSIONS,
    VIDEO_EXTENSIONS,
    DownloadType,
    JobStatus,
    UploadKind,
)
from shared.exceptions import JobNotFoundError, JobStateError
from shared.models import CreateJobRequest, Job, UploadedFile
from shared.utils import config as default_config, ensure_directory, safe_stem, sanitize_filename, setup_logging

logger = setup_logging("jobs-api")

UPLOAD_CHUNK_SIZE = 1024 * 1024

jobs_router = APIRouter(prefix="/api/jobs", tags=["jobs"])
upload_router = APIRouter(prefix="/api/upload", tags=["upload"])
health_router = APIRouter(tags=["health"])


def get_store(request: Request) -> JobStore:
    return request.app.state.store


def get_pipeline(request: Request) -> SummaryPipeline:
    return request.app.state.pipeline


def get_settings(request: Request) -> ServiceConfig:
    return request.app.state.settings


async def job_not_found_handler(request: Request, exc: JobNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": "Job not found"})


async def job_state_handler(request: Request, exc: JobStateError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


# Health
@health_router.get("/health")
async def health_check(
    pipeline: SummaryPipeline = Depends(get_pipeline),
    settings: ServiceConfig = Depends(get_settings),
) -> dict:
    """Report availability of ffmpeg, the LLM providers and TTS."""
    ffmpeg_available = await pipeline.ffmpeg.is_available()
    ffmpeg_version = await pipeline.ffmpeg.get_version() if ffmpeg_available else None
    llm_status = await check_all_providers(settings)

    tts_provider = settings.get("tts_provider", "azure")
    tts_configured = pipeline.tts_service.engine.is_configured()

    healthy = ffmpeg_available and any(llm_status.values()) and tts_configured
    return {
        "status": "healthy" if healthy else "degraded",
        "services": {
            "ffmpeg": {"available": ffmpeg_available, "version": ffmpeg_version},
            "llm": llm_status,
            "tts": {
                "provider": tts_provider,
                "configured": tts_configured,
                "region": settings.get("azure_speech_region") if tts_provider == "azure" else None,
                "voice": settings.get("azure_speech_voice")
                if tts_provider == "azure"
                else settings.get("openai_tts_voice"),
            },
        },
        "config": {"target_durations": settings.target_durations()},
    }


# Jobs
@jobs_router.get("")
async def list_jobs(store: JobStore = Depends(get_store)) -> dict:
    return {"jobs": [item.model_dump(mode="json") for item in await store.list()]}


@jobs_router.post("", status_code=201)
async def create_job(request: CreateJobRequest, store: JobStore = Depends(get_store)) -> dict:
    job = await store.create(request.config)
    return {"job": job.model_dump(mode="json")}


@jobs_router.get("/{job_id}")
async def get_job(job_id: str, store: JobStore = Depends(get_store)) -> dict:
    job = await store.require(job_id)
    return {"job": job.model_dump(mode="json"), "overall_progress": calculate_overall_progress(job)}


@jobs_router.post("/{job_id}/start")
async def start_job(
    job_id: str,
    pipeline: SummaryPipeline = Depends(get_pipeline),
) -> dict:
    """Start processing; the pipeline runs in the background."""
    if not await pipeline.start(job_id):
        raise JobStateError("Job has already been started")

    logger.info(f"Started job {job_id}")
    return {"message": "Job started", "job_id": job_id}


@jobs_router.delete("/{job_id}")
async def delete_job(job_id: str, store: JobStore = Depends(get_store)) -> dict:
    if not await store.delete(job_id):
        raise HTTPException(status_code=404, detail="Job not found")
    return {"message": "Job deleted"}


def _download_target(job: Job, kind: DownloadType) -> tuple[str | None, str]:
    stem = f"{safe_stem(job.config.series_name)}_S{job.config.season}"
    outputs = job.outputs
    return {
        DownloadType.VIDEO: (outputs.video_path, f"{stem}_summary.mp4"),
        DownloadType.SRT: (outputs.srt_path, f"{stem}_summary.srt"),
        DownloadType.NARRATIVE_SRT: (outputs.narrative_srt_path, f"{stem}_summary_narrative.srt"),
        DownloadType.AUDIO: (outputs.audio_path, f"{stem}_narrative.mp3"),
        DownloadType.CLIPS: (outputs.clips_json_path, "clips.json"),
    }[kind]


@jobs_router.get("/{job_id}/download/{kind}")
async def download_output(
    job_id: str, kind: str, store: JobStore = Depends(get_store)
) -> FileResponse:
    job = await store.require(job_id)
    if job.status != JobStatus.COMPLETED:
        raise JobStateError("Job not completed")

    try:
        download_type = DownloadType(kind)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="Invalid download type") from e

    relative_path, filename = _download_target(job, download_type)
    if not relative_path:
        raise HTTPException(status_code=404, detail=f"{kind} not available for this job")

    full_path = store.resolve_output_path(relative_path)
    if not full_path.is_file():
        raise HTTPException(status_code=404, detail="File not found")

    return FileResponse(full_path, filename=filename)


# Uploads
async def _store_upload(upload: UploadFile, target_dir: Path, max_size: int) -> UploadedFile:
    original_name = Path((upload.filename or "upload").replace("\\", "/")).name
    stored_name = f"{int(time.time() * 1000)}_{sanitize_filename(original_name)}"
    target = target_dir / stored_name

    size = 0
    try:
        with open(target, "wb") as out:
            while chunk := await upload.read(UPLOAD_CHUNK_SIZE):
                size += len(chunk)
                if size > max_size:
                    raise HTTPException(
                        status_code=413, detail=f"{original_name} exceeds the {max_size} byte limit"
                    )
                out.write(chunk)
    except HTTPException:
        target.unlink(missing_ok=True)
        raise
    finally:
        await upload.close()

    return UploadedFile(
        original_name=original_name,
        stored_name=stored_name,
        path=str(target),
        size=size,
        episode_id=extract_episode_id(original_name),
    )


@upload_router.post("/{job_id}/{kind}")
async def upload_files(
    job_id: str,
    kind: str,
    files: list[UploadFile] = File(...),
    store: JobStore = Depends(get_store),
    settings: ServiceConfig = Depends(get_settings),
) -> dict:
    """Attach subtitle or video files to a pending job."""
    try:
        upload_kind = UploadKind(kind)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="Upload type must be srt or video") from e

    job = await store.require(job_id)
    if job.status != JobStatus.PENDING:
        raise JobStateError("Cannot upload files to a job that has started")
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")

    allowed = SUBTITLE_EXTENSIONS if upload_kind == UploadKind.SRT else VIDEO_EXTENSIONS
    for upload in files:
        extension = Path(upload.filename or "").suffix.lower()
        if extension not in allowed:
            raise HTTPException(
                status_code=400,
                detail=f"File type {extension or '(none)'} is not allowed. Allowed: {', '.join(sorted(allowed))}",
            )

    target_dir = store.get_upload_dir(job_id)
    ensure_directory(target_dir)
    max_size = settings.get("max_file_size")
    stored = [await _store_upload(upload, target_dir, max_size) for upload in files]

    await store.add_files(job_id, stored, upload_kind)
    logger.info(f"Uploaded {len(stored)} {upload_kind.value} file(s) to job {job_id}")
    return {
        "message": f"Uploaded {len(stored)} file(s)",
        "files": [item.model_dump(mode="json") for item in stored],
    }


@upload_router.get("/{job_id}/files")
async def list_files(job_id: str, store: JobStore = Depends(get_store)) -> dict:
    job = await store.require(job_id)
    return {
        "srt_files": [item.model_dump(mode="json") for item in job.srt_files],
        "video_files": [item.model_dump(mode="json") for item in job.video_files],
    }


def create_app(
    store: JobStore | None = None,
    pipeline: SummaryPipeline | None = None,
    settings: ServiceConfig | None = None,
) -> FastAPI:
    """Build the API with one store and one pipeline shared by all requests."""
    settings = settings or default_config
    store = store or JobStore()
    pipeline = pipeline or SummaryPipeline(store, settings=settings)

    app = FastAPI(
        title="Season Highlights Service",
        description="Condense a season of episodes into a highlight video with subtitles or narration",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get("allowed_origins", ["*"]),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(JobNotFoundError, job_not_found_handler)
    app.add_exception_handler(JobStateError, job_state_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.state.settings = settings
    app.state.store = store
    app.state.pipeline = pipeline

    app.include_router(health_router)
    app.include_router(jobs_router)
    app.include_router(upload_router)
    return app
