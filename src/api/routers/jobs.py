"""Job routes for the Reelsmith API."""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from api.dependencies import get_orchestrator
from api.schemas import CreateJobRequest, JobCreatedResponse, JobListResponse, JobResponse
from models.job import JobStatus
from reel_engine.pipeline import JobValidationError, Orchestrator
from services.niche_registry import UnknownNicheError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Jobs"])


@router.post(
    "/jobs",
    response_model=JobCreatedResponse,
    status_code=202,
    summary="Create video job",
    description="Queue a prompt or a caller script for rendering. Returns immediately.",
)
async def create_job(
    body: CreateJobRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> JobCreatedResponse:
    try:
        job = orchestrator.create_job(body.to_job_request())
    except (JobValidationError, UnknownNicheError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Accepted job {job.id}")
    return JobCreatedResponse(
        job_id=job.id, status=job.status.value, created_at=job.created_at.isoformat()
    )


@router.get(
    "/jobs",
    response_model=JobListResponse,
    summary="List jobs",
    description="All jobs known to this process, newest first.",
)
async def list_jobs(orchestrator: Orchestrator = Depends(get_orchestrator)) -> JobListResponse:
    return JobListResponse(jobs=[JobResponse.from_job(job) for job in orchestrator.queue.list_jobs()])


@router.get(
    "/jobs/{job_id}",
    response_model=JobResponse,
    summary="Get job",
    description="Full job record with progress, stage, result or error.",
)
async def get_job(job_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)) -> JobResponse:
    job = orchestrator.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobResponse.from_job(job)


@router.get(
    "/jobs/{job_id}/video",
    summary="Download job video",
    description="Serve the rendered video of a completed job stored locally.",
)
async def download_video(
    job_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)
) -> FileResponse:
    job = orchestrator.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    if job.status != JobStatus.COMPLETED or job.result is None:
        raise HTTPException(status_code=409, detail=f"Job is {job.status.value}")

    video_path = Path(job.result.video_path)
    if not video_path.is_file():
        raise HTTPException(status_code=404, detail="Video is not stored locally")

    return FileResponse(path=str(video_path), media_type="video/mp4", filename=video_path.name)
