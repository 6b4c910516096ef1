import asyncio
import logging

from fastapi import APIRouter, HTTPException

from backend.jobs import job_manager
from backend.models import CurtainRequest, JobResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/curtains", tags=["curtains"])

# Keep references so background builds are not garbage-collected mid-run.
_background_tasks = set()


@router.post("", response_model=JobResponse)
async def build_curtains(request: CurtainRequest):
    """Start a curtain build for the boundaries in a GeoJSON object.

    The heavy lifting runs in a background task; the caller receives a job ID
    immediately and can poll ``/status/{job_id}`` for progress.
    """
    job = job_manager.create_job()
    task = asyncio.create_task(job_manager.run_build(job, request))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    return JobResponse(
        job_id=job.id,
        status=job.status.value,
        progress=job.progress,
        message=job.message,
        result=job.result,
    )


@router.get("/status/{job_id}", response_model=JobResponse)
async def get_build_status(job_id: str):
    """Poll the status of a running or completed build job."""
    job = job_manager.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")

    return JobResponse(
        job_id=job.id,
        status=job.status.value,
        progress=job.progress,
        message=job.message,
        result=job.result,
    )
