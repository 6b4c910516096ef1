import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from curtainbuilder.boundaries import extract_features
from curtainbuilder.builder import CurtainBuilder
from curtainbuilder.curtain import export_curtains
from curtainbuilder.elevation import GoogleElevationClient
from curtainbuilder.models import CurtainSettings

from backend import config

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    queued = "queued"
    running = "running"
    completed = "completed"
    failed = "failed"


@dataclass
class Job:
    id: str
    status: JobStatus = JobStatus.queued
    progress: float = 0.0
    message: str = "Queued"
    result: Optional[dict] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def default_oracle():
    """Google client when a key is configured, otherwise no oracle (deep fallback)."""
    if config.GOOGLE_MAPS_API_KEY:
        return GoogleElevationClient(config.GOOGLE_MAPS_API_KEY)
    return None


def _safe_filename(name: str) -> str:
    safe = (
        name.lower()
        .replace(" ", "-")
        .replace(",", "")
        .replace("'", "")
        .replace("/", "-")
        .replace("\\", "-")
    )
    return safe or "curtains"


class JobManager:
    def __init__(self, oracle_factory: Callable = default_oracle) -> None:
        self.jobs: dict[str, Job] = {}
        self.oracle_factory = oracle_factory

    def create_job(self) -> Job:
        job = Job(id=str(uuid.uuid4()))
        self.jobs[job.id] = job
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        return self.jobs.get(job_id)

    async def run_build(self, job: Job, request) -> None:
        """Execute the curtain pipeline, updating *job* with progress."""
        try:
            job.status = JobStatus.running
            job.progress = 5.0
            job.message = "Extracting boundaries..."

            def _update_progress(pct: float, msg: str) -> None:
                job.progress = pct
                job.message = msg

            settings = CurtainSettings(
                sample_count=request.sample_count,
                safety_margin=request.safety_margin,
                deep_fallback=request.deep_fallback,
                wall_top_altitude=request.wall_top_altitude,
                wall_depth=request.wall_depth,
                anchor=request.anchor,
                multi_geometry=request.multi_geometry,
                color=request.color,
            ).validate()
            features = extract_features(request.geojson,
                                        multi_geometry=settings.multi_geometry)

            # One builder per job: feature ids are only unique within a request
            builder = CurtainBuilder(self.oracle_factory(), settings)
            results = await builder.build_all(features,
                                              progress_callback=_update_progress)

            model_url = None
            if request.export and any(not r.mesh.is_empty for r in results):
                job.message = "Exporting scene..."
                filename = f"{_safe_filename(request.name)}.glb"
                await asyncio.to_thread(
                    export_curtains, results,
                    str(config.OUTPUT_DIR / filename), settings.color)
                model_url = f"/output/{filename}"

            job.result = {
                "curtains": [r.to_dict() for r in results],
                "model_url": model_url,
            }
            job.progress = 100.0
            job.message = "Build complete"
            job.status = JobStatus.completed

        except Exception as exc:
            logger.exception("Build failed for job %s", job.id)
            job.status = JobStatus.failed
            job.progress = 0.0
            job.message = f"Build failed: {exc}"


# Singleton instance used across the application
job_manager = JobManager()
