"""Pydantic request/response models for the Reelsmith API."""

from pydantic import BaseModel, Field

from models.job import JOB_TYPE_SHORT_VIDEO, Job, JobRequest, QueueStats, RenderOverrides
from models.story import SceneInput, StoryInput

# =============================================================================
# Request Models
# =============================================================================


class SceneInputModel(BaseModel):
    """One scene of a caller-supplied script."""

    narration: str
    description: str = ""
    image_prompt: str = ""


class StoryInputModel(BaseModel):
    """Caller-supplied script."""

    title: str
    description: str = ""
    scenes: list[SceneInputModel]


class RenderOverridesModel(BaseModel):
    """Per-job render toggles. Omitted fields keep the configured defaults."""

    include_captions: bool | None = None
    include_music: bool | None = None
    dark_grade: bool | None = None
    vignette: bool | None = None
    glitch_transitions: bool | None = None
    music_volume: float | None = Field(default=None, ge=0.0, le=1.0)


class CreateJobRequest(BaseModel):
    """Submit a prompt or a ready-made script for rendering."""

    type: str = JOB_TYPE_SHORT_VIDEO
    prompt: str | None = None
    niche_id: str | None = None
    story: StoryInputModel | None = None
    target_duration: float | None = Field(default=None, gt=0, le=180)
    render: RenderOverridesModel | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"prompt": "abandoned lighthouse", "niche_id": "horror"},
            ]
        }
    }

    def to_job_request(self) -> JobRequest:
        story = None
        if self.story is not None:
            story = StoryInput(
                title=self.story.title,
                description=self.story.description,
                scenes=[
                    SceneInput(
                        narration=scene.narration,
                        description=scene.description,
                        image_prompt=scene.image_prompt,
                    )
                    for scene in self.story.scenes
                ],
            )
        render = RenderOverrides(**self.render.model_dump()) if self.render else RenderOverrides()
        return JobRequest(
            prompt=self.prompt,
            story=story,
            niche_id=self.niche_id,
            target_duration=self.target_duration,
            render=render,
            job_type=self.type,
        )


# =============================================================================
# Response Models
# =============================================================================


class QueueStatsResponse(BaseModel):
    """Job counts by status."""

    total: int
    pending: int
    running: int
    completed: int
    failed: int

    @classmethod
    def from_stats(cls, stats: QueueStats) -> "QueueStatsResponse":
        return cls(**stats.to_dict())


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
    ffmpeg_available: bool
    ffmpeg_version: str | None = None
    providers: dict[str, str]
    queue: QueueStatsResponse

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "healthy",
                    "version": "1.0.0",
                    "timestamp": "2026-10-19T12:00:00+00:00",
                    "ffmpeg_available": True,
                    "ffmpeg_version": "ffmpeg version 6.1.1",
                    "providers": {"story": "template", "tts": "mock", "image": "mock", "storage": "local"},
                    "queue": {"total": 0, "pending": 0, "running": 0, "completed": 0, "failed": 0},
                }
            ]
        }
    }


class NicheListResponse(BaseModel):
    """Registered niche profiles."""

    default_niche_id: str
    niches: list[dict]


class JobCreatedResponse(BaseModel):
    """Response when a job is accepted."""

    job_id: str
    status: str
    created_at: str

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "job_id": "job_1760875200000_a1b2c3",
                    "status": "pending",
                    "created_at": "2026-10-19T12:00:00+00:00",
                }
            ]
        }
    }


class JobResponse(BaseModel):
    """Full job record."""

    id: str
    type: str
    status: str
    progress: int = Field(ge=0, le=100)
    stage: str
    result: dict | None = None
    error: str | None = None
    created_at: str
    updated_at: str
    completed_at: str | None = None

    @classmethod
    def from_job(cls, job: Job) -> "JobResponse":
        return cls(**job.to_dict())


class JobListResponse(BaseModel):
    """List of jobs, newest first."""

    jobs: list[JobResponse]
