"""Job data models for the video pipeline."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from models.story import Story, StoryInput

JOB_TYPE_SHORT_VIDEO = "short_video"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    """Lifecycle status of a job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class JobStage(str, Enum):
    """Named pipeline stage reported alongside progress."""

    QUEUED = "queued"
    INIT = "init"
    STORY_READY = "story_ready"
    NARRATION_READY = "narration_ready"
    DURATIONS_READY = "durations_ready"
    VISUALS = "visuals"
    CAPTIONS_READY = "captions_ready"
    RENDER_COMPLETE = "render_complete"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class RenderOverrides:
    """Per-job render toggles; None keeps the configured default."""

    include_captions: bool | None = None
    include_music: bool | None = None
    dark_grade: bool | None = None
    vignette: bool | None = None
    glitch_transitions: bool | None = None
    music_volume: float | None = None


@dataclass(frozen=True)
class JobRequest:
    """What a caller submits: a prompt or a ready-made script."""

    prompt: str | None = None
    story: StoryInput | None = None
    niche_id: str | None = None
    target_duration: float | None = None
    render: RenderOverrides = field(default_factory=RenderOverrides)
    job_type: str = JOB_TYPE_SHORT_VIDEO


@dataclass
class JobResult:
    """Result payload attached to a completed job."""

    video_path: str
    video_url: str
    subtitle_path: str
    description: str
    hashtags: list[str]
    story: Story
    duration_seconds: float
    requested_duration: float
    width: int
    height: int
    fps: float
    narration_audio: str
    scene_images: list[str]
    captions_file: str
    styled_captions_file: str | None
    created_at: datetime
    completed_at: datetime

    def to_dict(self) -> dict:
        return {
            "video_path": self.video_path,
            "video_url": self.video_url,
            "subtitle_path": self.subtitle_path,
            "description": self.description,
            "hashtags": list(self.hashtags),
            "metadata": {
                "duration_seconds": self.duration_seconds,
                "requested_duration": self.requested_duration,
                "width": self.width,
                "height": self.height,
                "fps": self.fps,
                "number_of_scenes": len(self.story.scenes),
                "created_at": self.created_at.isoformat(),
                "completed_at": self.completed_at.isoformat(),
                "output_path": self.video_path,
            },
            "story": self.story.to_dict(),
            "assets": {
                "narration_audio": self.narration_audio,
                "scene_images": list(self.scene_images),
                "captions_file": self.captions_file,
                "styled_captions_file": self.styled_captions_file,
            },
        }


@dataclass(frozen=True)
class Job:
    """Immutable snapshot of a job record.

    The job queue swaps in a new snapshot on every update so readers never
    see a half-applied change.
    """

    id: str
    type: str
    request: JobRequest
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    stage: JobStage = JobStage.QUEUED
    result: JobResult | None = None
    error: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "type": self.type,
            "status": self.status.value,
            "progress": self.progress,
            "stage": self.stage.value,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


@dataclass(frozen=True)
class QueueStats:
    total: int = 0
    pending: int = 0
    running: int = 0
    completed: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "pending": self.pending,
            "running": self.running,
            "completed": self.completed,
            "failed": self.failed,
        }
