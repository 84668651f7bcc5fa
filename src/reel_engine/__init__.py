"""Reel engine: job queue, pipeline orchestration, captions and rendering."""

from reel_engine.caption_builder import build_caption_segments, segments_to_srt, write_srt
from reel_engine.duration_allocator import allocate_durations, apply_durations
from reel_engine.job_queue import JobQueue
from reel_engine.pipeline import (
    ContentSafetyError,
    JobValidationError,
    Orchestrator,
    PipelineError,
    StoryValidationError,
    create_orchestrator,
)
from reel_engine.subtitle_engine import SubtitleEngine
from reel_engine.video_composer import VideoComposer, VideoComposerError

__all__ = [
    "ContentSafetyError",
    "JobQueue",
    "JobValidationError",
    "Orchestrator",
    "PipelineError",
    "StoryValidationError",
    "SubtitleEngine",
    "VideoComposer",
    "VideoComposerError",
    "allocate_durations",
    "apply_durations",
    "build_caption_segments",
    "create_orchestrator",
    "segments_to_srt",
    "write_srt",
]
