# Data models for reelsmith
from .caption import CaptionSegment
from .job import (
    JOB_TYPE_SHORT_VIDEO,
    Job,
    JobRequest,
    JobResult,
    JobStage,
    JobStatus,
    QueueStats,
    RenderOverrides,
)
from .niche import (
    CaptionPlacement,
    CaptionStyle,
    MusicStyle,
    NicheProfile,
    StoryStyle,
    VisualStyle,
    VoiceStyle,
    WordBand,
)
from .render import (
    GLITCH_TRANSITION_SECONDS,
    RenderOptions,
    RenderRequest,
    RenderResult,
    RenderScene,
)
from .story import Scene, SceneInput, Story, StoryInput, count_words

__all__ = [
    "CaptionSegment",
    # Jobs
    "JOB_TYPE_SHORT_VIDEO",
    "Job",
    "JobRequest",
    "JobResult",
    "JobStage",
    "JobStatus",
    "QueueStats",
    "RenderOverrides",
    # Niche profiles
    "CaptionPlacement",
    "CaptionStyle",
    "MusicStyle",
    "NicheProfile",
    "StoryStyle",
    "VisualStyle",
    "VoiceStyle",
    "WordBand",
    # Rendering
    "GLITCH_TRANSITION_SECONDS",
    "RenderOptions",
    "RenderRequest",
    "RenderResult",
    "RenderScene",
    # Stories
    "Scene",
    "SceneInput",
    "Story",
    "StoryInput",
    "count_words",
]
