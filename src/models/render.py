"""Render request/result models for the video composer."""

from dataclasses import dataclass, field
from pathlib import Path

GLITCH_TRANSITION_SECONDS = 0.4


@dataclass(frozen=True)
class RenderOptions:
    width: int = 1080
    height: int = 1920
    fps: int = 30
    include_captions: bool = True
    include_music: bool = True
    dark_grade: bool = True
    vignette: bool = True
    glitch_transitions: bool = True
    music_volume: float = 0.18


@dataclass(frozen=True)
class RenderScene:
    """One (image, duration, caption) entry of a render request."""

    image_path: Path
    duration: float
    caption: str = ""


@dataclass
class RenderRequest:
    """Everything the composer needs for one video. Consumed once."""

    job_id: str
    scenes: list[RenderScene]
    narration_path: Path
    narration_duration: float
    output_path: Path
    subtitle_path: Path | None = None
    options: RenderOptions = field(default_factory=RenderOptions)


@dataclass(frozen=True)
class RenderResult:
    """Values probed from the encoded file, next to what was requested."""

    video_path: Path
    duration: float
    width: int
    height: int
    fps: float
    requested_duration: float
    requested_width: int
    requested_height: int
    requested_fps: int
