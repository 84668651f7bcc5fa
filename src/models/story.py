"""Story and scene data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


@dataclass
class Scene:
    """One narrated beat of a story.

    Duration is filled in by the duration allocator, asset_path once the
    scene image has been generated. Scenes are never reordered.
    """

    index: int
    description: str
    narration: str
    image_prompt: str = ""
    duration: float | None = None
    asset_path: Path | None = None

    def __post_init__(self):
        if not self.image_prompt:
            self.image_prompt = self.description

    @property
    def word_count(self) -> int:
        return count_words(self.narration)

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "description": self.description,
            "narration": self.narration,
            "image_prompt": self.image_prompt,
            "duration": self.duration,
            "asset_path": str(self.asset_path) if self.asset_path else None,
        }


@dataclass
class Story:
    """Structured narrative with ordered scenes."""

    id: str
    title: str
    description: str
    hook: str
    scenes: list[Scene]
    total_duration: float
    word_count: int
    hashtags: list[str] = field(default_factory=list)
    source: str = "generated"
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_generated(self) -> bool:
        return self.source == "generated"

    @property
    def full_script(self) -> str:
        """Narration of every scene joined in index order."""
        return " ".join(scene.narration.strip() for scene in self.scenes)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "hook": self.hook,
            "scenes": [scene.to_dict() for scene in self.scenes],
            "total_duration": self.total_duration,
            "word_count": self.word_count,
            "hashtags": list(self.hashtags),
            "source": self.source,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class SceneInput:
    narration: str
    description: str = ""
    image_prompt: str = ""


@dataclass
class StoryInput:
    """Caller-supplied script."""

    title: str
    scenes: list[SceneInput]
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "StoryInput":
        scenes = [
            SceneInput(
                narration=str(item.get("narration", "")),
                description=str(item.get("description", "")),
                image_prompt=str(item.get("image_prompt", "")),
            )
            for item in data.get("scenes", [])
        ]
        return cls(
            title=str(data.get("title", "")),
            description=str(data.get("description", "")),
            scenes=scenes,
        )
