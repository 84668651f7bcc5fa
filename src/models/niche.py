"""Niche (content style) profile models."""

from dataclasses import asdict, dataclass, field
from enum import Enum


class CaptionPlacement(str, Enum):
    """Vertical placement of burned-in captions."""

    TOP = "top"
    CENTER = "center"
    BOTTOM = "bottom"


@dataclass(frozen=True)
class WordBand:
    """Inclusive word-count band for generated narration."""

    min: int = 140
    max: int = 185

    def intersect(self, other: "WordBand") -> "WordBand":
        return WordBand(min=max(self.min, other.min), max=min(self.max, other.max))

    def contains(self, words: int) -> bool:
        return self.min <= words <= self.max


@dataclass(frozen=True)
class StoryStyle:
    tone: str
    structure_template: tuple[str, ...]
    default_length_seconds: int = 60
    target_word_count: WordBand = field(default_factory=WordBand)


@dataclass(frozen=True)
class VisualStyle:
    base_style_prompt: str
    num_scenes: int = 4
    image_size: str = "1024x1792"


@dataclass(frozen=True)
class VoiceStyle:
    voice_id: str
    speed: float = 1.0
    model: str = "tts-1"


@dataclass(frozen=True)
class MusicStyle:
    add_music: bool = True
    mood: str = ""
    music_volume: float | None = None


@dataclass(frozen=True)
class CaptionStyle:
    font_family: str = "DejaVu Sans"
    font_size: int = 46
    font_color: str = "white"
    outline_color: str = "black"
    placement: CaptionPlacement = CaptionPlacement.BOTTOM
    bold: bool = True


@dataclass(frozen=True)
class NicheProfile:
    """Named bundle of tone, visuals, voice, caption and hashtag defaults."""

    id: str
    name: str
    description: str
    story_style: StoryStyle
    visuals: VisualStyle
    voice: VoiceStyle
    music: MusicStyle
    captions: CaptionStyle
    default_hashtags: tuple[str, ...]
    cta_phrases: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        data = asdict(self)
        data["captions"]["placement"] = self.captions.placement.value
        data["story_style"]["structure_template"] = list(self.story_style.structure_template)
        data["default_hashtags"] = list(self.default_hashtags)
        data["cta_phrases"] = list(self.cta_phrases)
        return data
