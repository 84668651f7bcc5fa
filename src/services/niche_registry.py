"""Built-in niche profiles and the registry that serves them.

Profiles are validated when the registry is constructed, so a bad profile
fails the process at startup instead of a job at runtime.
"""

import logging

from models.niche import (
    CaptionPlacement,
    CaptionStyle,
    MusicStyle,
    NicheProfile,
    StoryStyle,
    VisualStyle,
    VoiceStyle,
    WordBand,
)

logger = logging.getLogger(__name__)


class UnknownNicheError(ValueError):
    """Raised when a niche id is not registered."""


class InvalidNicheProfileError(ValueError):
    """Raised when a built-in or custom profile breaks its constraints."""


HORROR_PROFILE = NicheProfile(
    id="horror",
    name="Horror & Creepy Stories",
    description=(
        "Short-form horror narratives with strong hooks and unsettling endings"
    ),
    story_style=StoryStyle(
        tone="tense, suspenseful, eerie",
        structure_template=("hook", "build", "twist", "ending"),
        default_length_seconds=60,
        target_word_count=WordBand(min=140, max=185),
    ),
    visuals=VisualStyle(
        base_style_prompt=(
            "dark cinematic horror lighting, cold moonlight, volumetric fog, "
            "35mm film grain, moody atmosphere"
        ),
        num_scenes=4,
        image_size="1024x1792",
    ),
    voice=VoiceStyle(voice_id="onyx", speed=1.0, model="tts-1"),
    music=MusicStyle(add_music=True, mood="eerie, unsettling, dark ambient", music_volume=0.18),
    captions=CaptionStyle(
        font_family="DejaVu Sans",
        font_size=52,
        font_color="white",
        placement=CaptionPlacement.BOTTOM,
    ),
    default_hashtags=(
        "#horrortok",
        "#scarystory",
        "#creepypasta",
        "#aivideo",
        "#nightshift",
        "#spooky",
        "#fyp",
    ),
    cta_phrases=("Stay unsettled.", "Turn on the lights.", "Sweet nightmares.", "Part 2?"),
)

REDDIT_STORIES_PROFILE = NicheProfile(
    id="reddit_stories",
    name="Reddit Stories",
    description="Engaging true stories from Reddit with conversational narration",
    story_style=StoryStyle(
        tone="conversational, engaging, relatable",
        structure_template=("setup", "conflict", "climax", "resolution"),
        default_length_seconds=60,
        target_word_count=WordBand(min=150, max=200),
    ),
    visuals=VisualStyle(
        base_style_prompt=(
            "modern minimalist aesthetic, clean typography, vibrant gradients, "
            "professional look"
        ),
        num_scenes=4,
        image_size="1024x1792",
    ),
    voice=VoiceStyle(voice_id="nova", speed=1.05, model="tts-1"),
    music=MusicStyle(add_music=True, mood="upbeat, casual, lofi background", music_volume=0.15),
    captions=CaptionStyle(
        font_family="DejaVu Sans",
        font_size=48,
        font_color="white",
        placement=CaptionPlacement.CENTER,
    ),
    default_hashtags=(
        "#reddit",
        "#redditstories",
        "#storytime",
        "#aita",
        "#relationship",
        "#drama",
        "#fyp",
    ),
    cta_phrases=(
        "What would you do?",
        "Part 2 coming soon.",
        "Drop your thoughts below.",
        "Follow for more stories.",
    ),
)

BUILTIN_PROFILES = (HORROR_PROFILE, REDDIT_STORIES_PROFILE)


def validate_profile(profile: NicheProfile) -> list[str]:
    """Return the list of constraint violations for a profile."""
    errors = []
    style = profile.story_style
    if not profile.id:
        errors.append("id must not be empty")
    if not 30 <= style.default_length_seconds <= 180:
        errors.append("default_length_seconds must be between 30 and 180")
    if len(style.structure_template) < 1:
        errors.append("structure_template must not be empty")
    if style.target_word_count.min < 100 or style.target_word_count.min > style.target_word_count.max:
        errors.append("target_word_count must satisfy 100 <= min <= max")
    if not 3 <= profile.visuals.num_scenes <= 6:
        errors.append("num_scenes must be between 3 and 6")
    if not 0.25 <= profile.voice.speed <= 4.0:
        errors.append("voice speed must be between 0.25 and 4.0")
    if profile.music.music_volume is not None and not 0.0 <= profile.music.music_volume <= 1.0:
        errors.append("music_volume must be between 0 and 1")
    if not 20 <= profile.captions.font_size <= 100:
        errors.append("caption font_size must be between 20 and 100")
    if len(profile.default_hashtags) < 3:
        errors.append("at least 3 default hashtags are required")
    if any(not tag.startswith("#") for tag in profile.default_hashtags):
        errors.append("hashtags must start with '#'")
    return errors


class NicheRegistry:
    """Lookup of niche profiles by id."""

    def __init__(self, profiles=BUILTIN_PROFILES, default_niche_id: str = "horror"):
        self._profiles: dict[str, NicheProfile] = {}
        for profile in profiles:
            errors = validate_profile(profile)
            if errors:
                raise InvalidNicheProfileError(
                    f"Invalid niche profile '{profile.id}': {'; '.join(errors)}"
                )
            self._profiles[profile.id] = profile

        if default_niche_id not in self._profiles:
            raise UnknownNicheError(
                f"Default niche '{default_niche_id}' is not registered. "
                f"Available niches: {', '.join(self.available_ids())}"
            )
        self.default_niche_id = default_niche_id

        logger.info(f"Niche profiles loaded: {', '.join(self.available_ids())}")

    def get_profile(self, niche_id: str | None = None) -> NicheProfile:
        """Resolve a profile, falling back to the default niche.

        Raises:
            UnknownNicheError: If the id is not registered
        """
        niche_id = niche_id or self.default_niche_id
        profile = self._profiles.get(niche_id)
        if profile is None:
            raise UnknownNicheError(
                f'Unknown niche profile: "{niche_id}". '
                f"Available niches: {', '.join(self.available_ids())}"
            )
        return profile

    def has_profile(self, niche_id: str) -> bool:
        return niche_id in self._profiles

    def available_ids(self) -> list[str]:
        return list(self._profiles)

    def all_profiles(self) -> list[NicheProfile]:
        return list(self._profiles.values())
