"""Story building: caller scripts, generated stories and story validation.

Generated stories come from a StoryGenerator. The offline
TemplateStoryGenerator assembles narration from line banks; the Gemini
generator lives in services.ai_service.
"""

import logging
import math
import random
import re
import string
import uuid
from abc import ABC, abstractmethod
from itertools import cycle

from models.niche import NicheProfile, WordBand
from models.story import Scene, Story, StoryInput, count_words
from services.story_banks import (
    MAX_LINE_WORDS,
    OPENING_LINES,
    STAGE_BANKS,
    STAGE_VISUALS,
)

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 155
MIN_STORY_SECONDS = 45.0
MIN_SCENES = 3
STAGE_WEIGHTS = (0.20, 0.30, 0.28, 0.22)
MIN_STAGE_WORDS = 25

_FIRST_SENTENCE_RE = re.compile(r"^.*?[.!?](?=\s|$)")


class StoryGenerationError(Exception):
    """Raised when a story cannot be generated from a prompt."""


def new_story_id() -> str:
    return f"story_{uuid.uuid4().hex[:12]}"


def estimate_duration(word_count: int, max_duration: float) -> float:
    """Estimate narration length at 155 wpm, clamped to [45s, max_duration]."""
    seconds = word_count / WORDS_PER_MINUTE * 60
    return round(min(max(seconds, MIN_STORY_SECONDS), max_duration), 2)


def words_for_duration(seconds: float) -> int:
    return round(seconds * WORDS_PER_MINUTE / 60)


def first_sentence(text: str) -> str:
    text = " ".join(text.split())
    match = _FIRST_SENTENCE_RE.match(text)
    return match.group(0) if match else text


def prompt_subject(prompt: str, max_words: int = 4) -> str:
    """Short lower-case subject phrase taken from the prompt."""
    words = re.findall(r"[A-Za-z0-9][A-Za-z0-9'-]*", prompt)
    return " ".join(words[:max_words]).lower()


class StoryGenerator(ABC):
    """Produces a Story from a free-text prompt."""

    # Largest amount by which a generated story may exceed target_words
    max_overshoot: int = 0

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        profile: NicheProfile,
        scene_count_hint: int,
        target_words: int,
        attempt: int = 0,
    ) -> Story:
        """Generate a story.

        Args:
            prompt: Free-text prompt from the caller
            profile: Niche profile (tone, structure, visual style)
            scene_count_hint: Preferred number of scenes
            target_words: Desired total narration word count
            attempt: Zero-based attempt number; regenerations pass 1

        Returns:
            Story with 1-based scene indexes

        Raises:
            StoryGenerationError: If no usable story could be produced
        """

    def get_provider_name(self) -> str:
        return type(self).__name__


class TemplateStoryGenerator(StoryGenerator):
    """Offline generator using the four-stage template and line banks.

    Stage word floors are max(25, ceil(target * weight)); each stage takes
    whole lines from its bank until its floor is met. Line choice is seeded
    from niche, prompt and attempt, so the same request is reproducible
    while a regeneration draws different lines.
    """

    max_overshoot = len(STAGE_WEIGHTS) * (MAX_LINE_WORDS - 1) + len(STAGE_WEIGHTS)

    async def generate(
        self,
        prompt: str,
        profile: NicheProfile,
        scene_count_hint: int,
        target_words: int,
        attempt: int = 0,
    ) -> Story:
        subject = prompt_subject(prompt)
        if not subject:
            raise StoryGenerationError("Prompt contains no usable words")

        banks = STAGE_BANKS.get(profile.id, STAGE_BANKS["horror"])
        opening = OPENING_LINES.get(profile.id, OPENING_LINES["horror"])
        stage_names = list(profile.story_style.structure_template[: len(STAGE_WEIGHTS)])
        if len(stage_names) < len(STAGE_WEIGHTS):
            stage_names = ["hook", "build", "twist", "ending"]

        rng = random.Random(f"{profile.id}:{prompt.strip().lower()}:{attempt}")
        floors = [max(MIN_STAGE_WORDS, math.ceil(target_words * w)) for w in STAGE_WEIGHTS]

        scenes = []
        for position, (stage, bank, floor) in enumerate(zip(stage_names, banks, floors)):
            lines = [opening.format(subject=subject)] if position == 0 else []
            shuffled = list(bank)
            rng.shuffle(shuffled)
            pool = cycle(shuffled)
            while count_words(" ".join(lines)) < floor:
                lines.append(next(pool))

            scenes.append(
                Scene(
                    index=position + 1,
                    description=f"{stage.title()}: {subject}",
                    narration=" ".join(lines),
                    image_prompt=(
                        f"{subject}, {STAGE_VISUALS[position]}, "
                        f"{profile.visuals.base_style_prompt}"
                    ),
                )
            )

        title = string.capwords(subject if subject.startswith("the ") else f"the {subject}")
        word_count = sum(scene.word_count for scene in scenes)
        logger.info(
            f"Template story generated: '{title}', {len(scenes)} scenes, "
            f"{word_count} words (target {target_words}, attempt {attempt})"
        )

        return Story(
            id=new_story_id(),
            title=title,
            description=f"A {profile.story_style.tone} story about {subject}.",
            hook=first_sentence(scenes[0].narration),
            scenes=scenes,
            total_duration=0.0,
            word_count=word_count,
            source="generated",
        )


class StoryBuilder:
    """Builds, sizes and validates stories for the pipeline."""

    def __init__(
        self,
        generator: StoryGenerator,
        word_band: WordBand,
        max_duration: float = 70.0,
        max_scenes: int = 6,
    ):
        self.generator = generator
        self.word_band = word_band
        self.max_duration = max_duration
        self.max_scenes = max_scenes

    def effective_band(self, profile: NicheProfile) -> WordBand:
        """Configured band narrowed by the profile's own target band."""
        band = self.word_band.intersect(profile.story_style.target_word_count)
        if band.min > band.max:
            return self.word_band
        return band

    def choose_target_words(
        self,
        profile: NicheProfile,
        target_duration: float | None = None,
        rng: random.Random | None = None,
    ) -> int:
        """Pick the word target handed to the generator.

        Derived from the requested duration when given, otherwise drawn from
        the band. The upper end leaves room for the generator's overshoot.
        """
        band = self.effective_band(profile)
        upper = max(band.min, band.max - self.generator.max_overshoot)
        if target_duration:
            target = words_for_duration(target_duration)
        else:
            target = (rng or random.Random()).randint(band.min, upper)
        return min(max(target, band.min), upper)

    def from_input(self, story_input: StoryInput) -> Story:
        """Take a caller script verbatim."""
        scenes = [
            Scene(
                index=i + 1,
                description=item.description or f"Scene {i + 1}",
                narration=item.narration.strip(),
                image_prompt=item.image_prompt,
            )
            for i, item in enumerate(story_input.scenes)
        ]
        if not scenes:
            raise StoryGenerationError("Script has no scenes")

        word_count = sum(scene.word_count for scene in scenes)
        return Story(
            id=new_story_id(),
            title=story_input.title.strip() or "Untitled",
            description=story_input.description.strip(),
            hook=first_sentence(scenes[0].narration),
            scenes=scenes,
            total_duration=estimate_duration(word_count, self.max_duration),
            word_count=word_count,
            source="caller",
        )

    async def generate(
        self,
        prompt: str,
        profile: NicheProfile,
        target_duration: float | None = None,
        attempt: int = 0,
    ) -> Story:
        """Generate a story from a prompt through the configured generator.

        Raises:
            StoryGenerationError: If the generator returns no usable scenes
        """
        target_words = self.choose_target_words(
            profile, target_duration, random.Random(f"{prompt}:{attempt}")
        )
        scene_count_hint = min(profile.visuals.num_scenes, self.max_scenes)
        story = await self.generator.generate(
            prompt, profile, scene_count_hint, target_words, attempt=attempt
        )
        if not story.scenes:
            raise StoryGenerationError(f"Generator returned no scenes for prompt '{prompt[:60]}'")

        story.word_count = sum(scene.word_count for scene in story.scenes)
        story.total_duration = estimate_duration(story.word_count, self.max_duration)
        story.source = "generated"
        return story

    def validate(self, story: Story, profile: NicheProfile) -> list[str]:
        """Validate story bounds and return list of problems."""
        problems = []
        band = self.effective_band(profile)
        scene_count = len(story.scenes)

        if scene_count < MIN_SCENES:
            problems.append(f"story has {scene_count} scenes, minimum is {MIN_SCENES}")
        if scene_count > self.max_scenes:
            problems.append(f"story has {scene_count} scenes, maximum is {self.max_scenes}")
        if not band.contains(story.word_count):
            problems.append(
                f"story has {story.word_count} words, expected {band.min}-{band.max}"
            )
        empty = [scene.index for scene in story.scenes if not scene.narration.strip()]
        if empty:
            problems.append(f"scenes without narration: {', '.join(map(str, empty))}")
        return problems
