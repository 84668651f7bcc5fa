"""Unit tests for story building, template generation and validation."""

import random

import pytest

from models.niche import WordBand
from models.story import SceneInput, StoryInput
from services.niche_registry import HORROR_PROFILE, REDDIT_STORIES_PROFILE
from services.story_builder import (
    StoryBuilder,
    StoryGenerationError,
    TemplateStoryGenerator,
    estimate_duration,
    first_sentence,
    prompt_subject,
    words_for_duration,
)


@pytest.fixture
def builder() -> StoryBuilder:
    return StoryBuilder(TemplateStoryGenerator(), word_band=WordBand(140, 185))


@pytest.mark.unit
class TestHelpers:
    @pytest.mark.parametrize(
        "words,expected",
        [(155, 60.0), (50, 45.0), (300, 70.0), (170, 65.81)],
    )
    def test_estimate_duration_clamped(self, words, expected):
        assert estimate_duration(words, max_duration=70.0) == expected

    def test_words_for_duration(self):
        assert words_for_duration(60) == 155
        assert words_for_duration(30) == 78

    def test_first_sentence(self):
        assert first_sentence("It knocked. Twice.") == "It knocked."
        assert first_sentence("no punctuation here") == "no punctuation here"

    def test_prompt_subject(self):
        assert prompt_subject("  The Abandoned   LIGHTHOUSE!! at dawn and dusk") == "the abandoned lighthouse at"
        assert prompt_subject("!!!") == ""


@pytest.mark.unit
class TestFromInput:
    def test_scenes_taken_verbatim(self, builder, horror_script):
        story = builder.from_input(horror_script)

        assert story.source == "caller"
        assert not story.is_generated
        assert [s.index for s in story.scenes] == [1, 2, 3, 4]
        assert [s.narration for s in story.scenes] == [s.narration for s in horror_script.scenes]
        assert story.word_count == 143
        assert story.total_duration == estimate_duration(143, 70.0)
        assert story.hook == "The lighthouse keeper vanished in nineteen seventy."

    def test_image_prompt_defaults_to_description(self, builder):
        story = builder.from_input(
            StoryInput(title="T", scenes=[SceneInput(narration="Hi.", description="A dark hall")])
        )
        assert story.scenes[0].image_prompt == "A dark hall"

    def test_empty_script_raises(self, builder):
        with pytest.raises(StoryGenerationError):
            builder.from_input(StoryInput(title="T", scenes=[]))


@pytest.mark.unit
class TestTargetWords:
    def test_effective_band_is_intersection(self, builder):
        assert builder.effective_band(HORROR_PROFILE) == WordBand(140, 185)
        assert builder.effective_band(REDDIT_STORIES_PROFILE) == WordBand(150, 185)

    def test_duration_is_clamped_into_band(self, builder):
        upper = 185 - TemplateStoryGenerator.max_overshoot
        assert builder.choose_target_words(HORROR_PROFILE, target_duration=20) == 140
        assert builder.choose_target_words(HORROR_PROFILE, target_duration=300) == upper
        assert builder.choose_target_words(HORROR_PROFILE, target_duration=57) == 147

    def test_drawn_target_leaves_overshoot_headroom(self, builder):
        rng = random.Random(7)
        upper = 185 - TemplateStoryGenerator.max_overshoot
        for _ in range(50):
            assert 140 <= builder.choose_target_words(HORROR_PROFILE, rng=rng) <= upper


@pytest.mark.unit
class TestGenerate:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("profile", [HORROR_PROFILE, REDDIT_STORIES_PROFILE])
    @pytest.mark.parametrize(
        "prompt", ["abandoned lighthouse", "the neighbour's dog", "a hotel room with no windows"]
    )
    async def test_generated_story_is_valid(self, builder, profile, prompt):
        story = await builder.generate(prompt, profile)

        assert story.source == "generated"
        assert len(story.scenes) == 4
        assert builder.validate(story, profile) == []
        assert 45.0 <= story.total_duration <= 70.0
        assert all(scene.narration for scene in story.scenes)
        assert all(profile.visuals.base_style_prompt in scene.image_prompt for scene in story.scenes)

    @pytest.mark.asyncio
    async def test_same_attempt_is_reproducible(self, builder):
        first = await builder.generate("abandoned lighthouse", HORROR_PROFILE)
        second = await builder.generate("abandoned lighthouse", HORROR_PROFILE)
        assert first.full_script == second.full_script
        assert first.title == "The Abandoned Lighthouse"

    @pytest.mark.asyncio
    async def test_regeneration_draws_different_lines(self, builder):
        first = await builder.generate("abandoned lighthouse", HORROR_PROFILE, attempt=0)
        retry = await builder.generate("abandoned lighthouse", HORROR_PROFILE, attempt=1)
        assert first.full_script != retry.full_script
        assert "abandoned lighthouse" in retry.scenes[0].narration

    @pytest.mark.asyncio
    async def test_stage_floors_respected(self):
        generator = TemplateStoryGenerator()
        story = await generator.generate("cellar door", HORROR_PROFILE, 4, target_words=150)
        floors = [30, 45, 42, 33]
        for scene, floor in zip(story.scenes, floors):
            assert scene.word_count >= floor
            assert scene.word_count < floor + 8 + 9

    @pytest.mark.asyncio
    async def test_prompt_without_words_raises(self, builder):
        with pytest.raises(StoryGenerationError):
            await builder.generate("?!", HORROR_PROFILE)


@pytest.mark.unit
class TestValidate:
    def test_valid_story(self, builder, horror_story):
        assert builder.validate(horror_story, HORROR_PROFILE) == []

    def test_too_few_scenes_and_words(self, builder, horror_story):
        horror_story.scenes = horror_story.scenes[:2]
        horror_story.word_count = sum(s.word_count for s in horror_story.scenes)
        problems = builder.validate(horror_story, HORROR_PROFILE)
        assert any("minimum is 3" in p for p in problems)
        assert any("expected 140-185" in p for p in problems)

    def test_too_many_scenes(self, horror_story):
        builder = StoryBuilder(TemplateStoryGenerator(), WordBand(140, 185), max_scenes=3)
        problems = builder.validate(horror_story, HORROR_PROFILE)
        assert problems == ["story has 4 scenes, maximum is 3"]
