"""Gemini-backed story generation using Google GenAI."""

import asyncio
import json
import logging

from google.genai import Client
from google.genai import types

from models.niche import NicheProfile
from models.story import Scene, Story
from services.prompts import PROMPT_VERSIONS, STORY_GENERATOR_V1, strip_markdown_code_blocks
from services.story_builder import (
    StoryGenerationError,
    StoryGenerator,
    first_sentence,
    new_story_id,
)

logger = logging.getLogger(__name__)

MAX_GENERATED_SCENES = 6


class AIService:
    """Thin wrapper around the Gemini client for JSON responses."""

    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash"):
        """Initialize Google GenAI client.

        Args:
            api_key: Google GenAI API key
            model_name: Gemini model to use
        """
        self.api_key = api_key
        self.model_name = model_name
        self.client = Client(api_key=api_key)
        logger.info(f"Initialized AI service with model: {model_name}")

    def generate_json(self, prompt: str, temperature: float = 0.9) -> dict:
        """Run a prompt and parse the JSON object it returns.

        Raises:
            StoryGenerationError: If the response is empty or not a JSON object
        """
        response = self.client.models.generate_content(
            model=self.model_name,
            contents=prompt,
            config=types.GenerateContentConfig(
                temperature=temperature,
                response_mime_type="application/json",
            ),
        )

        if not response.text:
            raise StoryGenerationError("Empty AI response")

        response_text = strip_markdown_code_blocks(response.text)
        try:
            data = json.loads(response_text)
        except json.JSONDecodeError as e:
            logger.debug(f"Raw response: {response.text[:500]}")
            raise StoryGenerationError(f"Failed to parse AI JSON: {e}") from e

        if not isinstance(data, dict):
            raise StoryGenerationError("AI response is not a JSON object")
        return data


class GeminiStoryGenerator(StoryGenerator):
    """Story generator that asks Gemini for a structured story."""

    # Models tend to run a little long; aim below the band ceiling
    max_overshoot = 20

    def __init__(self, ai_service: AIService):
        self.ai = ai_service

    async def generate(
        self,
        prompt: str,
        profile: NicheProfile,
        scene_count_hint: int,
        target_words: int,
        attempt: int = 0,
    ) -> Story:
        logger.info(
            f"Generating story: prompt='{prompt[:60]}', niche={profile.id}, "
            f"scenes={scene_count_hint}, words={target_words}, attempt={attempt}, "
            f"prompt_version={PROMPT_VERSIONS['generate_story']}"
        )
        story_prompt = STORY_GENERATOR_V1.format(
            prompt=prompt,
            niche_name=profile.name,
            tone=profile.story_style.tone,
            structure=", ".join(profile.story_style.structure_template),
            scene_count=scene_count_hint,
            target_words=target_words,
            visual_style=profile.visuals.base_style_prompt,
        )
        # Regenerations run a bit colder to stay inside the rules
        temperature = 0.9 if attempt == 0 else 0.6

        try:
            data = await asyncio.to_thread(self.ai.generate_json, story_prompt, temperature)
        except StoryGenerationError:
            raise
        except Exception as e:
            logger.error(f"Story generation failed: {e}")
            raise StoryGenerationError(f"Gemini request failed: {e}") from e

        return self._parse_story(data, profile)

    def _parse_story(self, data: dict, profile: NicheProfile) -> Story:
        """Parse a Story from the Gemini JSON response.

        Raises:
            StoryGenerationError: If required fields are missing
        """
        title = str(data.get("title", "")).strip()
        if not title:
            raise StoryGenerationError("Story response missing 'title'")

        scenes_data = data.get("scenes")
        if not scenes_data or not isinstance(scenes_data, list):
            raise StoryGenerationError("Story response missing 'scenes' list")

        scenes: list[Scene] = []
        for i, scene_data in enumerate(scenes_data[:MAX_GENERATED_SCENES]):
            if not isinstance(scene_data, dict):
                logger.warning(f"Skipping non-dict scene at index {i}")
                continue
            narration = " ".join(str(scene_data.get("narration", "")).split())
            if not narration:
                logger.warning(f"Skipping scene {i + 1} without narration")
                continue
            description = str(scene_data.get("description", "")).strip() or f"Scene {len(scenes) + 1}"
            image_prompt = str(scene_data.get("image_prompt", "")).strip() or description
            scenes.append(
                Scene(
                    index=len(scenes) + 1,
                    description=description,
                    narration=narration,
                    image_prompt=f"{image_prompt}, {profile.visuals.base_style_prompt}",
                )
            )

        if not scenes:
            raise StoryGenerationError("No valid scenes parsed from story response")

        hashtags = [
            str(tag).strip()
            for tag in data.get("hashtags", []) or []
            if str(tag).strip().startswith("#")
        ]

        return Story(
            id=new_story_id(),
            title=title,
            description=str(data.get("description", "")).strip(),
            hook=str(data.get("hook", "")).strip() or first_sentence(scenes[0].narration),
            scenes=scenes,
            total_duration=0.0,
            word_count=sum(scene.word_count for scene in scenes),
            hashtags=hashtags,
            source="generated",
        )
