"""Provider factories: pick the configured variant of each collaborator."""

import logging

from services.ai_service import AIService, GeminiStoryGenerator
from services.image_generation_service import (
    ImageGenerator,
    OpenAIImageGenerator,
    PlaceholderImageGenerator,
)
from services.r2_storage import R2Storage
from services.storage_service import LocalStorage, StorageBackend
from services.story_builder import StoryGenerator, TemplateStoryGenerator
from services.tts_service import (
    NarrationSynthesizer,
    OpenAISpeechSynthesizer,
    ToneNarrationSynthesizer,
)
from utils.config import Settings

logger = logging.getLogger(__name__)


def create_story_generator(settings: Settings) -> StoryGenerator:
    providers = settings.providers
    if providers.story == "gemini":
        return GeminiStoryGenerator(
            AIService(api_key=providers.gemini_api_key or "", model_name=providers.gemini_model)
        )
    return TemplateStoryGenerator()


def create_narration_synthesizer(settings: Settings) -> NarrationSynthesizer:
    providers = settings.providers
    if providers.tts == "openai":
        return OpenAISpeechSynthesizer(
            api_key=providers.openai_api_key or "",
            output_dir=settings.jobs_dir,
            model=providers.openai_tts_model,
            base_url=providers.openai_base_url,
        )
    return ToneNarrationSynthesizer(
        settings.jobs_dir,
        timeout=settings.ffmpeg_timeout_seconds,
        max_seconds=settings.max_video_duration_seconds,
    )


def create_image_generator(settings: Settings) -> ImageGenerator:
    providers = settings.providers
    if providers.image == "openai":
        return OpenAIImageGenerator(
            api_key=providers.openai_api_key or "",
            output_dir=settings.jobs_dir,
            model=providers.openai_image_model,
            base_url=providers.openai_base_url,
        )
    return PlaceholderImageGenerator(settings.jobs_dir, timeout=settings.ffmpeg_timeout_seconds)


def create_storage(settings: Settings) -> StorageBackend:
    providers = settings.providers
    if providers.storage == "r2":
        logger.info(f"Persisting outputs to R2 bucket {providers.r2_bucket_name}")
        return R2Storage(
            account_id=providers.r2_account_id or "",
            access_key_id=providers.r2_access_key_id or "",
            secret_access_key=providers.r2_secret_access_key or "",
            bucket_name=providers.r2_bucket_name or "",
            public_url=providers.r2_public_url,
        )
    logger.info(f"Persisting outputs to {settings.output_dir}")
    return LocalStorage(settings.output_dir, base_url=settings.storage_base_url)


def describe_providers(settings: Settings) -> dict[str, str]:
    """Selected provider per concern, for logs and the health route."""
    providers = settings.providers
    return {
        "story": providers.story,
        "tts": providers.tts,
        "image": providers.image,
        "storage": providers.storage,
    }
