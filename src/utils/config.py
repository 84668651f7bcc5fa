"""Configuration loading and validation for reelsmith."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from models.niche import WordBand
from models.render import RenderOptions

# Get the project root directory (parent of src)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Load environment variables from .env file in project root
load_dotenv(PROJECT_ROOT / ".env")

STORY_PROVIDERS = ("template", "gemini")
TTS_PROVIDERS = ("mock", "openai")
IMAGE_PROVIDERS = ("mock", "openai")
STORAGE_PROVIDERS = ("local", "r2")


class ConfigError(Exception):
    """Raised when configuration is invalid at startup."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Invalid configuration: " + "; ".join(errors))


@dataclass(frozen=True)
class ProviderSettings:
    story: str = "template"
    tts: str = "mock"
    image: str = "mock"
    storage: str = "local"
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_tts_model: str = "tts-1"
    openai_image_model: str = "dall-e-3"
    r2_account_id: str | None = None
    r2_access_key_id: str | None = None
    r2_secret_access_key: str | None = None
    r2_bucket_name: str | None = None
    r2_public_url: str | None = None


@dataclass(frozen=True)
class Settings:
    """Typed application settings, validated once at startup."""

    output_dir: Path = PROJECT_ROOT / "output"
    assets_dir: Path = PROJECT_ROOT / "assets"
    storage_base_url: str = "http://localhost:8000"
    default_niche: str = "horror"
    max_scenes: int = 6
    max_video_duration_seconds: float = 70.0
    story_word_band: WordBand = field(default_factory=WordBand)
    render: RenderOptions = field(default_factory=RenderOptions)
    providers: ProviderSettings = field(default_factory=ProviderSettings)
    keep_intermediates: bool = False
    ffmpeg_timeout_seconds: int = 600
    log_level: str = "INFO"
    log_json: bool = False
    port: int = 8000

    @property
    def jobs_dir(self) -> Path:
        return self.assets_dir / "jobs"

    def job_dir(self, job_id: str) -> Path:
        """Job-scoped working directory."""
        return self.jobs_dir / job_id


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config() -> Settings:
    """Load configuration from environment variables."""

    # Helper function to resolve paths relative to project root
    def resolve_path(path: str | None, default_relative: str) -> Path:
        if not path:
            return PROJECT_ROOT / default_relative
        if Path(path).is_absolute():
            return Path(path)
        return PROJECT_ROOT / path

    render = RenderOptions(
        width=int(os.getenv("RENDER_WIDTH", "1080")),
        height=int(os.getenv("RENDER_HEIGHT", "1920")),
        fps=int(os.getenv("RENDER_FPS", "30")),
        include_captions=_env_bool("ENABLE_CAPTIONS", True),
        include_music=_env_bool("ENABLE_MUSIC", True),
        dark_grade=_env_bool("ENABLE_DARK_GRADE", True),
        vignette=_env_bool("ENABLE_VIGNETTE", True),
        glitch_transitions=_env_bool("ENABLE_GLITCH", True),
        music_volume=float(os.getenv("MUSIC_VOLUME", "0.18")),
    )

    providers = ProviderSettings(
        story=os.getenv("STORY_PROVIDER", "template").lower(),
        tts=os.getenv("TTS_PROVIDER", "mock").lower(),
        image=os.getenv("IMAGE_PROVIDER", "mock").lower(),
        storage=os.getenv("STORAGE_PROVIDER", "local").lower(),
        gemini_api_key=os.getenv("GEMINI_API_KEY"),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        openai_tts_model=os.getenv("OPENAI_TTS_MODEL", "tts-1"),
        openai_image_model=os.getenv("OPENAI_IMAGE_MODEL", "dall-e-3"),
        r2_account_id=os.getenv("R2_ACCOUNT_ID"),
        r2_access_key_id=os.getenv("R2_ACCESS_KEY_ID"),
        r2_secret_access_key=os.getenv("R2_SECRET_ACCESS_KEY"),
        r2_bucket_name=os.getenv("R2_BUCKET_NAME"),
        r2_public_url=os.getenv("R2_PUBLIC_URL"),
    )

    return Settings(
        output_dir=resolve_path(os.getenv("OUTPUT_DIR"), "output"),
        assets_dir=resolve_path(os.getenv("ASSETS_DIR"), "assets"),
        storage_base_url=os.getenv("STORAGE_BASE_URL", "http://localhost:8000").rstrip("/"),
        default_niche=os.getenv("DEFAULT_NICHE", "horror"),
        max_scenes=int(os.getenv("MAX_SCENES", "6")),
        max_video_duration_seconds=float(os.getenv("MAX_VIDEO_DURATION_SECONDS", "70")),
        story_word_band=WordBand(
            min=int(os.getenv("MIN_STORY_WORD_COUNT", "140")),
            max=int(os.getenv("MAX_STORY_WORD_COUNT", "185")),
        ),
        render=render,
        providers=providers,
        keep_intermediates=_env_bool("KEEP_INTERMEDIATES", False),
        ffmpeg_timeout_seconds=int(os.getenv("FFMPEG_TIMEOUT_SECONDS", "600")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_json=_env_bool("LOG_JSON", False),
        port=int(os.getenv("PORT", "8000")),
    )


def validate_config(settings: Settings) -> list[str]:
    """Validate configuration and return list of errors."""
    errors = []
    providers = settings.providers

    if providers.story not in STORY_PROVIDERS:
        errors.append(f"STORY_PROVIDER must be one of {', '.join(STORY_PROVIDERS)}")
    if providers.tts not in TTS_PROVIDERS:
        errors.append(f"TTS_PROVIDER must be one of {', '.join(TTS_PROVIDERS)}")
    if providers.image not in IMAGE_PROVIDERS:
        errors.append(f"IMAGE_PROVIDER must be one of {', '.join(IMAGE_PROVIDERS)}")
    if providers.storage not in STORAGE_PROVIDERS:
        errors.append(f"STORAGE_PROVIDER must be one of {', '.join(STORAGE_PROVIDERS)}")

    # Provider credentials
    if providers.story == "gemini" and not providers.gemini_api_key:
        errors.append("GEMINI_API_KEY is required when STORY_PROVIDER=gemini")
    if "openai" in (providers.tts, providers.image) and not providers.openai_api_key:
        errors.append("OPENAI_API_KEY is required for the openai TTS/image providers")
    if providers.storage == "r2":
        missing = [
            name
            for name, value in (
                ("R2_ACCOUNT_ID", providers.r2_account_id),
                ("R2_ACCESS_KEY_ID", providers.r2_access_key_id),
                ("R2_SECRET_ACCESS_KEY", providers.r2_secret_access_key),
                ("R2_BUCKET_NAME", providers.r2_bucket_name),
            )
            if not value
        ]
        if missing:
            errors.append(f"R2 storage requires {', '.join(missing)}")

    # Numeric ranges
    if not 3 <= settings.max_scenes <= 6:
        errors.append("MAX_SCENES must be between 3 and 6")
    if settings.max_video_duration_seconds < 45:
        errors.append("MAX_VIDEO_DURATION_SECONDS must be at least 45")
    band = settings.story_word_band
    if band.min <= 0 or band.min > band.max:
        errors.append("MIN_STORY_WORD_COUNT must be positive and not above MAX_STORY_WORD_COUNT")
    render = settings.render
    if render.width <= 0 or render.height <= 0 or render.width % 2 or render.height % 2:
        errors.append("RENDER_WIDTH and RENDER_HEIGHT must be positive even numbers")
    if not 1 <= render.fps <= 120:
        errors.append("RENDER_FPS must be between 1 and 120")
    if not 0.0 <= render.music_volume <= 1.0:
        errors.append("MUSIC_VOLUME must be between 0 and 1")
    if settings.ffmpeg_timeout_seconds <= 0:
        errors.append("FFMPEG_TIMEOUT_SECONDS must be positive")

    # Validate local paths exist
    for label, path in (("output", settings.output_dir), ("assets", settings.assets_dir)):
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            errors.append(f"Cannot create {label} folder: {e}")

    return errors


def load_validated_config() -> Settings:
    """Load settings and fail fast when anything is invalid.

    Raises:
        ConfigError: If validation reports any errors
    """
    settings = load_config()
    errors = validate_config(settings)
    if errors:
        raise ConfigError(errors)
    return settings
