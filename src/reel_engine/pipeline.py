"""Pipeline orchestrator: validates submissions and runs the job stages.

Stage order per job:
    niche -> story -> safety/validation -> narration -> durations ->
    visuals -> captions -> render -> persist
"""

import logging
import random
from pathlib import Path

from models.job import (
    JOB_TYPE_SHORT_VIDEO,
    Job,
    JobRequest,
    JobResult,
    JobStage,
    QueueStats,
    utc_now,
)
from models.niche import NicheProfile
from models.render import RenderOptions, RenderRequest, RenderScene
from models.story import Story
from reel_engine.caption_builder import build_caption_segments, write_srt
from reel_engine.duration_allocator import apply_durations
from reel_engine.job_queue import JobQueue
from reel_engine.subtitle_engine import SubtitleEngine
from reel_engine.video_composer import VideoComposer
from services.content_filter import check_story
from services.image_generation_service import ImageGenerator
from services.niche_registry import NicheRegistry
from services.providers import (
    create_image_generator,
    create_narration_synthesizer,
    create_storage,
    create_story_generator,
)
from services.storage_service import StorageBackend
from services.story_builder import StoryBuilder, StoryGenerationError
from services.tts_service import NarrationSynthesizer
from utils.config import Settings
from utils.files import ensure_dir, job_asset_name
from utils.logging import job_context, set_stage

logger = logging.getLogger(__name__)

SUPPORTED_JOB_TYPES = (JOB_TYPE_SHORT_VIDEO,)
STORY_ATTEMPTS = 2
MAX_HASHTAGS = 10

# Progress checkpoints
PROGRESS_STORY_READY = 20
PROGRESS_NARRATION_READY = 35
PROGRESS_DURATIONS_READY = 40
PROGRESS_VISUALS_DONE = 55
PROGRESS_CAPTIONS_READY = 65
PROGRESS_RENDER_COMPLETE = 95


# =============================================================================
# Errors
# =============================================================================


class JobValidationError(ValueError):
    """Bad caller input; the job never enters the queue."""

    pass


class PipelineError(Exception):
    """Terminal failure while processing a job."""

    pass


class ContentSafetyError(PipelineError):
    """Story still trips a hard-ban rule after the allowed retries."""

    def __init__(self, labels: list[str]):
        self.labels = sorted(set(labels))
        super().__init__(f"Story failed content safety checks: {', '.join(self.labels)}")


class StoryValidationError(PipelineError):
    """Story is outside the scene or word bounds after the allowed retries."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__(f"Story failed validation: {'; '.join(problems)}")


# =============================================================================
# Result helpers
# =============================================================================


def build_description(story: Story, profile: NicheProfile, rng: random.Random | None = None) -> str:
    cta = (rng or random.Random(story.id)).choice(profile.cta_phrases) if profile.cta_phrases else ""
    return " ".join(f"{story.title}: {story.hook} {cta}".split())


def merge_hashtags(defaults, generated, limit: int = MAX_HASHTAGS) -> list[str]:
    """Profile defaults first, then generated tags; case-insensitive dedupe."""
    seen = set()
    merged = []
    for tag in [*defaults, *generated]:
        tag = tag.strip()
        if not tag:
            continue
        if not tag.startswith("#"):
            tag = f"#{tag}"
        key = tag.lower()
        if key in seen:
            continue
        seen.add(key)
        merged.append(tag)
    return merged[:limit]


def resolve_render_options(
    defaults: RenderOptions, profile: NicheProfile, request: JobRequest
) -> RenderOptions:
    """Configured options, then the profile's music settings, then per-job overrides."""
    overrides = request.render
    return RenderOptions(
        width=defaults.width,
        height=defaults.height,
        fps=defaults.fps,
        include_captions=_pick(overrides.include_captions, defaults.include_captions),
        include_music=_pick(
            overrides.include_music, defaults.include_music and profile.music.add_music
        ),
        dark_grade=_pick(overrides.dark_grade, defaults.dark_grade),
        vignette=_pick(overrides.vignette, defaults.vignette),
        glitch_transitions=_pick(overrides.glitch_transitions, defaults.glitch_transitions),
        music_volume=_pick(
            overrides.music_volume,
            _pick(profile.music.music_volume, defaults.music_volume),
        ),
    )


def _pick(value, fallback):
    return fallback if value is None else value


# =============================================================================
# Orchestrator
# =============================================================================


class Orchestrator:
    """Accepts jobs and runs them through the pipeline one at a time."""

    def __init__(
        self,
        settings: Settings,
        registry: NicheRegistry,
        story_builder: StoryBuilder,
        narrator: NarrationSynthesizer,
        image_generator: ImageGenerator,
        composer: VideoComposer,
        storage: StorageBackend,
        subtitle_engine: SubtitleEngine | None = None,
    ):
        self.settings = settings
        self.registry = registry
        self.story_builder = story_builder
        self.narrator = narrator
        self.image_generator = image_generator
        self.composer = composer
        self.storage = storage
        self.subtitle_engine = subtitle_engine or SubtitleEngine()
        self.queue = JobQueue(self._process_job)

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    def create_job(self, request: JobRequest) -> Job:
        """Validate a submission and queue it.

        Returns:
            The pending job snapshot

        Raises:
            JobValidationError: If the request is malformed
            UnknownNicheError: If the niche id is not registered
        """
        self.validate_request(request)
        self.registry.get_profile(request.niche_id)
        return self.queue.create_job(request, job_type=request.job_type)

    def validate_request(self, request: JobRequest) -> None:
        if request.job_type not in SUPPORTED_JOB_TYPES:
            raise JobValidationError(f"Unsupported job type: {request.job_type}")

        if request.story is None:
            if request.prompt is None:
                raise JobValidationError("Either a prompt or a story script is required")
            if not request.prompt.strip():
                raise JobValidationError("Prompt must not be blank")
        else:
            if not request.story.scenes:
                raise JobValidationError("Story script must contain at least one scene")
            empty = [
                str(i + 1)
                for i, scene in enumerate(request.story.scenes)
                if not scene.narration.strip()
            ]
            if empty:
                raise JobValidationError(f"Scenes without narration: {', '.join(empty)}")

        if request.target_duration is not None and request.target_duration <= 0:
            raise JobValidationError("Target duration must be positive")

    def get_job(self, job_id: str) -> Job | None:
        return self.queue.get_job(job_id)

    def get_queue_stats(self) -> QueueStats:
        return self.queue.get_stats()

    async def join(self) -> None:
        await self.queue.join()

    async def close(self) -> None:
        await self.narrator.close()
        await self.image_generator.close()

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def _report(self, job_id: str, progress: int, stage: JobStage) -> None:
        set_stage(stage.value)
        self.queue.report_progress(job_id, progress, stage)

    async def _process_job(self, job: Job) -> JobResult:
        with job_context(job.id):
            set_stage(JobStage.INIT.value)
            return await self._run_stages(job)

    async def _run_stages(self, job: Job) -> JobResult:
        request = job.request
        started_at = job.created_at
        job_dir = ensure_dir(self.settings.job_dir(job.id))

        # Niche
        profile = self.registry.get_profile(request.niche_id)
        logger.info(f"Starting pipeline for job {job.id} (niche={profile.id})")

        # Story, safety and bounds
        story = await self._prepare_story(job, profile)
        logger.info(
            f"Story ready: '{story.title}', {len(story.scenes)} scenes, {story.word_count} words"
        )

        # Narration
        narration_path = await self.narrator.synthesize(
            story.full_script, profile.voice.voice_id, profile.voice.speed, job.id
        )
        narration_duration = await self.narrator.probe_duration(narration_path)
        if narration_duration > self.settings.max_video_duration_seconds:
            logger.warning(
                f"Narration runs {narration_duration:.2f}s, "
                f"above the {self.settings.max_video_duration_seconds:.0f}s maximum"
            )
        self._report(job.id, PROGRESS_NARRATION_READY, JobStage.NARRATION_READY)

        # Durations follow the measured narration
        apply_durations(story.scenes, narration_duration)
        story.total_duration = round(narration_duration, 2)
        self._report(job.id, PROGRESS_DURATIONS_READY, JobStage.DURATIONS_READY)

        # Visuals, one scene at a time
        span = PROGRESS_VISUALS_DONE - PROGRESS_DURATIONS_READY
        for done, scene in enumerate(story.scenes, start=1):
            scene.asset_path = await self.image_generator.generate(
                scene.image_prompt, scene.index, profile, job.id
            )
            progress = PROGRESS_DURATIONS_READY + round(span * done / len(story.scenes))
            self._report(job.id, progress, JobStage.VISUALS)

        # Captions
        segments = build_caption_segments(story.scenes)
        srt_path = write_srt(segments, job_dir / job_asset_name("captions", job.id, "srt"))
        options = resolve_render_options(self.settings.render, profile, request)
        ass_content = self.subtitle_engine.generate_ass_subtitles(
            segments, profile.captions, options.width, options.height
        )
        ass_path = self.subtitle_engine.save_ass_file(
            ass_content, job_dir / job_asset_name("captions", job.id, "ass")
        )
        self._report(job.id, PROGRESS_CAPTIONS_READY, JobStage.CAPTIONS_READY)

        # Render
        render = await self.composer.compose(
            RenderRequest(
                job_id=job.id,
                scenes=[
                    RenderScene(
                        image_path=Path(scene.asset_path),
                        duration=scene.duration,
                        caption=scene.narration,
                    )
                    for scene in story.scenes
                ],
                narration_path=narration_path,
                narration_duration=narration_duration,
                output_path=job_dir / job_asset_name("video", job.id, "mp4"),
                subtitle_path=ass_path,
                options=options,
            )
        )
        self._report(job.id, PROGRESS_RENDER_COMPLETE, JobStage.RENDER_COMPLETE)

        # Persist
        video_durable = await self.storage.persist(render.video_path)
        srt_durable = await self.storage.persist(srt_path)
        ass_durable = await self.storage.persist(ass_path)
        narration_durable = await self.storage.persist(narration_path)
        image_durables = [await self.storage.persist(Path(scene.asset_path)) for scene in story.scenes]

        return JobResult(
            video_path=video_durable,
            video_url=self.storage.public_url(video_durable),
            subtitle_path=srt_durable,
            description=build_description(story, profile),
            hashtags=merge_hashtags(profile.default_hashtags, story.hashtags),
            story=story,
            duration_seconds=render.duration,
            requested_duration=render.requested_duration,
            width=render.width,
            height=render.height,
            fps=render.fps,
            narration_audio=narration_durable,
            scene_images=image_durables,
            captions_file=srt_durable,
            styled_captions_file=ass_durable,
            created_at=started_at,
            completed_at=utc_now(),
        )

    async def _prepare_story(self, job: Job, profile: NicheProfile) -> Story:
        """Build the story and run safety and bounds checks.

        Caller scripts get a single check. Generated stories get one
        regeneration from the original prompt with the next attempt number.

        Raises:
            ContentSafetyError: Hard-ban labels remain after the last attempt
            StoryValidationError: Bounds still violated after the last attempt
            PipelineError: The story provider failed on every attempt
        """
        request = job.request
        if request.story is not None:
            story = self.story_builder.from_input(request.story)
            self._report(job.id, PROGRESS_STORY_READY, JobStage.STORY_READY)
            return self._screen_story(story, profile)

        last_error: PipelineError | None = None
        for attempt in range(STORY_ATTEMPTS):
            try:
                story = await self.story_builder.generate(
                    request.prompt, profile, request.target_duration, attempt=attempt
                )
            except StoryGenerationError as e:
                logger.warning(f"Story generation attempt {attempt + 1} failed: {e}")
                last_error = PipelineError(f"Story generation failed: {e}")
                continue

            self._report(job.id, PROGRESS_STORY_READY, JobStage.STORY_READY)
            try:
                return self._screen_story(story, profile)
            except PipelineError as e:
                logger.warning(f"Story attempt {attempt + 1} rejected, regenerating: {e}")
                last_error = e

        raise last_error

    def _screen_story(self, story: Story, profile: NicheProfile) -> Story:
        report = check_story(story)
        if report.replacements:
            logger.info(f"Softened {report.replacements} phrases in story {story.id}")
        if not report.is_safe:
            raise ContentSafetyError(report.flags)

        problems = self.story_builder.validate(report.story, profile)
        if problems:
            raise StoryValidationError(problems)
        return report.story


def create_orchestrator(settings: Settings) -> Orchestrator:
    """Wire an Orchestrator from configured providers."""
    registry = NicheRegistry(default_niche_id=settings.default_niche)
    return Orchestrator(
        settings=settings,
        registry=registry,
        story_builder=StoryBuilder(
            create_story_generator(settings),
            word_band=settings.story_word_band,
            max_duration=settings.max_video_duration_seconds,
            max_scenes=settings.max_scenes,
        ),
        narrator=create_narration_synthesizer(settings),
        image_generator=create_image_generator(settings),
        composer=VideoComposer(
            work_root=settings.jobs_dir,
            keep_intermediates=settings.keep_intermediates,
            timeout=settings.ffmpeg_timeout_seconds,
        ),
        storage=create_storage(settings),
    )
