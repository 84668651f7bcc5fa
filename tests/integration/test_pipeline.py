"""End-to-end pipeline tests with offline providers.

FFmpeg and ffprobe are replaced by the FakeFFmpeg fixture, so every stage
(story, narration, durations, visuals, captions, render, persist) runs
without network access or an FFmpeg install.
"""

import copy
from dataclasses import replace
from pathlib import Path

import pytest

from models.job import JobRequest, JobStage, JobStatus, RenderOverrides
from models.story import SceneInput, StoryInput
from reel_engine.pipeline import (
    ContentSafetyError,
    JobValidationError,
    build_description,
    create_orchestrator,
    merge_hashtags,
    resolve_render_options,
)
from services.niche_registry import HORROR_PROFILE, UnknownNicheError
from services.story_builder import StoryGenerationError, StoryGenerator

UNSAFE_LINE = " The last tenant died by suicide in the lamp room."


class ScriptedGenerator(StoryGenerator):
    """Returns queued stories (or raises queued errors) one attempt at a time."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.attempts = []

    async def generate(self, prompt, profile, scene_count_hint, target_words, attempt=0):
        self.attempts.append((prompt, attempt))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return copy.deepcopy(outcome)


@pytest.fixture
def orchestrator(settings, fake_ffmpeg):
    return create_orchestrator(settings)


@pytest.fixture
def unsafe_story(horror_story):
    story = copy.deepcopy(horror_story)
    story.scenes[1].narration += UNSAFE_LINE
    return story


def scripted(orchestrator, *outcomes) -> ScriptedGenerator:
    generator = ScriptedGenerator(outcomes)
    orchestrator.story_builder.generator = generator
    return generator


async def run_to_end(orchestrator, request):
    job = orchestrator.create_job(request)
    await orchestrator.join()
    return orchestrator.get_job(job.id)


@pytest.mark.integration
class TestPromptToVideo:
    @pytest.mark.asyncio
    async def test_horror_prompt_produces_video(self, orchestrator, fake_ffmpeg, settings):
        fake_ffmpeg.audio_duration = 58.4
        stages = []
        orchestrator.queue.add_listener(lambda job: stages.append((job.progress, job.stage)))

        job = await run_to_end(orchestrator, JobRequest(prompt="abandoned lighthouse", niche_id="horror"))

        assert job.status == JobStatus.COMPLETED, job.error
        result = job.result
        assert 3 <= len(result.story.scenes) <= 6
        assert len(result.hashtags) >= 3
        assert result.duration_seconds <= 70
        assert (result.width, result.height) == (1080, 1920)
        assert result.story.title == "The Abandoned Lighthouse"

        video = Path(result.video_path)
        assert video.exists()
        assert video.parent == settings.output_dir.resolve()
        assert result.video_url == f"http://localhost:8000/media/{video.name}"
        assert Path(result.captions_file).suffix == ".srt"
        assert Path(result.styled_captions_file).suffix == ".ass"
        assert len(result.scene_images) == len(result.story.scenes)
        assert all(Path(p).exists() for p in result.scene_images)
        assert result.description.startswith("The Abandoned Lighthouse: ")

        durations = [scene.duration for scene in result.story.scenes]
        assert abs(sum(durations) - 58.4) <= 0.011
        assert result.story.total_duration == 58.4

        progresses = [p for p, _ in stages]
        assert progresses == sorted(progresses)
        assert [s for _, s in stages][0] == JobStage.INIT
        assert stages[-1] == (100, JobStage.COMPLETED)
        assert (65, JobStage.CAPTIONS_READY) in stages
        assert (95, JobStage.RENDER_COMPLETE) in stages

    @pytest.mark.asyncio
    async def test_render_uses_profile_and_options(self, orchestrator, fake_ffmpeg):
        job = await run_to_end(orchestrator, JobRequest(prompt="abandoned lighthouse"))
        assert job.status == JobStatus.COMPLETED, job.error

        scene_cmds = [cmd for cmd in fake_ffmpeg.commands() if "-loop" in cmd]
        assert len(scene_cmds) == len(job.result.story.scenes)
        final = [cmd for cmd in fake_ffmpeg.commands() if "-movflags" in cmd][0]
        assert final[final.index("-vf") + 1].startswith("ass='")
        assert "[2:a]volume=0.18[a2]" in final[final.index("-filter_complex") + 1]

    @pytest.mark.asyncio
    async def test_render_overrides(self, orchestrator, fake_ffmpeg):
        request = JobRequest(
            prompt="abandoned lighthouse",
            render=RenderOverrides(include_music=False, include_captions=False, glitch_transitions=False),
        )
        job = await run_to_end(orchestrator, request)
        assert job.status == JobStatus.COMPLETED, job.error

        commands = fake_ffmpeg.commands()
        assert not any(any("anoisesrc=color=brown" in p for p in cmd) for cmd in commands)
        assert not any(any("rgbtestsrc" in p for p in cmd) for cmd in commands)
        final = [cmd for cmd in commands if "-movflags" in cmd][0]
        assert "-vf" not in final

    @pytest.mark.asyncio
    async def test_reddit_niche(self, orchestrator, fake_ffmpeg):
        fake_ffmpeg.audio_duration = 62.0
        job = await run_to_end(orchestrator, JobRequest(prompt="my roommate's cat", niche_id="reddit_stories"))
        assert job.status == JobStatus.COMPLETED, job.error
        assert job.result.hashtags[:3] == ["#reddit", "#redditstories", "#storytime"]
        final = [cmd for cmd in fake_ffmpeg.commands() if "-movflags" in cmd][0]
        assert "[2:a]volume=0.15[a2]" in final[final.index("-filter_complex") + 1]

    @pytest.mark.asyncio
    async def test_back_to_back_jobs(self, orchestrator, fake_ffmpeg):
        first = orchestrator.create_job(JobRequest(prompt="abandoned lighthouse"))
        second = orchestrator.create_job(JobRequest(prompt="the cellar door"))
        assert orchestrator.get_job(second.id).status == JobStatus.PENDING

        await orchestrator.join()

        a, b = orchestrator.get_job(first.id), orchestrator.get_job(second.id)
        assert a.status == JobStatus.COMPLETED, a.error
        assert b.status == JobStatus.COMPLETED, b.error
        assert a.result.video_path != b.result.video_path
        assert Path(a.result.video_path).exists()
        assert Path(b.result.video_path).exists()
        assert b.completed_at >= a.completed_at
        assert orchestrator.get_queue_stats().completed == 2


@pytest.mark.integration
class TestCallerScripts:
    @pytest.mark.asyncio
    async def test_script_is_rendered_verbatim(self, orchestrator, horror_script):
        job = await run_to_end(orchestrator, JobRequest(story=horror_script))

        assert job.status == JobStatus.COMPLETED, job.error
        story = job.result.story
        assert story.source == "caller"
        assert [s.narration for s in story.scenes] == [s.narration for s in horror_script.scenes]

    @pytest.mark.asyncio
    async def test_unsafe_script_fails_without_video(self, orchestrator, unsafe_script, fake_ffmpeg, settings):
        job = await run_to_end(orchestrator, JobRequest(story=unsafe_script))

        assert job.status == JobStatus.FAILED
        assert "self_harm" in job.error
        assert job.result is None
        assert fake_ffmpeg.calls == []
        assert not list(settings.output_dir.glob("*.mp4"))

    @pytest.mark.asyncio
    async def test_out_of_band_script_fails_validation(self, orchestrator):
        short = StoryInput(
            title="Short",
            scenes=[SceneInput(narration="Too short."), SceneInput(narration="Far too short.")],
        )
        job = await run_to_end(orchestrator, JobRequest(story=short))

        assert job.status == JobStatus.FAILED
        assert "minimum is 3" in job.error


@pytest.mark.integration
class TestRegeneration:
    @pytest.mark.asyncio
    async def test_unsafe_story_is_regenerated_once(self, orchestrator, horror_story, unsafe_story):
        generator = scripted(orchestrator, unsafe_story, horror_story)

        job = await run_to_end(orchestrator, JobRequest(prompt="abandoned lighthouse"))

        assert job.status == JobStatus.COMPLETED, job.error
        assert generator.attempts == [("abandoned lighthouse", 0), ("abandoned lighthouse", 1)]
        assert "suicide" not in job.result.story.full_script

    @pytest.mark.asyncio
    async def test_second_unsafe_story_fails(self, orchestrator, unsafe_story):
        scripted(orchestrator, unsafe_story, unsafe_story)

        job = await run_to_end(orchestrator, JobRequest(prompt="abandoned lighthouse"))

        assert job.status == JobStatus.FAILED
        assert job.error == str(ContentSafetyError(["self_harm"]))

    @pytest.mark.asyncio
    async def test_provider_errors_are_retried_then_reported(self, orchestrator, horror_story):
        generator = scripted(
            orchestrator,
            StoryGenerationError("Gemini request failed: 503"),
            StoryGenerationError("Gemini request failed: 503"),
        )

        job = await run_to_end(orchestrator, JobRequest(prompt="abandoned lighthouse"))

        assert len(generator.attempts) == 2
        assert job.status == JobStatus.FAILED
        assert job.error.startswith("Story generation failed: ")

    @pytest.mark.asyncio
    async def test_provider_recovers_on_retry(self, orchestrator, horror_story):
        scripted(orchestrator, StoryGenerationError("timeout"), horror_story)
        job = await run_to_end(orchestrator, JobRequest(prompt="abandoned lighthouse"))
        assert job.status == JobStatus.COMPLETED, job.error


@pytest.mark.integration
class TestFailures:
    @pytest.mark.asyncio
    async def test_render_failure_is_recorded(self, orchestrator, fake_ffmpeg, settings):
        fake_ffmpeg.fail_on = "rgbtestsrc"
        fake_ffmpeg.fail_stderr = "No such filter: 'tblend'"

        job = await run_to_end(orchestrator, JobRequest(prompt="abandoned lighthouse"))

        assert job.status == JobStatus.FAILED
        assert "No such filter: 'tblend'" in job.error
        assert job.progress == 65
        assert not list(settings.output_dir.glob("*.mp4"))

    @pytest.mark.asyncio
    async def test_narration_failure_is_recorded(self, orchestrator, fake_ffmpeg):
        fake_ffmpeg.fail_on = "sine="
        job = await run_to_end(orchestrator, JobRequest(prompt="abandoned lighthouse"))
        assert job.status == JobStatus.FAILED
        assert "Placeholder narration failed" in job.error
        assert job.progress == 20


@pytest.mark.integration
class TestSubmissionValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "request_",
        [
            JobRequest(),
            JobRequest(prompt="   "),
            JobRequest(prompt="x", target_duration=0),
            JobRequest(prompt="x", job_type="long_video"),
            JobRequest(story=StoryInput(title="T", scenes=[])),
            JobRequest(story=StoryInput(title="T", scenes=[SceneInput(narration="Hi."), SceneInput(narration=" ")])),
        ],
    )
    async def test_invalid_requests_never_queue(self, orchestrator, request_):
        with pytest.raises(JobValidationError):
            orchestrator.create_job(request_)
        assert orchestrator.get_queue_stats().total == 0

    @pytest.mark.asyncio
    async def test_unknown_niche(self, orchestrator):
        with pytest.raises(UnknownNicheError):
            orchestrator.create_job(JobRequest(prompt="x", niche_id="cooking"))
        assert orchestrator.get_queue_stats().total == 0


@pytest.mark.integration
class TestResultHelpers:
    def test_description_is_deterministic_per_story(self, horror_story):
        first = build_description(horror_story, HORROR_PROFILE)
        assert first == build_description(horror_story, HORROR_PROFILE)
        assert first.startswith("The Keeper: The lighthouse keeper vanished in nineteen seventy. ")
        assert any(first.endswith(cta) for cta in HORROR_PROFILE.cta_phrases)

    def test_merge_hashtags(self):
        merged = merge_hashtags(["#horror", "#Scary"], ["#scary", "lighthouse", " ", "#horror"])
        assert merged == ["#horror", "#Scary", "#lighthouse"]
        assert len(merge_hashtags([f"#t{i}" for i in range(15)], [])) == 10

    def test_render_option_precedence(self, settings):
        no_music_profile = replace(HORROR_PROFILE, music=replace(HORROR_PROFILE.music, add_music=False))
        options = resolve_render_options(settings.render, no_music_profile, JobRequest(prompt="x"))
        assert options.include_music is False

        forced = resolve_render_options(
            settings.render,
            no_music_profile,
            JobRequest(prompt="x", render=RenderOverrides(include_music=True, music_volume=0.3)),
        )
        assert forced.include_music is True
        assert forced.music_volume == 0.3

        volume_unset = replace(HORROR_PROFILE, music=replace(HORROR_PROFILE.music, music_volume=None))
        configured = resolve_render_options(
            replace(settings.render, music_volume=0.25), volume_unset, JobRequest(prompt="x")
        )
        assert configured.music_volume == 0.25
