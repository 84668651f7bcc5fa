"""Shared pytest fixtures for reelsmith tests."""

import json
import subprocess
import sys
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from models.niche import WordBand  # noqa: E402
from models.render import RenderOptions  # noqa: E402
from models.story import Scene, SceneInput, Story, StoryInput  # noqa: E402
from utils.config import ProviderSettings, Settings  # noqa: E402


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings(temp_dir) -> Settings:
    """Offline settings writing into the temp directory."""
    return Settings(
        output_dir=temp_dir / "output",
        assets_dir=temp_dir / "assets",
        storage_base_url="http://localhost:8000",
        default_niche="horror",
        max_scenes=6,
        max_video_duration_seconds=70.0,
        story_word_band=WordBand(140, 185),
        render=RenderOptions(),
        providers=ProviderSettings(),
    )


class FakeFFmpeg:
    """Stand-in for subprocess.run that answers ffmpeg and ffprobe calls.

    ffmpeg calls create their output file (the last argument); ffprobe calls
    report audio_duration for audio-only probes and a 1080x1920@30 stream for
    video probes. Any command containing fail_on fails with fail_stderr.
    """

    def __init__(self, audio_duration: float = 60.0, video_duration: float | None = None):
        self.audio_duration = audio_duration
        self.video_duration = video_duration
        self.calls: list[list[str]] = []
        self.fail_on: str | None = None
        self.fail_stderr = "Error opening input: invalid data"

    def __call__(self, cmd, *args, **kwargs):
        cmd = [str(part) for part in cmd]
        self.calls.append(cmd)

        if self.fail_on and any(self.fail_on in part for part in cmd):
            return subprocess.CompletedProcess(cmd, 1, stdout="", stderr=self.fail_stderr)

        if cmd[0] == "ffprobe":
            if "-select_streams" in cmd:
                payload = {
                    "streams": [{"width": 1080, "height": 1920, "r_frame_rate": "30/1"}],
                    "format": {"duration": str(self.video_duration or self.audio_duration)},
                }
            else:
                payload = {"format": {"duration": str(self.audio_duration)}}
            return subprocess.CompletedProcess(cmd, 0, stdout=json.dumps(payload), stderr="")

        if cmd[:2] == ["ffmpeg", "-version"]:
            return subprocess.CompletedProcess(cmd, 0, stdout="ffmpeg version 6.1-test\n", stderr="")

        output = Path(cmd[-1])
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(b"\x00" * 64)
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    def commands(self, program: str = "ffmpeg") -> list[list[str]]:
        return [cmd for cmd in self.calls if cmd[0] == program and cmd[1:2] != ["-version"]]


@pytest.fixture
def fake_ffmpeg() -> Generator[FakeFFmpeg, None, None]:
    """Patch subprocess.run with a FakeFFmpeg for the duration of a test."""
    fake = FakeFFmpeg()
    with patch("subprocess.run", side_effect=fake):
        yield fake


@pytest.fixture
def horror_story() -> Story:
    """Four-scene story inside the horror word band (143 words)."""
    narrations = [
        "The lighthouse keeper vanished in nineteen seventy. Nobody ever found his boat. "
        "Every winter since, the lamp turns on by itself at midnight. Locals still refuse to fish there.",
        "I rented the cottage beside it last October. The landlord warned me twice. "
        "Never climb the stairs after dark, he said, and never answer the knocking. "
        "I laughed at him, paid in cash, and carried my bags inside.",
        "On the third night the knocking came from above me. Slow and patient. "
        "I climbed the spiral stairs with a flashlight shaking in my hand. "
        "At the top, the lamp room was empty, but the logbook lay open and fresh ink was drying.",
        "The last entry was written in my handwriting. It said the keeper had finally been relieved. "
        "Down on the rocks, a small boat was waiting for me, and the light began to turn.",
    ]
    scenes = [
        Scene(index=i + 1, description=f"Scene {i + 1}", narration=text)
        for i, text in enumerate(narrations)
    ]
    return Story(
        id="story_test00000001",
        title="The Keeper",
        description="A lighthouse that keeps its keepers.",
        hook="The lighthouse keeper vanished in nineteen seventy.",
        scenes=scenes,
        total_duration=60.0,
        word_count=sum(scene.word_count for scene in scenes),
        hashtags=["#lighthouse", "#horrortok"],
    )


@pytest.fixture
def horror_script(horror_story) -> StoryInput:
    """The horror story as a caller-supplied script."""
    return StoryInput(
        title=horror_story.title,
        description=horror_story.description,
        scenes=[
            SceneInput(narration=scene.narration, description=scene.description)
            for scene in horror_story.scenes
        ],
    )


@pytest.fixture
def unsafe_script(horror_script) -> StoryInput:
    """Caller script whose second scene mentions suicide."""
    scenes = list(horror_script.scenes)
    scenes[1] = replace(
        scenes[1],
        narration=scenes[1].narration + " The last tenant died by suicide in the lamp room.",
    )
    return replace(horror_script, scenes=scenes)
