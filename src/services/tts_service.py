"""Narration synthesis providers.

- OpenAISpeechSynthesizer: OpenAI text-to-speech over HTTP (httpx)
- ToneNarrationSynthesizer: offline placeholder rendered with FFmpeg, sized
  like real narration so the rest of the pipeline behaves the same
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

import httpx

from models.story import count_words
from utils.ffmpeg import FFmpegError, probe_duration, run_ffmpeg
from utils.files import ensure_dir, job_asset_name

logger = logging.getLogger(__name__)

OPENAI_API_BASE = "https://api.openai.com/v1"
OPENAI_TTS_MAX_CHARS = 4096
PLACEHOLDER_WORDS_PER_MINUTE = 155
PLACEHOLDER_MIN_SECONDS = 10.0


class TTSServiceError(Exception):
    """Error from a narration provider."""

    pass


class NarrationSynthesizer(ABC):
    """Converts narration text into an audio file."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    @abstractmethod
    async def synthesize(self, text: str, voice_id: str, speed: float, job_id: str) -> Path:
        """Synthesize narration audio.

        Args:
            text: Full narration script
            voice_id: Provider voice preset
            speed: Playback speed multiplier (1.0 = normal)
            job_id: Owning job, used for the output filename

        Returns:
            Path to the written audio file

        Raises:
            TTSServiceError: If synthesis fails
        """

    async def probe_duration(self, path: Path) -> float:
        """Measure the real duration of a narration file in seconds."""
        try:
            return await asyncio.to_thread(probe_duration, path)
        except FFmpegError as e:
            raise TTSServiceError(f"Could not measure narration duration: {e}") from e

    def _output_path(self, job_id: str, extension: str) -> Path:
        job_dir = ensure_dir(self.output_dir / job_id)
        return job_dir / job_asset_name("narration", job_id, extension)

    async def close(self) -> None:
        """Release provider resources."""
        return None


class OpenAISpeechSynthesizer(NarrationSynthesizer):
    """OpenAI speech endpoint client."""

    def __init__(
        self,
        api_key: str,
        output_dir: Path,
        model: str = "tts-1",
        base_url: str = OPENAI_API_BASE,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(output_dir)
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=300.0)

    async def synthesize(self, text: str, voice_id: str, speed: float, job_id: str) -> Path:
        text = " ".join(text.split())
        if not text:
            raise TTSServiceError("Narration text is empty")
        if len(text) > OPENAI_TTS_MAX_CHARS:
            raise TTSServiceError(
                f"Narration is {len(text)} characters, OpenAI TTS accepts {OPENAI_TTS_MAX_CHARS}"
            )

        payload = {
            "model": self.model,
            "input": text,
            "voice": voice_id,
            "speed": speed,
            "response_format": "mp3",
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        logger.info(f"Generating narration for {len(text)} characters (voice={voice_id}, speed={speed})")

        try:
            response = await self.client.post(
                f"{self.base_url}/audio/speech", headers=headers, json=payload
            )
            response.raise_for_status()
        except httpx.TimeoutException:
            raise TTSServiceError("OpenAI TTS request timed out")
        except httpx.HTTPStatusError as e:
            try:
                error_detail = json.dumps(e.response.json().get("error", e.response.json()))
            except (ValueError, AttributeError):
                error_detail = e.response.text or str(e)
            raise TTSServiceError(f"OpenAI TTS error: {error_detail}")
        except httpx.HTTPError as e:
            raise TTSServiceError(f"OpenAI TTS request failed: {e}")

        if not response.content:
            raise TTSServiceError("OpenAI TTS returned no audio")

        output_path = self._output_path(job_id, "mp3")
        output_path.write_bytes(response.content)
        logger.info(f"Narration saved: {output_path} ({len(response.content)} bytes)")
        return output_path

    async def close(self) -> None:
        await self.client.aclose()


class ToneNarrationSynthesizer(NarrationSynthesizer):
    """Placeholder narration: a quiet tone over pink noise.

    Duration follows the text length at 155 wpm (at least 10s) divided by
    the requested speed, capped at max_seconds when given.
    """

    def __init__(self, output_dir: Path, timeout: int = 120, max_seconds: float | None = None):
        super().__init__(output_dir)
        self.timeout = timeout
        self.max_seconds = max_seconds

    @staticmethod
    def placeholder_duration(
        text: str, speed: float = 1.0, max_seconds: float | None = None
    ) -> float:
        seconds = count_words(text) / PLACEHOLDER_WORDS_PER_MINUTE * 60
        seconds = max(seconds, PLACEHOLDER_MIN_SECONDS) / max(speed, 0.25)
        if max_seconds is not None:
            seconds = min(seconds, max_seconds)
        return round(seconds, 2)

    async def synthesize(self, text: str, voice_id: str, speed: float, job_id: str) -> Path:
        if not text.strip():
            raise TTSServiceError("Narration text is empty")

        duration = self.placeholder_duration(text, speed, self.max_seconds)
        output_path = self._output_path(job_id, "wav")
        cmd = [
            "ffmpeg", "-y",
            "-f", "lavfi", "-i", f"sine=frequency=220:duration={duration}",
            "-f", "lavfi", "-i", f"anoisesrc=color=pink:amplitude=0.02:duration={duration}",
            "-filter_complex", "[0:a]volume=0.2[tone];[tone][1:a]amix=inputs=2:duration=first[out]",
            "-map", "[out]",
            "-ar", "44100",
            "-ac", "1",
            str(output_path),
        ]

        logger.info(f"Generating placeholder narration ({duration:.2f}s, voice={voice_id})")
        try:
            await asyncio.to_thread(run_ffmpeg, cmd, "placeholder narration", self.timeout)
        except FFmpegError as e:
            raise TTSServiceError(f"Placeholder narration failed: {e}") from e
        return output_path
