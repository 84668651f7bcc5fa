"""Scene image providers.

- OpenAIImageGenerator: OpenAI image generation over HTTP (httpx)
- PlaceholderImageGenerator: offline title card rendered with FFmpeg
"""

import asyncio
import base64
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

import httpx

from models.niche import NicheProfile
from utils.ffmpeg import FFmpegError, run_ffmpeg
from utils.files import ensure_dir, job_asset_name

logger = logging.getLogger(__name__)

OPENAI_API_BASE = "https://api.openai.com/v1"
PLACEHOLDER_COLORS = ("0x1b1b2f", "0x2c2c54", "0x3d1e3d", "0x1e3d3d", "0x2f1b1b", "0x1b2f1b")
FONT_CANDIDATES = (
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
    Path("/usr/share/fonts/TTF/DejaVuSans-Bold.ttf"),
    Path("/Library/Fonts/Arial Bold.ttf"),
)


class ImageGenerationServiceError(Exception):
    """Error from an image provider."""

    pass


def parse_image_size(size: str) -> tuple[int, int]:
    """Parse "WIDTHxHEIGHT" into integers."""
    try:
        width, height = (int(part) for part in size.lower().split("x", 1))
    except ValueError as e:
        raise ImageGenerationServiceError(f"Invalid image size '{size}'") from e
    return width, height


class ImageGenerator(ABC):
    """Converts an image prompt into an image file for one scene."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    @abstractmethod
    async def generate(
        self, prompt: str, scene_index: int, profile: NicheProfile, job_id: str
    ) -> Path:
        """Generate the image for one scene.

        Args:
            prompt: Image prompt of the scene
            scene_index: 1-based scene index
            profile: Niche profile (image size, visual style)
            job_id: Owning job, used for the output filename

        Returns:
            Path to the written image

        Raises:
            ImageGenerationServiceError: If generation fails
        """

    def _output_path(self, job_id: str, scene_index: int, extension: str = "png") -> Path:
        job_dir = ensure_dir(self.output_dir / job_id)
        return job_dir / job_asset_name("scene", job_id, extension, index=scene_index)

    async def close(self) -> None:
        """Release provider resources."""
        return None


class OpenAIImageGenerator(ImageGenerator):
    """OpenAI images endpoint client."""

    def __init__(
        self,
        api_key: str,
        output_dir: Path,
        model: str = "dall-e-3",
        base_url: str = OPENAI_API_BASE,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(output_dir)
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=180.0)

    async def generate(
        self, prompt: str, scene_index: int, profile: NicheProfile, job_id: str
    ) -> Path:
        payload = {
            "model": self.model,
            "prompt": prompt,
            "n": 1,
            "size": profile.visuals.image_size,
            "response_format": "b64_json",
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        logger.info(f"Generating image for scene {scene_index} ({profile.visuals.image_size})")

        try:
            response = await self.client.post(
                f"{self.base_url}/images/generations", headers=headers, json=payload
            )
            response.raise_for_status()
            data = response.json().get("data") or []
            if not data:
                raise ImageGenerationServiceError("OpenAI returned no images")

            item = data[0]
            if item.get("b64_json"):
                image_bytes = base64.b64decode(item["b64_json"])
            elif item.get("url"):
                download = await self.client.get(item["url"])
                download.raise_for_status()
                image_bytes = download.content
            else:
                raise ImageGenerationServiceError("OpenAI image response has no data")

        except httpx.TimeoutException:
            raise ImageGenerationServiceError(
                f"OpenAI image request timed out for scene {scene_index}"
            )
        except httpx.HTTPStatusError as e:
            try:
                error_detail = json.dumps(e.response.json().get("error", e.response.json()))
            except (ValueError, AttributeError):
                error_detail = e.response.text or str(e)
            raise ImageGenerationServiceError(f"OpenAI image API error: {error_detail}")
        except httpx.HTTPError as e:
            raise ImageGenerationServiceError(f"OpenAI image request failed: {e}")

        output_path = self._output_path(job_id, scene_index)
        output_path.write_bytes(image_bytes)
        logger.info(f"Scene {scene_index} image saved: {output_path}")
        return output_path

    async def close(self) -> None:
        await self.client.aclose()


class PlaceholderImageGenerator(ImageGenerator):
    """Solid colour card with the scene number, rendered by FFmpeg.

    The caption text is drawn only when a bold DejaVu/Arial font is found,
    since drawtext needs a font file.
    """

    def __init__(self, output_dir: Path, timeout: int = 60):
        super().__init__(output_dir)
        self.timeout = timeout
        self.font_path = next((p for p in FONT_CANDIDATES if p.exists()), None)

    def build_command(
        self, scene_index: int, profile: NicheProfile, output_path: Path
    ) -> list[str]:
        width, height = parse_image_size(profile.visuals.image_size)
        color = PLACEHOLDER_COLORS[(scene_index - 1) % len(PLACEHOLDER_COLORS)]
        cmd = [
            "ffmpeg", "-y",
            "-f", "lavfi",
            "-i", f"color=c={color}:s={width}x{height}:d=1",
            "-frames:v", "1",
        ]
        if self.font_path is not None:
            font = str(self.font_path).replace(":", "\\:")
            cmd += [
                "-vf",
                f"drawtext=fontfile='{font}':text='Scene {scene_index}':"
                "fontcolor=white:fontsize=72:x=(w-text_w)/2:y=(h-text_h)/2",
            ]
        cmd.append(str(output_path))
        return cmd

    async def generate(
        self, prompt: str, scene_index: int, profile: NicheProfile, job_id: str
    ) -> Path:
        output_path = self._output_path(job_id, scene_index)
        cmd = self.build_command(scene_index, profile, output_path)
        try:
            await asyncio.to_thread(run_ffmpeg, cmd, f"placeholder image {scene_index}", self.timeout)
        except FFmpegError as e:
            raise ImageGenerationServiceError(f"Placeholder image failed: {e}") from e
        return output_path
