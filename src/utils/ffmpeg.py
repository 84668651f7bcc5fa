"""Thin wrappers around the ffmpeg and ffprobe command-line tools.

Every call is synchronous (subprocess.run); async callers wrap them in
asyncio.to_thread so the event loop keeps serving requests.
"""

import json
import logging
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 600
PROBE_TIMEOUT = 30


class FFmpegError(Exception):
    """Raised when ffmpeg/ffprobe exits non-zero or cannot be run."""

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


def run_ffmpeg(cmd: list[str], description: str = "", timeout: int = DEFAULT_TIMEOUT) -> None:
    """Run an FFmpeg command with error handling.

    Args:
        cmd: FFmpeg command as list of arguments
        description: Human-readable description for logging
        timeout: Seconds before the process is killed

    Raises:
        FFmpegError: If FFmpeg is missing, times out or returns a non-zero exit code
    """
    logger.info(f"FFmpeg: {description}")
    logger.debug(f"Command: {' '.join(cmd)}")

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as e:
        raise FFmpegError(f"FFmpeg not found ({description}): {e}") from e
    except subprocess.TimeoutExpired as e:
        raise FFmpegError(f"FFmpeg timed out after {timeout}s ({description})") from e

    if result.returncode != 0:
        stderr = result.stderr or ""
        logger.error(f"FFmpeg stderr: {stderr[-1000:]}")
        raise FFmpegError(
            f"FFmpeg failed ({description}): {stderr[-1000:].strip()}", stderr=stderr
        )


def probe_media(path: Path, video: bool = True) -> dict:
    """Read stream/format metadata as parsed ffprobe JSON.

    Args:
        path: Media file to inspect
        video: If True, include width/height/frame rate of the first video stream

    Returns:
        Dictionary with "format" and (for video) "streams" keys
    """
    cmd = ["ffprobe", "-v", "error"]
    if video:
        cmd += [
            "-select_streams", "v:0",
            "-show_entries", "stream=width,height,r_frame_rate:format=duration",
        ]
    else:
        cmd += ["-show_entries", "format=duration"]
    cmd += ["-of", "json", str(path)]

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=PROBE_TIMEOUT)
    except FileNotFoundError as e:
        raise FFmpegError(f"ffprobe not found: {e}") from e
    except subprocess.TimeoutExpired as e:
        raise FFmpegError(f"ffprobe timed out for {path}") from e

    if result.returncode != 0:
        raise FFmpegError(f"ffprobe failed for {path}: {result.stderr.strip()}", stderr=result.stderr)

    try:
        return json.loads(result.stdout or "{}")
    except json.JSONDecodeError as e:
        raise FFmpegError(f"ffprobe returned invalid JSON for {path}: {e}") from e


def probe_duration(path: Path) -> float:
    """Get the duration of a media file in seconds."""
    data = probe_media(path, video=False)
    try:
        return float(data["format"]["duration"])
    except (KeyError, TypeError, ValueError) as e:
        raise FFmpegError(f"ffprobe reported no duration for {path}") from e


def parse_frame_rate(value: str | None, fallback: float = 0.0) -> float:
    """Turn an ffprobe ratio like "30000/1001" into frames per second."""
    if not value:
        return fallback
    num, _, den = value.partition("/")
    try:
        numerator = float(num)
        denominator = float(den) if den else 1.0
    except ValueError:
        return fallback
    if denominator == 0:
        return fallback
    return round(numerator / denominator, 3)


def ffmpeg_version() -> str | None:
    """First line of `ffmpeg -version`, or None when ffmpeg is unavailable."""
    if shutil.which("ffmpeg") is None:
        return None
    try:
        result = subprocess.run(
            ["ffmpeg", "-version"], capture_output=True, text=True, timeout=10
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"Could not query ffmpeg version: {e}")
        return None
    if result.returncode != 0:
        return None
    return result.stdout.splitlines()[0] if result.stdout else "ffmpeg"
