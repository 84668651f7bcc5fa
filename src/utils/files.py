"""Job-scoped file naming helpers."""

from datetime import datetime, timezone
from pathlib import Path


def timestamp() -> str:
    """UTC timestamp with millisecond precision, safe for filenames."""
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")[:-3]


def job_asset_name(prefix: str, job_id: str, extension: str, index: int | None = None) -> str:
    """Build a collision-resistant filename for a job artifact.

    Examples:
        job_asset_name("scene", "job_1_abc", "png", 2) -> "scene_2_job_1_abc_20261019T101500123.png"
        job_asset_name("narration", "job_1_abc", "mp3") -> "narration_job_1_abc_20261019T101500123.mp3"
    """
    extension = extension.lstrip(".")
    parts = [prefix]
    if index is not None:
        parts.append(str(index))
    parts += [job_id, timestamp()]
    return f"{'_'.join(parts)}.{extension}"


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path
