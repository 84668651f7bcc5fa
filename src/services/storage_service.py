"""Output persistence backends.

A backend moves finished job artifacts to their durable location and turns
that location into an externally addressable URL.
"""

import asyncio
import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)

MEDIA_ROUTE = "/media"


class StorageError(Exception):
    """Raised when an artifact cannot be persisted."""

    pass


class StorageBackend(ABC):
    """Durable storage for job outputs."""

    @abstractmethod
    async def persist(self, local_path: Path) -> str:
        """Store a local file durably.

        Returns:
            Durable path or object key

        Raises:
            StorageError: If the file cannot be stored
        """

    @abstractmethod
    def public_url(self, durable_path: str) -> str:
        """Externally addressable URL of a persisted artifact."""

    def get_provider_name(self) -> str:
        return type(self).__name__


class LocalStorage(StorageBackend):
    """Keeps outputs in a local directory served under /media."""

    def __init__(self, output_dir: Path, base_url: str = "http://localhost:8000"):
        self.output_dir = Path(output_dir)
        self.base_url = base_url.rstrip("/")

    async def persist(self, local_path: Path) -> str:
        local_path = Path(local_path)
        if not local_path.exists():
            raise StorageError(f"Cannot persist missing file: {local_path}")

        target = self.output_dir / local_path.name
        if local_path.resolve() == target.resolve():
            return str(target.resolve())

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(shutil.copy2, local_path, target)
        except OSError as e:
            raise StorageError(f"Failed to persist {local_path.name}: {e}") from e

        logger.info(f"Persisted {local_path.name} to {self.output_dir}")
        return str(target.resolve())

    def public_url(self, durable_path: str) -> str:
        path = Path(durable_path)
        if not self.base_url.startswith(("http://", "https://")):
            return path.resolve().as_uri()
        try:
            relative = path.resolve().relative_to(self.output_dir.resolve())
        except ValueError:
            relative = Path(path.name)
        return f"{self.base_url}{MEDIA_ROUTE}/{relative.as_posix()}"

    def resolve_media(self, filename: str) -> Path | None:
        """Map a /media filename back to a stored file, or None."""
        if not filename or Path(filename).name != filename:
            return None
        candidate = self.output_dir / filename
        return candidate if candidate.is_file() else None
