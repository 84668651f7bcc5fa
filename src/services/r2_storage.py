"""Cloudflare R2 storage backend for job outputs.

Uploads finished artifacts to an R2 bucket (S3-compatible API via boto3)
and hands back either the public CDN URL or a presigned download URL.
"""

import asyncio
import logging
import mimetypes
from pathlib import Path

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from services.storage_service import StorageBackend, StorageError

logger = logging.getLogger(__name__)

PRESIGNED_URL_SECONDS = 7 * 24 * 3600

CONTENT_TYPES = {
    ".mp4": "video/mp4",
    ".srt": "application/x-subrip",
    ".ass": "text/x-ssa",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".png": "image/png",
}


class R2Storage(StorageBackend):
    """Cloudflare R2 object storage backend."""

    def __init__(
        self,
        account_id: str,
        access_key_id: str,
        secret_access_key: str,
        bucket_name: str,
        public_url: str | None = None,
        key_prefix: str = "reels",
        client=None,
    ):
        """Initialize R2 storage.

        Args:
            account_id: Cloudflare account ID
            access_key_id: R2 API access key ID
            secret_access_key: R2 API secret access key
            bucket_name: R2 bucket name
            public_url: Optional public URL base for files (CDN URL)
            key_prefix: Prefix for every object key
            client: Pre-built S3 client (tests)
        """
        self.bucket_name = bucket_name
        self.public_base = public_url.rstrip("/") if public_url else None
        self.key_prefix = key_prefix.strip("/")

        self._client = client or boto3.client(
            "s3",
            endpoint_url=f"https://{account_id}.r2.cloudflarestorage.com",
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            config=Config(
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "adaptive"},
            ),
        )

        logger.info(f"R2 storage initialized for bucket: {bucket_name}")

    def _key_for(self, local_path: Path) -> str:
        return f"{self.key_prefix}/{local_path.name}" if self.key_prefix else local_path.name

    def upload_file(self, local_path: Path, key: str) -> str:
        """Upload a file to R2.

        Returns:
            The object key

        Raises:
            StorageError: If the upload fails
        """
        content_type = CONTENT_TYPES.get(local_path.suffix.lower())
        if content_type is None:
            content_type = mimetypes.guess_type(local_path.name)[0] or "application/octet-stream"

        try:
            self._client.upload_file(
                str(local_path),
                self.bucket_name,
                key,
                ExtraArgs={"ContentType": content_type},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload {key}: {e}")
            raise StorageError(f"R2 upload failed for {key}: {e}") from e

        logger.info(f"Uploaded {key} to R2")
        return key

    async def persist(self, local_path: Path) -> str:
        local_path = Path(local_path)
        if not local_path.exists():
            raise StorageError(f"Cannot persist missing file: {local_path}")
        return await asyncio.to_thread(self.upload_file, local_path, self._key_for(local_path))

    def public_url(self, durable_path: str) -> str:
        if self.public_base:
            return f"{self.public_base}/{durable_path}"
        return self.get_presigned_url(durable_path)

    def get_presigned_url(self, key: str, expires_in: int = PRESIGNED_URL_SECONDS) -> str:
        """Generate a presigned URL for temporary access.

        Args:
            key: Object key
            expires_in: URL expiration time in seconds

        Returns:
            Presigned URL string
        """
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Could not presign {key}: {e}") from e
