"""
Tubely Asset Storage Module

Two storage variants, selected by asset kind:

- LocalAssetStorage (thumbnails): writes bytes under ``assets_root`` with a
  random file name and returns a URL under ``public_assets_url``.
- ObjectAssetStorage (videos): uploads a file from disk to an S3-compatible
  bucket under ``{aspect_category}/{random_hex}.{ext}`` and returns a URL under
  the configured distribution.

Names and keys come from 32 random bytes; uniqueness is probabilistic and no
existence check is made. Any I/O failure surfaces as StorageError. boto3 calls
are blocking and run in a worker thread so the event loop keeps serving.
"""

import asyncio
import logging
import secrets

from pathlib import Path
from typing import Any

import aiofiles
import boto3

from boto3.exceptions import S3UploadFailedError
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from tubely.config import Settings
from tubely.core.errors import StorageError
from tubely.models.video import AspectCategory


# Configure module-level logger
logger = logging.getLogger(__name__)

# Random bytes behind every generated file name or key
RANDOM_NAME_BYTES = 32


def generate_asset_name(extension: str) -> str:
    """Random base64url file name for a local asset, e.g. ``Yb3...Q.png``."""
    return f"{secrets.token_urlsafe(RANDOM_NAME_BYTES)}.{extension}"


def generate_video_key(category: AspectCategory, extension: str) -> str:
    """Object key for a video, e.g. ``landscape/9f2c...e1.mp4``."""
    return f"{AspectCategory(category).value}/{secrets.token_hex(RANDOM_NAME_BYTES)}.{extension}"


class LocalAssetStorage:
    """
    Writes thumbnail payloads to the local assets directory.

    Attributes:
        assets_root: Directory files are written to (created on demand)
        base_url: Public URL prefix for files in assets_root
    """

    def __init__(self, assets_root: str | Path, base_url: str) -> None:
        self.assets_root = Path(assets_root)
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "LocalAssetStorage":
        return cls(settings.assets_root, settings.public_assets_url)

    async def save(self, data: bytes, extension: str) -> str:
        """
        Write a payload under a fresh random name.

        Args:
            data: File content.
            extension: Extension derived from the media type (``jpeg``, ``png``).

        Returns:
            str: Fully qualified public URL of the written file.

        Raises:
            StorageError: If the file cannot be written.
        """
        name = generate_asset_name(extension)
        path = self.assets_root / name

        try:
            self.assets_root.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as asset_file:
                await asset_file.write(data)
        except OSError as e:
            logger.exception("Failed to write local asset", extra={"path": str(path)})
            raise StorageError("Failed to store asset", detail=str(e)) from e

        logger.info("Stored local asset", extra={"path": str(path), "size": len(data)})
        return f"{self.base_url}/{name}"


class ObjectAssetStorage:
    """
    Cloud-agnostic S3-compatible storage for processed videos.

    Uses boto3's generic S3 interface so MinIO (development) and AWS S3
    (production) work through the same code path; the endpoint URL decides.

    Attributes:
        s3_client: boto3 S3 client
        bucket_name: Target bucket for all uploads
        distribution_url: Public URL prefix (CDN distribution or bucket URL)
    """

    def __init__(self, s3_client: Any, bucket_name: str, distribution_url: str) -> None:
        self.s3_client = s3_client
        self.bucket_name = bucket_name
        self.distribution_url = distribution_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ObjectAssetStorage":
        """
        Build the storage from settings.

        When ``s3_endpoint_url`` is None boto3 targets AWS S3; when it is set
        (e.g. http://minio:9000) it targets that endpoint with path-style
        addressing.
        """
        client_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
        )
        s3_client = boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.s3_access_key_id,
            aws_secret_access_key=settings.s3_secret_access_key,
            region_name=settings.s3_region,
            config=client_config,
        )
        logger.info(
            "S3 storage client initialized",
            extra={
                "bucket": settings.s3_bucket_name,
                "region": settings.s3_region,
                "endpoint": settings.s3_endpoint_url or "AWS S3 (default)",
            },
        )
        return cls(s3_client, settings.s3_bucket_name, settings.s3_cf_distribution)

    def public_url(self, key: str) -> str:
        return f"{self.distribution_url}/{key}"

    async def upload_video(
        self,
        file_path: str | Path,
        category: AspectCategory,
        extension: str,
        media_type: str,
    ) -> str:
        """
        Upload a video file under a freshly generated key.

        Args:
            file_path: Local path of the (optimized) video.
            category: Aspect category, used as the key's first segment.
            extension: File extension for the key (``mp4``).
            media_type: Stored as the object's ContentType.

        Returns:
            str: Public URL of the uploaded object.

        Raises:
            StorageError: If the upload fails.
        """
        key = generate_video_key(category, extension)

        try:
            await asyncio.to_thread(
                self.s3_client.upload_file,
                str(file_path),
                self.bucket_name,
                key,
                ExtraArgs={"ContentType": media_type},
            )
        except (S3UploadFailedError, ClientError, BotoCoreError, OSError) as e:
            logger.exception(
                "Failed to upload video to object storage",
                extra={"key": key, "bucket": self.bucket_name},
            )
            raise StorageError("Failed to store video", detail=str(e)) from e

        logger.info("Uploaded video to object storage", extra={"key": key, "bucket": self.bucket_name})
        return self.public_url(key)
