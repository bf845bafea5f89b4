"""
Object storage for user-uploaded images (S3-compatible and in-memory).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from travel_threads.core.settings import Settings
from travel_threads.errors import InvalidOperationError, StorageError
from travel_threads.services.context import ServiceContext

logger = logging.getLogger(__name__)

IMAGE_PREFIX = "images"


class StorageClient(Protocol):
    """Defines the operations the services need from object storage."""

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store ``data`` at ``path`` and return its public URL."""
        ...

    def get_bytes(self, path: str) -> bytes:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/media"
    stored_objects: dict[str, tuple[bytes, str]] = field(default_factory=dict)

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        self.stored_objects[path] = (bytes(data), content_type)
        return f"{self.base_url.rstrip('/')}/{path}"

    def get_bytes(self, path: str) -> bytes:
        stored = self.stored_objects.get(path)
        if stored is None:
            raise FileNotFoundError(path)
        return stored[0]


@dataclass
class S3StorageClient:
    """
    S3-compatible storage client.

    Objects are written with ``put_object``; the returned URL is built from
    ``public_base_url`` when set, otherwise from the bucket endpoint.
    """

    bucket: str
    region: str | None = None
    endpoint_url: str | None = None
    public_base_url: str | None = None

    def __post_init__(self) -> None:
        config = Config(signature_version="s3v4")
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            region_name=self.region,
            config=config,
        )

    def public_url(self, path: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{path}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{path}"
        region = self.region or "us-east-1"
        return f"https://{self.bucket}.s3.{region}.amazonaws.com/{path}"

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to upload {path}") from exc
        return self.public_url(path)

    def get_bytes(self, path: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=path)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to read {path}") from exc
        return response["Body"].read()


def create_storage(settings: Settings) -> StorageClient:
    """Build the storage client selected by ``settings.storage_backend``."""
    if settings.storage_backend == "s3":
        if not settings.s3_bucket:
            raise ValueError("S3_BUCKET must be set when STORAGE_BACKEND=s3")
        return S3StorageClient(
            bucket=settings.s3_bucket,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            public_base_url=settings.s3_public_base_url,
        )
    return InMemoryStorageClient(base_url=settings.media_base_url)


async def upload_image(
    ctx: ServiceContext,
    filename: str,
    data: bytes,
    content_type: str = "application/octet-stream",
) -> str:
    """Store an image under ``images/<filename>`` and return its public URL.

    Raises:
        InvalidOperationError: For an empty file, a missing name or a non-image type
        StorageError: If no storage is configured or the upload fails
    """
    if ctx.storage is None:
        raise StorageError("No media storage configured")
    name = PurePosixPath(filename.replace("\\", "/")).name
    if not name:
        raise InvalidOperationError("A file name is required")
    if not data:
        raise InvalidOperationError("Cannot upload an empty file")
    if not content_type.startswith("image/"):
        raise InvalidOperationError(f"Unsupported content type {content_type!r}")

    path = f"{IMAGE_PREFIX}/{name}"
    url = await asyncio.to_thread(ctx.storage.upload, path, data, content_type)
    logger.info("Uploaded %d bytes to %s", len(data), path)
    return url
