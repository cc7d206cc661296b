"""
Keyed Thumbnail Store for Tubely

Holds the latest thumbnail (bytes plus media type) for each video id so that
GET /api/v1/thumbnails/{video_id} can serve it. Two backends:

- MemoryThumbnailStore: in-process dict. Writers to the same key are
  serialized with a per-key asyncio.Lock; a reader always sees a complete
  (data, media_type) pair because each entry is replaced as one object.
- RedisThumbnailStore: one hash per video id. Both fields are written in a
  single HSET, which Redis applies atomically, so concurrent writers resolve
  to last-writer-wins on a whole pair.

Usage:
    ```python
    store = build_thumbnail_store(get_settings())
    await store.put(video_id, Thumbnail(data=b"...", media_type="image/png"))
    thumbnail = await store.get(video_id)
    await store.close()
    ```
"""

import asyncio
import logging

from collections import defaultdict
from dataclasses import dataclass
from typing import Protocol

import redis.asyncio as redis

from redis.exceptions import RedisError

from tubely.config import Settings
from tubely.core.errors import StorageError


# Configure module logger
logger = logging.getLogger(__name__)

# Key prefix for thumbnail hashes in Redis
REDIS_KEY_PREFIX = "tubely:thumbnail:"


@dataclass(frozen=True)
class Thumbnail:
    """Thumbnail payload with its declared media type."""

    data: bytes
    media_type: str


class ThumbnailStore(Protocol):
    """Keyed store of the current thumbnail per video id."""

    async def put(self, video_id: str, thumbnail: Thumbnail) -> None: ...

    async def get(self, video_id: str) -> Thumbnail | None: ...

    async def close(self) -> None: ...


class MemoryThumbnailStore:
    """In-process thumbnail store for single-worker deployments and tests."""

    def __init__(self) -> None:
        self._entries: dict[str, Thumbnail] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def put(self, video_id: str, thumbnail: Thumbnail) -> None:
        async with self._locks[video_id]:
            self._entries[video_id] = thumbnail

    async def get(self, video_id: str) -> Thumbnail | None:
        return self._entries.get(video_id)

    async def close(self) -> None:
        self._entries.clear()
        self._locks.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisThumbnailStore:
    """
    Redis-backed thumbnail store shared by all workers.

    Attributes:
        _client: redis.asyncio client with decode_responses disabled, since
            thumbnail data is binary
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisThumbnailStore":
        client = redis.from_url(settings.redis_url, decode_responses=False)
        return cls(client)

    @staticmethod
    def _key(video_id: str) -> str:
        return f"{REDIS_KEY_PREFIX}{video_id}"

    async def put(self, video_id: str, thumbnail: Thumbnail) -> None:
        """
        Store a thumbnail.

        Raises:
            StorageError: If Redis rejects the write or is unreachable.
        """
        try:
            await self._client.hset(
                self._key(video_id),
                mapping={"data": thumbnail.data, "media_type": thumbnail.media_type},
            )
        except RedisError as e:
            logger.exception("Failed to store thumbnail in Redis", extra={"video_id": video_id})
            raise StorageError("Failed to store thumbnail", detail=str(e)) from e

    async def get(self, video_id: str) -> Thumbnail | None:
        """
        Fetch a thumbnail, or None if none was stored.

        Raises:
            StorageError: If Redis is unreachable.
        """
        try:
            entry = await self._client.hgetall(self._key(video_id))
        except RedisError as e:
            logger.exception("Failed to read thumbnail from Redis", extra={"video_id": video_id})
            raise StorageError("Failed to read thumbnail", detail=str(e)) from e

        if not entry or b"data" not in entry or b"media_type" not in entry:
            return None
        return Thumbnail(data=entry[b"data"], media_type=entry[b"media_type"].decode("utf-8"))

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Redis thumbnail store closed")


def build_thumbnail_store(settings: Settings) -> ThumbnailStore:
    """Create the thumbnail store selected by ``thumbnail_store_backend``."""
    if settings.thumbnail_store_backend == "redis":
        logger.info("Using Redis thumbnail store")
        return RedisThumbnailStore.from_settings(settings)

    logger.info("Using in-memory thumbnail store")
    return MemoryThumbnailStore()
