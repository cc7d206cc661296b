"""
Tubely MongoDB Database Client Module

This module provides async MongoDB connection management using Motor and the
video record accessors consumed by the upload pipeline:
- Connection pooling with configurable pool size
- Health checks using MongoDB ping command
- Index creation for owner lookups
- Startup/shutdown lifecycle management for FastAPI integration
- get_video / update_video / create_video / list_videos helpers

The upload pipeline reads one record, mutates one URL field and writes it back
exactly once, after storage has succeeded.
"""

import logging

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from tubely.config import Settings, get_settings
from tubely.models.video import Video


# Configure module logger
logger = logging.getLogger(__name__)

# Collection name constants for consistency
VIDEOS_COLLECTION = "videos"


class DatabaseClient:
    """
    Async MongoDB client wrapper with connection pooling and lifecycle management.

    Attributes:
        _settings: Settings instance containing MongoDB configuration
        _client: Motor async MongoDB client instance
        _database: Motor async database instance

    Example usage:
        ```python
        db_client = DatabaseClient(get_settings())
        await db_client.connect()

        video = await get_video(db_client, "some-id")

        await db_client.close()
        ```
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._db_name = settings.mongodb_db_name
        self._client: AsyncIOMotorClient | None = None
        self._database: AsyncIOMotorDatabase | None = None

    async def connect(self) -> bool:
        """
        Establish the MongoDB connection and verify it with a ping.

        Returns:
            bool: True if connection successful, False otherwise.
        """
        try:
            logger.info("Connecting to MongoDB database: %s", self._db_name)

            self._client = AsyncIOMotorClient(
                self._settings.mongodb_uri,
                minPoolSize=self._settings.mongodb_min_pool_size,
                maxPoolSize=self._settings.mongodb_max_pool_size,
                serverSelectionTimeoutMS=5000,
                uuidRepresentation="standard",
            )
            self._database = self._client[self._db_name]

            await self._client.admin.command("ping")

            logger.info("Connected to MongoDB database: %s", self._db_name)
            return True

        except (ConnectionFailure, ServerSelectionTimeoutError):
            logger.exception("MongoDB connection failed for database: %s", self._db_name)
            return False

    async def close(self) -> None:
        """Close the Motor client. Safe to call when not connected."""
        if self._client is not None:
            self._client.close()
            logger.info("MongoDB connection closed for database: %s", self._db_name)
        self._client = None
        self._database = None

    async def ping(self) -> bool:
        """
        Health check using MongoDB admin ping command.

        Returns:
            bool: True if MongoDB responds, False otherwise.
        """
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
            return True
        except (ConnectionFailure, ServerSelectionTimeoutError):
            logger.exception("MongoDB ping failed")
            return False

    def get_videos_collection(self) -> AsyncIOMotorCollection:
        """
        Get the videos collection.

        Raises:
            RuntimeError: If not connected to MongoDB.
        """
        if self._database is None:
            raise RuntimeError(
                "MongoDB database not available. Call connect() first or check connection status."
            )
        return self._database[VIDEOS_COLLECTION]

    async def create_indexes(self) -> None:
        """Create the owner index used by list_videos."""
        videos = self.get_videos_collection()
        await videos.create_index(
            [("user_id", ASCENDING), ("created_at", DESCENDING)],
            name="user_id_created_at",
        )
        logger.info("Ensured indexes on collection: %s", VIDEOS_COLLECTION)


# =============================================================================
# Video Record Accessors
# =============================================================================


async def get_video(db: DatabaseClient, video_id: str) -> Video | None:
    """Load a video record by id, or None if it does not exist."""
    document = await db.get_videos_collection().find_one({"_id": video_id})
    if document is None:
        return None
    return Video.model_validate(document)


async def update_video(db: DatabaseClient, video: Video) -> None:
    """Persist a full video record, replacing the stored document."""
    result = await db.get_videos_collection().replace_one(
        {"_id": video.id}, video.to_document()
    )
    logger.debug(
        "Updated video record",
        extra={"video_id": video.id, "matched": getattr(result, "matched_count", None)},
    )


async def create_video(db: DatabaseClient, video: Video) -> Video:
    """Insert a new video record."""
    await db.get_videos_collection().insert_one(video.to_document())
    logger.info("Created video record", extra={"video_id": video.id, "user_id": video.user_id})
    return video


async def list_videos(db: DatabaseClient, user_id: str) -> list[Video]:
    """Return the user's videos, newest first."""
    cursor = db.get_videos_collection().find({"user_id": user_id}).sort("created_at", DESCENDING)
    return [Video.model_validate(document) async for document in cursor]


# =============================================================================
# Global Client Lifecycle
# =============================================================================


class _DatabaseClientContainer:
    """Container for database client singleton to avoid global statements."""

    client: DatabaseClient | None = None


_container = _DatabaseClientContainer()


async def init_db(settings: Settings | None = None) -> DatabaseClient:
    """
    Initialize the global database client during application startup.

    Raises:
        RuntimeError: If the connection to MongoDB fails.
    """
    if _container.client is not None:
        return _container.client

    client = DatabaseClient(settings or get_settings())
    if not await client.connect():
        raise RuntimeError(
            "Failed to establish MongoDB connection. "
            "Check mongodb_uri configuration and server availability."
        )
    await client.create_indexes()

    _container.client = client
    return client


async def close_db() -> None:
    """Close the global database client during application shutdown."""
    if _container.client is not None:
        await _container.client.close()
        _container.client = None


def get_db_client() -> DatabaseClient:
    """
    Get the global database client singleton instance.

    Raises:
        RuntimeError: If database client has not been initialized.
    """
    if _container.client is None:
        raise RuntimeError(
            "Database client not initialized. Call init_db() first during application startup."
        )
    return _container.client
