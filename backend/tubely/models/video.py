"""
Video Pydantic models for Tubely.

The Video model is the record the upload pipeline reads, mutates and writes
back. Only thumbnail_url and video_url are touched by uploads; the other fields
are descriptive and owned by whoever created the record.
"""

import uuid

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AspectCategory(str, Enum):
    """
    Classification of a video's frame dimensions.

    Used as the first segment of a video's storage key.
    """

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


class Video(BaseModel):
    """
    Video record stored in the ``videos`` collection.

    Attributes:
        id: Record identifier (stored as MongoDB ``_id``)
        user_id: Identifier of the owning user
        title: Display title
        description: Free-form description
        thumbnail_url: Public URL of the uploaded thumbnail, None until set
        video_url: Public URL of the processed video, None until set
        created_at: Creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), alias="_id")

    user_id: str = Field(..., min_length=1, description="Owning user's ID")

    title: str = Field(default="", max_length=200)

    description: str = Field(default="", max_length=5000)

    thumbnail_url: str | None = Field(default=None, description="Public thumbnail URL")

    video_url: str | None = Field(default=None, description="Public video URL")

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "2f0c8f3e-6a47-4b38-9d8e-1f6b1f0d6e21",
                "user_id": "0b6b4a2e-1c1d-4c55-8f0e-6f9f5b7e2a10",
                "title": "Boots on the ground",
                "description": "Field test footage",
                "thumbnail_url": "http://localhost:8091/assets/Yb3...Q.png",
                "video_url": "https://d1234.cloudfront.net/landscape/9f2c...e1.mp4",
            }
        },
    )

    def owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id

    def touch(self) -> None:
        self.updated_at = datetime.now(UTC)

    def to_document(self) -> dict:
        """Serialize for MongoDB, keeping ``_id`` as the key."""
        return self.model_dump(by_alias=True)


class VideoCreate(BaseModel):
    """Request body for creating a draft video."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)


class VideoResponse(BaseModel):
    """Video as returned by the API."""

    id: str
    user_id: str
    title: str
    description: str
    thumbnail_url: str | None
    video_url: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_video(cls, video: Video) -> "VideoResponse":
        return cls(**video.model_dump())
