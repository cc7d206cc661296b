"""
Tubely API v1 Router Aggregator.

Combines the v1 endpoint routers into a single APIRouter registered by
tubely.main under the /api/v1 prefix.

Router Structure:
    - /thumbnails: Thumbnail upload and read path
    - /videos: Video records and video upload
"""

import logging

from fastapi import APIRouter

from tubely.api.v1.thumbnails import router as thumbnails_router
from tubely.api.v1.videos import router as videos_router


# Configure logger
logger = logging.getLogger(__name__)

# Create the main API v1 router
api_router = APIRouter()

api_router.include_router(
    thumbnails_router,
    prefix="/thumbnails",
    tags=["thumbnails"],
)

api_router.include_router(
    videos_router,
    prefix="/videos",
    tags=["videos"],
)


__all__ = ["api_router"]
