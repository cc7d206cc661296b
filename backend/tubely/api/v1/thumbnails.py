"""
Thumbnail API Endpoints for Tubely.

Endpoints:
- GET /{video_id} - Serve the current thumbnail bytes with their media type
- POST /{video_id} - Upload a thumbnail (multipart field ``thumbnail``)

Uploads require a bearer credential and ownership of the video. The read path
is public and never cached by clients, since a new upload replaces the bytes
under the same URL.
"""

import logging

from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from tubely.api.deps import get_upload_service, video_id_path
from tubely.core.auth import get_current_user_id
from tubely.models.video import VideoResponse
from tubely.services.upload_service import UploadService


# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/{video_id}",
    status_code=status.HTTP_200_OK,
    summary="Get thumbnail",
    description="Returns the thumbnail bytes stored for a video",
    responses={
        200: {"content": {"image/jpeg": {}, "image/png": {}}},
        404: {"description": "Video or thumbnail not found"},
    },
)
async def get_thumbnail(
    video_id: str = Depends(video_id_path),
    service: UploadService = Depends(get_upload_service),
) -> Response:
    thumbnail = await service.get_thumbnail(video_id)
    return Response(
        content=thumbnail.data,
        media_type=thumbnail.media_type,
        headers={"Cache-Control": "no-store"},
    )


@router.post(
    "/{video_id}",
    response_model=VideoResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload thumbnail",
    description="Upload a JPEG or PNG thumbnail (max 10MB) for a video you own",
    responses={
        400: {"description": "Missing, oversized or wrong-type file"},
        401: {"description": "Missing or invalid bearer token"},
        403: {"description": "Video belongs to another user"},
        404: {"description": "Video not found"},
    },
)
async def upload_thumbnail(
    video_id: str = Depends(video_id_path),
    thumbnail: UploadFile | str | None = File(None, description="JPEG or PNG image"),
    user_id: str = Depends(get_current_user_id),
    service: UploadService = Depends(get_upload_service),
) -> VideoResponse:
    """
    Upload a thumbnail and point the video's thumbnail_url at it.

    The file is written to the assets directory and kept in the thumbnail
    store so GET /thumbnails/{video_id} returns the same bytes.
    """
    video = await service.upload_thumbnail(video_id, user_id, thumbnail)
    return VideoResponse.from_video(video)
