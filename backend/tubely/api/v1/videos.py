"""
Video API Endpoints for Tubely.

Endpoints:
- POST / - Create a draft video owned by the caller
- GET / - List the caller's videos, newest first
- GET /{video_id} - Retrieve one video
- POST /{video_id} - Upload the video file (multipart field ``video``)

The upload runs the full pipeline within the request: validation, ffprobe
classification, ffmpeg fast-start rewrite, bucket upload and record update.
A 200 response means the returned video_url points at a stored object.
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile, status

from tubely.api.deps import get_upload_service, video_id_path
from tubely.core.auth import get_current_user_id
from tubely.models.video import VideoCreate, VideoResponse
from tubely.services.upload_service import UploadService


# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=VideoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create video",
    description="Create a draft video record owned by the authenticated user",
)
async def create_video(
    payload: VideoCreate,
    user_id: str = Depends(get_current_user_id),
    service: UploadService = Depends(get_upload_service),
) -> VideoResponse:
    video = await service.create_video(user_id, payload)
    return VideoResponse.from_video(video)


@router.get(
    "",
    response_model=list[VideoResponse],
    summary="List videos",
    description="List the authenticated user's videos, newest first",
)
async def list_videos(
    user_id: str = Depends(get_current_user_id),
    service: UploadService = Depends(get_upload_service),
) -> list[VideoResponse]:
    videos = await service.list_videos(user_id)
    return [VideoResponse.from_video(video) for video in videos]


@router.get(
    "/{video_id}",
    response_model=VideoResponse,
    summary="Get video",
    responses={404: {"description": "Video not found"}},
)
async def get_video(
    video_id: str = Depends(video_id_path),
    service: UploadService = Depends(get_upload_service),
) -> VideoResponse:
    video = await service.get_video(video_id)
    return VideoResponse.from_video(video)


@router.post(
    "/{video_id}",
    response_model=VideoResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload video",
    description="Upload an MP4 (max 1GB) for a video you own",
    responses={
        400: {"description": "Missing, oversized or wrong-type file"},
        401: {"description": "Missing or invalid bearer token"},
        403: {"description": "Video belongs to another user"},
        404: {"description": "Video not found"},
        500: {"description": "Probe, transcode or storage failure"},
    },
)
async def upload_video(
    video_id: str = Depends(video_id_path),
    video: UploadFile | str | None = File(None, description="MP4 video"),
    user_id: str = Depends(get_current_user_id),
    service: UploadService = Depends(get_upload_service),
) -> VideoResponse:
    """Upload a video and point the record's video_url at the stored object."""
    updated = await service.upload_video(video_id, user_id, video)
    return VideoResponse.from_video(updated)
