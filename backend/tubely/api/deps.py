"""
FastAPI dependency providers for the v1 routers.

The upload service and its collaborators are built once during application
startup (see tubely.main.lifespan) and kept on ``app.state``. Routers resolve
them through these providers, which tests replace via
``app.dependency_overrides``.
"""

import uuid

from fastapi import Path, Request

from tubely.core.errors import BadInputError
from tubely.services.upload_service import UploadService


def get_upload_service(request: Request) -> UploadService:
    """
    Return the application's UploadService.

    Raises:
        RuntimeError: If the application started without building the service.
    """
    service = getattr(request.app.state, "upload_service", None)
    if service is None:
        raise RuntimeError("Upload service not initialized. Check application startup.")
    return service


def parse_video_id(video_id: str) -> str:
    """
    Normalize a video id path parameter.

    Raises:
        BadInputError: If the value is not a UUID.
    """
    try:
        return str(uuid.UUID(video_id))
    except ValueError as e:
        raise BadInputError("Invalid video ID") from e


def video_id_path(video_id: str = Path(..., description="Video record ID (UUID)")) -> str:
    return parse_video_id(video_id)
