"""
Error taxonomy for the Tubely upload pipeline.

Every failure in the pipeline is raised as a TubelyError subclass carrying the
HTTP status it maps to. The exception handler registered in tubely.main turns
them into JSON responses; server-side failures (probe, transcode, storage) keep
their diagnostic text out of the response body and only in the logs.
"""

from fastapi import status


class TubelyError(Exception):
    """Base exception for all pipeline errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        # Diagnostic text (e.g. subprocess stderr), never sent to the client
        self.detail = detail

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR


class BadInputError(TubelyError):
    """Malformed, oversized or wrong-type upload."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(TubelyError):
    """Missing or invalid bearer credential."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(TubelyError):
    """Acting user does not own the target video."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(TubelyError):
    """Missing video record or stored asset."""

    status_code = status.HTTP_404_NOT_FOUND


class ProbeError(TubelyError):
    """ffprobe failed or returned no usable stream information."""


class TranscodeError(TubelyError):
    """ffmpeg failed to repackage the video."""


class StorageError(TubelyError):
    """Writing an asset to local disk or the object store failed."""
