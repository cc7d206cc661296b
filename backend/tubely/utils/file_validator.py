"""
Upload Validation Utilities Module for Tubely

Validates multipart uploads before anything touches disk, external tools or
storage. Each asset kind has a fixed rule:

- Thumbnails: at most 10 MiB, declared type image/jpeg or image/png
- Videos: at most 1 GiB, declared type video/mp4

Checks run in a fixed order (presence, size, media type) and the first
violation raises BadInputError. Validation has no side effects.
"""

import os

from dataclasses import dataclass

from fastapi import UploadFile
from starlette.datastructures import UploadFile as StarletteUploadFile

from tubely.core.errors import BadInputError


# =============================================================================
# CONSTANTS - Size Limits
# =============================================================================

MAX_THUMBNAIL_SIZE_BYTES: int = 10 << 20  # 10 MiB

MAX_VIDEO_SIZE_BYTES: int = 1 << 30  # 1 GiB


# =============================================================================
# CONSTANTS - Allowed Media Types
# =============================================================================

ALLOWED_THUMBNAIL_MEDIA_TYPES: frozenset[str] = frozenset({"image/jpeg", "image/png"})

ALLOWED_VIDEO_MEDIA_TYPES: frozenset[str] = frozenset({"video/mp4"})


@dataclass(frozen=True)
class UploadRule:
    """Validation rule for one kind of uploaded asset."""

    kind: str
    max_size_bytes: int
    allowed_media_types: frozenset[str]

    @property
    def max_size_label(self) -> str:
        return format_file_size(self.max_size_bytes)


THUMBNAIL_RULE = UploadRule(
    kind="thumbnail",
    max_size_bytes=MAX_THUMBNAIL_SIZE_BYTES,
    allowed_media_types=ALLOWED_THUMBNAIL_MEDIA_TYPES,
)

VIDEO_RULE = UploadRule(
    kind="video",
    max_size_bytes=MAX_VIDEO_SIZE_BYTES,
    allowed_media_types=ALLOWED_VIDEO_MEDIA_TYPES,
)


@dataclass(frozen=True)
class ValidatedUpload:
    """An upload that passed its rule, with the facts the pipeline needs."""

    file: UploadFile
    size: int
    media_type: str

    @property
    def extension(self) -> str:
        return media_type_extension(self.media_type)


# =============================================================================
# VALIDATION
# =============================================================================


def measure_upload_size(upload: UploadFile) -> int:
    """
    Return the byte size of an upload.

    Uses the size recorded by the multipart parser when available, otherwise
    seeks the spooled file to its end and restores the position.
    """
    if upload.size is not None:
        return upload.size

    position = upload.file.tell()
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(position)
    return size


def validate_upload(rule: UploadRule, upload: UploadFile | str | None) -> ValidatedUpload:
    """
    Validate an uploaded file against a rule.

    Args:
        rule: THUMBNAIL_RULE or VIDEO_RULE.
        upload: The form field value; None when the field was not submitted,
            a string when it was submitted as a plain text part.

    Returns:
        ValidatedUpload: The upload handle, its size and its media type.

    Raises:
        BadInputError: If the file is missing, too large, or of a media type
            outside the rule's whitelist.
    """
    if not isinstance(upload, StarletteUploadFile) or not upload.filename:
        raise BadInputError(f"{rule.kind.capitalize()} file missing")

    size = measure_upload_size(upload)
    if size > rule.max_size_bytes:
        raise BadInputError(
            f"{rule.kind.capitalize()} file size is greater than {rule.max_size_label}"
        )

    media_type = (upload.content_type or "").split(";", 1)[0].strip().lower()
    if media_type not in rule.allowed_media_types:
        allowed = ", ".join(sorted(rule.allowed_media_types))
        raise BadInputError(f"Invalid {rule.kind} media type '{media_type}'. Allowed: {allowed}")

    return ValidatedUpload(file=upload, size=size, media_type=media_type)


def media_type_extension(media_type: str) -> str:
    """Derive a file extension from a media type: image/jpeg -> jpeg."""
    return media_type.split("/", 1)[1]


def format_file_size(size_bytes: int) -> str:
    """
    Format a byte count for error messages.

    Examples:
        >>> format_file_size(10 << 20)
        '10MB'
        >>> format_file_size(1 << 30)
        '1GB'
    """
    for unit, factor in (("GB", 1 << 30), ("MB", 1 << 20), ("KB", 1 << 10)):
        if size_bytes >= factor and size_bytes % factor == 0:
            return f"{size_bytes // factor}{unit}"
    return f"{size_bytes} bytes"
