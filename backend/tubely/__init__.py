"""
Tubely Backend Application Package

This package contains the Tubely FastAPI application: a media upload backend
that accepts thumbnail and video uploads for owned video records. It provides:

- Upload validation (size ceilings, media type whitelists)
- Aspect ratio classification with ffprobe
- Fast-start repackaging with ffmpeg
- Thumbnail storage on local disk, video storage in S3/MinIO
- Video records in MongoDB

Package Structure:
- api/: REST API endpoints organized by version (v1)
- core/: Core infrastructure (auth, database, storage, errors)
- models/: Pydantic data models
- services/: Upload pipeline and media tool wrappers
- utils/: Validation and logging helpers
"""

__version__ = "1.0.0"
__app_name__ = "tubely"
