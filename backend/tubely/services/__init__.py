"""
Services module for the Tubely backend.

- upload_service: Thumbnail and video upload pipelines
- media_prober: ffprobe aspect ratio classification
- stream_optimizer: ffmpeg fast-start repackaging
- thumbnail_store: Keyed thumbnail store (memory or Redis)

Collaborators are passed to UploadService explicitly; the FastAPI application
builds them at startup.
"""
