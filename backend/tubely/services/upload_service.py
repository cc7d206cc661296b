"""
Tubely Upload Service Module

Per-request upload pipelines for thumbnails and videos. Every step is awaited
in order and the first failure aborts the request:

    AuthCheck -> Validate -> [video: PersistTemp -> Probe -> Transform]
              -> Store -> RecordUpdate -> Done

The caller (the router) has already resolved the acting user from the bearer
credential. The service loads the record and checks ownership before it looks
at the uploaded file, and writes the record exactly once, after storage
succeeded, so a record never points at media that was not stored.

Video uploads are staged in a scoped temporary directory that is removed on
every exit path, together with the processed copy ffmpeg writes next to it.

Collaborators are injected so tests can substitute fakes:
- DatabaseClient: video record reads and writes
- LocalAssetStorage: thumbnail files served from /assets
- ObjectAssetStorage: processed videos in the S3 bucket
- ThumbnailStore: keyed thumbnail bytes served by GET /thumbnails/{id}
- Prober / Transcoder: ffprobe classification and ffmpeg fast-start rewrite
"""

import logging
import tempfile

from pathlib import Path

import aiofiles

from fastapi import UploadFile

from tubely.core.database import DatabaseClient, create_video, get_video, list_videos, update_video
from tubely.core.errors import ForbiddenError, NotFoundError, StorageError
from tubely.core.storage import LocalAssetStorage, ObjectAssetStorage
from tubely.models.video import Video, VideoCreate
from tubely.services.media_prober import Prober
from tubely.services.stream_optimizer import Transcoder
from tubely.services.thumbnail_store import Thumbnail, ThumbnailStore
from tubely.utils.file_validator import THUMBNAIL_RULE, VIDEO_RULE, validate_upload
from tubely.utils.logger import add_log_context


# Configure module logger
logger = logging.getLogger(__name__)

# Read size when streaming a video upload to its temp file
UPLOAD_CHUNK_SIZE = 1024 * 1024


class UploadService:
    """
    Orchestrates thumbnail and video uploads against one video record.

    Attributes:
        db: Database client holding the videos collection
        local_storage: Writer for thumbnail files
        object_storage: Uploader for processed videos
        thumbnail_store: Keyed store backing the thumbnail read path
        prober: Aspect ratio classifier
        transcoder: Fast-start rewriter
        temp_root: Parent directory for per-request temp directories (None uses
            the system default)

    Example:
        ```python
        service = UploadService(
            db=get_db_client(),
            local_storage=LocalAssetStorage.from_settings(settings),
            object_storage=ObjectAssetStorage.from_settings(settings),
            thumbnail_store=MemoryThumbnailStore(),
            prober=FFprobeProber.from_settings(settings),
            transcoder=FFmpegFastStartTranscoder.from_settings(settings),
        )
        video = await service.upload_video(video_id, user_id, upload)
        ```
    """

    def __init__(
        self,
        db: DatabaseClient,
        local_storage: LocalAssetStorage,
        object_storage: ObjectAssetStorage,
        thumbnail_store: ThumbnailStore,
        prober: Prober,
        transcoder: Transcoder,
        temp_root: str | Path | None = None,
    ) -> None:
        self.db = db
        self.local_storage = local_storage
        self.object_storage = object_storage
        self.thumbnail_store = thumbnail_store
        self.prober = prober
        self.transcoder = transcoder
        self.temp_root = temp_root

    # =========================================================================
    # Record access
    # =========================================================================

    async def get_video(self, video_id: str) -> Video:
        """
        Load a video record.

        Raises:
            NotFoundError: If no record has this id.
        """
        video = await get_video(self.db, video_id)
        if video is None:
            raise NotFoundError("Couldn't find video")
        return video

    async def _get_owned_video(self, video_id: str, user_id: str) -> Video:
        video = await self.get_video(video_id)
        if not video.owned_by(user_id):
            logger.warning(
                "Rejected upload by non-owner",
                extra={"video_id": video_id, "user_id": user_id, "owner_id": video.user_id},
            )
            raise ForbiddenError("Not authorized to update this video")
        return video

    async def create_video(self, user_id: str, payload: VideoCreate) -> Video:
        video = Video(user_id=user_id, title=payload.title, description=payload.description)
        return await create_video(self.db, video)

    async def list_videos(self, user_id: str) -> list[Video]:
        return await list_videos(self.db, user_id)

    # =========================================================================
    # Thumbnails
    # =========================================================================

    async def upload_thumbnail(
        self, video_id: str, user_id: str, upload: UploadFile | str | None
    ) -> Video:
        """
        Validate, store and record a thumbnail for a video.

        Args:
            video_id: Target video record.
            user_id: Authenticated caller; must own the video.
            upload: The ``thumbnail`` form field, None if it was not sent and a
                string if it was sent as a plain text part.

        Returns:
            Video: The updated record with ``thumbnail_url`` set.

        Raises:
            NotFoundError: If the video does not exist.
            ForbiddenError: If the caller does not own the video.
            BadInputError: If the upload is missing, too large or not JPEG/PNG.
            StorageError: If the file or the keyed entry cannot be written.
        """
        ctx_logger = add_log_context(logger, video_id=video_id, user_id=user_id)
        ctx_logger.info("Uploading thumbnail")

        video = await self._get_owned_video(video_id, user_id)
        validated = validate_upload(THUMBNAIL_RULE, upload)

        await validated.file.seek(0)
        data = await validated.file.read()
        thumbnail_url = await self.local_storage.save(data, validated.extension)
        await self.thumbnail_store.put(
            video_id, Thumbnail(data=data, media_type=validated.media_type)
        )

        video.thumbnail_url = thumbnail_url
        video.touch()
        await update_video(self.db, video)

        ctx_logger.info(
            "Thumbnail uploaded",
            extra={"thumbnail_url": thumbnail_url, "size": validated.size},
        )
        return video

    async def get_thumbnail(self, video_id: str) -> Thumbnail:
        """
        Return the stored thumbnail for a video.

        Raises:
            NotFoundError: If the video or its thumbnail does not exist.
        """
        await self.get_video(video_id)
        thumbnail = await self.thumbnail_store.get(video_id)
        if thumbnail is None:
            raise NotFoundError("Thumbnail not found")
        return thumbnail

    # =========================================================================
    # Videos
    # =========================================================================

    async def upload_video(
        self, video_id: str, user_id: str, upload: UploadFile | str | None
    ) -> Video:
        """
        Validate, probe, repackage, store and record a video.

        The upload is written to ``<tmpdir>/<video_id>.mp4``, classified by
        ffprobe, rewritten for fast start, uploaded under
        ``<category>/<random>.mp4`` and only then recorded on the video.

        Returns:
            Video: The updated record with ``video_url`` set.

        Raises:
            NotFoundError: If the video does not exist.
            ForbiddenError: If the caller does not own the video.
            BadInputError: If the upload is missing, too large or not MP4.
            ProbeError: If ffprobe cannot classify the file.
            TranscodeError: If ffmpeg cannot repackage the file.
            StorageError: If staging or the bucket upload fails.
        """
        ctx_logger = add_log_context(logger, video_id=video_id, user_id=user_id)
        ctx_logger.info("Uploading video")

        video = await self._get_owned_video(video_id, user_id)
        validated = validate_upload(VIDEO_RULE, upload)

        with tempfile.TemporaryDirectory(prefix="tubely-upload-", dir=self.temp_root) as tmp_dir:
            staged_path = Path(tmp_dir) / f"{video_id}.{validated.extension}"
            await self._stage_upload(validated.file, staged_path)
            ctx_logger.debug("Staged video upload", extra={"path": str(staged_path)})

            category = await self.prober.probe_aspect_ratio(staged_path)
            processed_path = await self.transcoder.optimize_for_fast_start(staged_path)

            video_url = await self.object_storage.upload_video(
                processed_path,
                category,
                validated.extension,
                validated.media_type,
            )
            processed_path.unlink(missing_ok=True)

        video.video_url = video_url
        video.touch()
        await update_video(self.db, video)

        ctx_logger.info(
            "Video uploaded",
            extra={"video_url": video_url, "category": category.value, "size": validated.size},
        )
        return video

    async def _stage_upload(self, upload: UploadFile, destination: Path) -> None:
        """Stream an upload to disk in chunks."""
        try:
            await upload.seek(0)
            async with aiofiles.open(destination, "wb") as staged:
                while chunk := await upload.read(UPLOAD_CHUNK_SIZE):
                    await staged.write(chunk)
        except OSError as e:
            logger.exception("Failed to stage upload", extra={"path": str(destination)})
            raise StorageError("Failed to stage upload", detail=str(e)) from e
