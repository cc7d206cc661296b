"""
Stream optimizer: fast-start repackaging with ffmpeg.

Rewrites an MP4 so its moov index sits before the media data, letting players
start before the download finishes. Streams are copied, not re-encoded.
"""

import logging

from pathlib import Path
from typing import Protocol

from tubely.config import Settings
from tubely.core.errors import TranscodeError
from tubely.services.media_prober import MediaToolTimeoutError, run_media_tool


logger = logging.getLogger(__name__)

PROCESSED_SUFFIX = ".processed"


class Transcoder(Protocol):
    async def optimize_for_fast_start(self, path: Path) -> Path: ...


class FFmpegFastStartTranscoder:
    """Transcoder backed by the ffmpeg executable."""

    def __init__(self, ffmpeg_path: str = "ffmpeg", timeout: float | None = None) -> None:
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "FFmpegFastStartTranscoder":
        return cls(settings.ffmpeg_path, settings.media_tool_timeout_seconds)

    async def optimize_for_fast_start(self, path: Path) -> Path:
        """
        Write ``<path>.processed`` with the moov atom moved to the front.

        The caller owns both the input and the output file.

        Raises:
            TranscodeError: If ffmpeg fails or times out.
        """
        path = Path(path)
        output_path = path.with_name(path.name + PROCESSED_SUFFIX)
        args = [
            self.ffmpeg_path,
            "-i",
            str(path),
            "-movflags",
            "faststart",
            "-map_metadata",
            "0",
            "-codec",
            "copy",
            "-f",
            "mp4",
            str(output_path),
        ]

        try:
            result = await run_media_tool(args, timeout=self.timeout)
        except (MediaToolTimeoutError, OSError) as e:
            logger.error("ffmpeg could not complete", extra={"path": str(path), "error": str(e)})
            raise TranscodeError("Could not process video", detail=str(e)) from e

        if not result.ok:
            logger.error(
                "ffmpeg exited with an error",
                extra={"path": str(path), "returncode": result.returncode, "stderr": result.stderr_text},
            )
            raise TranscodeError("Could not process video", detail=result.stderr_text)

        logger.info("Optimized video for fast start", extra={"output": str(output_path)})
        return output_path
