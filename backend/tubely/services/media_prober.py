"""
Media Prober Service for Tubely

Inspects an uploaded video with ffprobe and classifies its first stream as
landscape (16:9), portrait (9:16) or other. The classification becomes the
first segment of the video's storage key.

The external tool runs as an async subprocess so the event loop keeps serving
other requests while it works. run_media_tool is shared with the stream
optimizer.
"""

import asyncio
import json
import logging

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from tubely.config import Settings
from tubely.core.errors import ProbeError
from tubely.models.video import AspectCategory


# Configure module logger
logger = logging.getLogger(__name__)


class MediaToolTimeoutError(Exception):
    """An ffprobe/ffmpeg run exceeded media_tool_timeout_seconds."""


@dataclass(frozen=True)
class MediaToolResult:
    """Exit status and captured output of one external tool run."""

    returncode: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace").strip()


async def run_media_tool(args: list[str], timeout: float | None = None) -> MediaToolResult:
    """
    Run an external media tool and capture its output.

    Args:
        args: Executable followed by its arguments.
        timeout: Seconds to wait before killing the process; None waits forever.

    Returns:
        MediaToolResult: Exit status with stdout and stderr.

    Raises:
        MediaToolTimeoutError: If the run exceeded the timeout.
        OSError: If the executable cannot be started.
    """
    logger.debug("Running media tool", extra={"command": args})

    process = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError as e:
        process.kill()
        await process.wait()
        raise MediaToolTimeoutError(f"{args[0]} exceeded {timeout}s") from e

    return MediaToolResult(returncode=process.returncode, stdout=stdout, stderr=stderr)


def classify_aspect_ratio(width: int, height: int) -> AspectCategory:
    """
    Classify frame dimensions with an exact integer ratio test.

    Examples:
        >>> classify_aspect_ratio(1920, 1080)
        <AspectCategory.LANDSCAPE: 'landscape'>
        >>> classify_aspect_ratio(1080, 1920)
        <AspectCategory.PORTRAIT: 'portrait'>
        >>> classify_aspect_ratio(1000, 1000)
        <AspectCategory.OTHER: 'other'>
    """
    if width == (16 * height) // 9:
        return AspectCategory.LANDSCAPE
    if height == (16 * width) // 9:
        return AspectCategory.PORTRAIT
    return AspectCategory.OTHER


class Prober(Protocol):
    """Anything that can classify a video file on disk."""

    async def probe_aspect_ratio(self, path: Path) -> AspectCategory: ...


class FFprobeProber:
    """Prober backed by the ffprobe executable."""

    def __init__(self, ffprobe_path: str = "ffprobe", timeout: float | None = None) -> None:
        self.ffprobe_path = ffprobe_path
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "FFprobeProber":
        return cls(settings.ffprobe_path, settings.media_tool_timeout_seconds)

    async def probe_aspect_ratio(self, path: Path) -> AspectCategory:
        """
        Probe a video file and classify its first stream.

        Raises:
            ProbeError: If ffprobe fails, times out, prints invalid JSON, or
                reports no streams.
        """
        args = [
            self.ffprobe_path,
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_streams",
            str(path),
        ]

        try:
            result = await run_media_tool(args, timeout=self.timeout)
        except (MediaToolTimeoutError, OSError) as e:
            logger.error("ffprobe could not complete", extra={"path": str(path), "error": str(e)})
            raise ProbeError("Could not probe video", detail=str(e)) from e

        if not result.ok:
            logger.error(
                "ffprobe exited with an error",
                extra={"path": str(path), "returncode": result.returncode, "stderr": result.stderr_text},
            )
            raise ProbeError("Could not probe video", detail=result.stderr_text)

        try:
            output = json.loads(result.stdout)
        except ValueError as e:
            raise ProbeError("Could not parse ffprobe output", detail=str(e)) from e

        streams = output.get("streams") if isinstance(output, dict) else None
        if not streams:
            raise ProbeError("No video streams found")

        first = streams[0]
        width, height = first.get("width"), first.get("height")
        if not isinstance(width, int) or not isinstance(height, int):
            return AspectCategory.OTHER

        category = classify_aspect_ratio(width, height)
        logger.info(
            "Probed video",
            extra={"path": str(path), "width": width, "height": height, "category": category.value},
        )
        return category
