"""Fast-start transcoder tests with a patched ffmpeg subprocess."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tubely.core.errors import TranscodeError
from tubely.services.stream_optimizer import FFmpegFastStartTranscoder


SUBPROCESS_TARGET = "tubely.services.media_prober.asyncio.create_subprocess_exec"


def fake_process(returncode: int = 0, stderr: bytes = b"") -> MagicMock:
    process = MagicMock()
    process.communicate = AsyncMock(return_value=(b"", stderr))
    process.returncode = returncode
    return process


@pytest.mark.unit
class TestFFmpegFastStartTranscoder:
    @pytest.mark.asyncio
    async def test_writes_processed_sibling(self):
        transcoder = FFmpegFastStartTranscoder("/usr/bin/ffmpeg")

        with patch(SUBPROCESS_TARGET, AsyncMock(return_value=fake_process())) as spawn:
            output = await transcoder.optimize_for_fast_start(Path("/tmp/work/abc.mp4"))

        assert output == Path("/tmp/work/abc.mp4.processed")
        assert list(spawn.call_args.args) == [
            "/usr/bin/ffmpeg",
            "-i",
            "/tmp/work/abc.mp4",
            "-movflags",
            "faststart",
            "-map_metadata",
            "0",
            "-codec",
            "copy",
            "-f",
            "mp4",
            "/tmp/work/abc.mp4.processed",
        ]

    @pytest.mark.asyncio
    async def test_nonzero_exit_raises_transcode_error(self):
        process = fake_process(returncode=1, stderr=b"moov atom not found")

        with patch(SUBPROCESS_TARGET, AsyncMock(return_value=process)):
            with pytest.raises(TranscodeError) as exc_info:
                await FFmpegFastStartTranscoder().optimize_for_fast_start(Path("abc.mp4"))

        assert exc_info.value.detail == "moov atom not found"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_missing_executable_raises_transcode_error(self):
        with patch(SUBPROCESS_TARGET, AsyncMock(side_effect=FileNotFoundError("ffmpeg"))):
            with pytest.raises(TranscodeError):
                await FFmpegFastStartTranscoder().optimize_for_fast_start(Path("abc.mp4"))

    def test_from_settings_carries_timeout(self, test_settings):
        settings = test_settings.model_copy(update={"media_tool_timeout_seconds": 30.0})
        transcoder = FFmpegFastStartTranscoder.from_settings(settings)
        assert transcoder.timeout == 30.0
        assert transcoder.ffmpeg_path == "ffmpeg"
