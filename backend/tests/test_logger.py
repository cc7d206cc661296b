"""Structured logging tests."""

import json
import logging
import sys

from pathlib import Path

import pytest

from tubely.utils.logger import JSONFormatter, add_log_context


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="tubely.services.upload_service",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Video uploaded",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestJSONFormatter:
    def test_includes_extra_fields(self):
        output = json.loads(JSONFormatter().format(make_record(video_id="abc", size=42)))

        assert output["level"] == "INFO"
        assert output["logger"] == "tubely.services.upload_service"
        assert output["message"] == "Video uploaded"
        assert output["extra"] == {"video_id": "abc", "size": 42}

    def test_serializes_bytes_and_paths(self):
        output = json.loads(JSONFormatter().format(make_record(stderr=b"boom", path=Path("/tmp/x"))))

        assert output["extra"]["stderr"] == "boom"
        assert output["extra"]["path"] == "/tmp/x"

    def test_includes_exception(self):
        try:
            raise ValueError("bad stream")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        output = json.loads(JSONFormatter().format(record))

        assert output["exception"]["type"] == "ValueError"
        assert output["exception"]["message"] == "bad stream"


@pytest.mark.unit
class TestContextLoggerAdapter:
    def test_context_merges_with_call_extra(self, caplog):
        ctx_logger = add_log_context(logging.getLogger("tubely.test"), video_id="v1", user_id="u1")

        with caplog.at_level(logging.INFO, logger="tubely.test"):
            ctx_logger.info("Uploading", extra={"size": 10, "user_id": "override"})

        record = caplog.records[-1]
        assert record.video_id == "v1"
        assert record.user_id == "override"
        assert record.size == 10
