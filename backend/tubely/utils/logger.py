"""
Structured Logging Configuration Module for Tubely

This module provides logging utilities with JSON-formatted output, context
enrichment via LoggerAdapter, and integration with Uvicorn's loggers so request
logs and pipeline logs share one format.

Features:
- JSONFormatter: Formatter outputting structured JSON log records
- StandardFormatter: Human-readable formatter for local development
- setup_logging: Application-wide logging configuration with Uvicorn integration
- add_log_context: Helper for enriching logs with video_id / user_id

Usage:
    from tubely.utils.logger import setup_logging, add_log_context

    setup_logging(log_level="INFO", json_logs=True)

    logger = logging.getLogger(__name__)
    ctx_logger = add_log_context(logger, video_id="abc123", user_id="user456")
    ctx_logger.info("Processing upload")
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# =============================================================================
# Constants
# =============================================================================

LOG_LEVEL_MAP: Dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Third-party loggers to reduce verbosity
THIRD_PARTY_LOGGERS: list = [
    "motor",
    "pymongo",
    "boto3",
    "botocore",
    "s3transfer",
    "urllib3",
    "redis",
    "asyncio",
    "multipart",
]


# =============================================================================
# Custom JSON Encoder
# =============================================================================


class LogJSONEncoder(json.JSONEncoder):
    """
    JSON encoder for log record serialization.

    Converts non-serializable values (paths, datetimes, bytes, exceptions) to
    strings so a log record can always be emitted.
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, bytes):
            return obj.decode("utf-8", errors="replace")
        if isinstance(obj, set):
            return list(obj)
        return str(obj)


# =============================================================================
# JSONFormatter Class
# =============================================================================


class JSONFormatter(logging.Formatter):
    """
    Logging formatter that outputs log records as JSON strings.

    Example output:
        {
            "timestamp": "2025-01-15T10:30:45.123456+00:00",
            "level": "INFO",
            "logger": "tubely.services.upload_service",
            "message": "Video stored",
            "extra": {"video_id": "abc123", "key": "landscape/ff01.mp4"}
        }
    """

    # Standard LogRecord attributes to exclude from extra fields
    RESERVED_ATTRS: set = {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
        "color_message",
    }

    def __init__(
        self,
        include_extra_fields: bool = True,
        include_source_location: bool = False,
    ) -> None:
        super().__init__()
        self.include_extra_fields = include_extra_fields
        self.include_source_location = include_source_location

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="microseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_source_location:
            log_entry["source"] = {
                "filename": record.filename,
                "lineno": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_entry["exception"] = self._format_exception(record)

        if record.stack_info:
            log_entry["stack_info"] = record.stack_info

        if self.include_extra_fields:
            extra_fields = self._extract_extra_fields(record)
            if extra_fields:
                log_entry["extra"] = extra_fields

        return json.dumps(
            log_entry,
            cls=LogJSONEncoder,
            ensure_ascii=False,
            separators=(",", ":"),
        )

    def _format_exception(self, record: logging.LogRecord) -> Dict[str, Any]:
        exc_type, exc_value, _exc_tb = record.exc_info
        return {
            "type": exc_type.__name__ if exc_type else "Unknown",
            "message": str(exc_value) if exc_value else "",
            "traceback": "".join(traceback.format_exception(*record.exc_info)),
        }

    def _extract_extra_fields(self, record: logging.LogRecord) -> Dict[str, Any]:
        """Collect attributes passed via ``extra=`` or a LoggerAdapter."""
        return {
            key: value
            for key, value in record.__dict__.items()
            if not key.startswith("_") and key not in self.RESERVED_ATTRS
        }


# =============================================================================
# Standard Text Formatter
# =============================================================================


class StandardFormatter(logging.Formatter):
    """
    Text formatter for console output in development mode.

    Format: [TIMESTAMP] LEVEL logger_name: message
    """

    DEFAULT_FORMAT: str = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
    DEFAULT_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None) -> None:
        super().__init__(
            fmt=fmt or self.DEFAULT_FORMAT,
            datefmt=datefmt or self.DEFAULT_DATE_FORMAT,
        )


# =============================================================================
# Application Logging Setup
# =============================================================================


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    third_party_level: str = "WARNING",
) -> None:
    """
    Configure application-wide logging with root logger and Uvicorn integration.

    Called once during FastAPI lifespan startup. Configures:
    - Root logger with a stdout handler using JSON or standard formatting
    - Uvicorn loggers so access/error logs share the same format
    - Reduced verbosity for boto3, motor, redis and friends

    Args:
        log_level: Application log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, output JSON format; if False, output standard text
        third_party_level: Log level for third-party libraries (default WARNING)
    """
    level_str = log_level.upper()
    level = LOG_LEVEL_MAP.get(level_str, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if json_logs:
        formatter: logging.Formatter = JSONFormatter(
            include_extra_fields=True,
            include_source_location=level <= logging.DEBUG,
        )
    else:
        formatter = StandardFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    _configure_uvicorn_logging(formatter, level)

    third_party_log_level = LOG_LEVEL_MAP.get(third_party_level.upper(), logging.WARNING)
    for logger_name in THIRD_PARTY_LOGGERS:
        logging.getLogger(logger_name).setLevel(third_party_log_level)

    logging.getLogger("tubely.utils.logger").info(
        "Logging configured: level=%s, json=%s", level_str, json_logs
    )


def _configure_uvicorn_logging(formatter: logging.Formatter, level: int) -> None:
    """Route uvicorn, uvicorn.access and uvicorn.error through our formatter."""
    for name, stream in (
        ("uvicorn", sys.stdout),
        ("uvicorn.access", sys.stdout),
        ("uvicorn.error", sys.stderr),
    ):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.setLevel(level)
        uvicorn_logger.propagate = False
        uvicorn_logger.handlers.clear()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(formatter)
        uvicorn_logger.addHandler(handler)


# =============================================================================
# Context Enrichment
# =============================================================================


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    LoggerAdapter that merges its context into per-call ``extra`` fields
    instead of replacing them.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get("extra", {})
        for key, value in self.extra.items():
            if key not in extra:
                extra[key] = value
        kwargs["extra"] = extra
        return msg, kwargs


def add_log_context(logger: logging.Logger, **kwargs: Any) -> logging.LoggerAdapter:
    """
    Create a LoggerAdapter that enriches all log messages with context fields.

    Example:
        ctx_logger = add_log_context(logger, video_id="abc-123", user_id="user-456")
        ctx_logger.info("Starting video upload")
        ctx_logger.error("Probe failed", extra={"stderr": "..."})
    """
    return ContextLoggerAdapter(logger, kwargs)


__all__ = [
    "JSONFormatter",
    "StandardFormatter",
    "ContextLoggerAdapter",
    "setup_logging",
    "add_log_context",
    "LOG_LEVEL_MAP",
]
