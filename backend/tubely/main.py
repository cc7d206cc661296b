#!/usr/bin/env python3
"""
Tubely FastAPI Application Entry Point

This module serves as the main entry point for the Tubely upload backend. It provides:

- FastAPI application initialization
- CORS middleware for the web client
- API router registration under /api/v1
- Startup/shutdown lifecycle for MongoDB, the thumbnail store and the upload service
- Static serving of thumbnail files under /assets
- Health and readiness endpoints
- Request logging middleware with request IDs and timing headers
- Mapping of pipeline errors to JSON responses

API Structure:
    /api/v1/thumbnails - Thumbnail upload and read path
    /api/v1/videos     - Video records and video upload
    /assets            - Thumbnail files written by uploads

Usage:
    # Run with uvicorn directly
    uvicorn tubely.main:app --host 0.0.0.0 --port 8091 --reload

    # Run as Python module
    python -m tubely.main
"""

import logging
import time
import uuid

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import uvicorn

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from tubely.api.v1 import api_router
from tubely.config import get_settings
from tubely.core.database import close_db, get_db_client, init_db
from tubely.core.errors import TubelyError
from tubely.core.storage import LocalAssetStorage, ObjectAssetStorage
from tubely.services.media_prober import FFprobeProber
from tubely.services.stream_optimizer import FFmpegFastStartTranscoder
from tubely.services.thumbnail_store import build_thumbnail_store
from tubely.services.upload_service import UploadService
from tubely.utils.logger import setup_logging


# Configure module logger
logger = logging.getLogger(__name__)

# HTTP status code constants
HTTP_ERROR_THRESHOLD = 400  # Status codes >= 400 indicate errors

API_VERSION = "1.0.0"


# =============================================================================
# Application Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle events for startup and shutdown.

    Startup configures logging, connects MongoDB, builds the thumbnail store
    and wires the UploadService onto ``app.state``. Shutdown closes the store
    and the database client.
    """
    settings = get_settings()

    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

    logger.info("Tubely API starting")
    logger.info(
        "Configuration loaded",
        extra={
            "app_env": settings.app_env,
            "debug": settings.debug,
            "log_level": settings.log_level,
            "thumbnail_store": settings.thumbnail_store_backend,
            "assets_root": settings.assets_root,
        },
    )

    try:
        db = await init_db(settings)
    except Exception as e:
        logger.exception("Failed to initialize MongoDB")
        raise RuntimeError(f"MongoDB initialization failed: {e}") from e

    Path(settings.assets_root).mkdir(parents=True, exist_ok=True)

    thumbnail_store = build_thumbnail_store(settings)
    app.state.upload_service = UploadService(
        db=db,
        local_storage=LocalAssetStorage.from_settings(settings),
        object_storage=ObjectAssetStorage.from_settings(settings),
        thumbnail_store=thumbnail_store,
        prober=FFprobeProber.from_settings(settings),
        transcoder=FFmpegFastStartTranscoder.from_settings(settings),
    )

    logger.info("Tubely API ready to accept requests")

    yield

    logger.info("Tubely API shutting down")

    try:
        await thumbnail_store.close()
    except Exception:
        logger.exception("Error closing thumbnail store")

    await close_db()
    app.state.upload_service = None

    logger.info("Tubely API shutdown complete")


# =============================================================================
# FastAPI Application Instance
# =============================================================================

# Get settings for initial configuration
_settings = get_settings()

app = FastAPI(
    title="Tubely API",
    description=(
        "Media upload backend. Accepts thumbnail and video uploads for owned video "
        "records, repackages videos for fast-start playback and stores them in "
        "object storage."
    ),
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=_settings.debug,
)


# =============================================================================
# Middleware Configuration
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next) -> Response:
    """
    Log each request with its outcome and add X-Request-ID / X-Process-Time.
    """
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    start_time = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "Request failed",
            extra={"method": request.method, "path": request.url.path, "request_id": request_id},
        )
        raise

    process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
    response.headers["X-Process-Time"] = f"{process_time_ms}ms"
    response.headers["X-Request-ID"] = request_id

    log_level = logging.DEBUG if response.status_code < HTTP_ERROR_THRESHOLD else logging.WARNING
    logger.log(
        log_level,
        "Request completed",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": process_time_ms,
            "request_id": request_id,
        },
    )

    return response


# =============================================================================
# Routes
# =============================================================================

app.include_router(api_router, prefix="/api/v1")

app.mount(
    "/assets",
    StaticFiles(directory=_settings.assets_root, check_dir=False),
    name="assets",
)


@app.get("/", tags=["root"], summary="API Root")
async def root() -> dict[str, Any]:
    return {
        "name": "Tubely API",
        "version": API_VERSION,
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc",
            "openapi": "/openapi.json",
        },
        "api_prefix": "/api/v1",
        "endpoints": {
            "thumbnails": "/api/v1/thumbnails",
            "videos": "/api/v1/videos",
            "assets": "/assets",
        },
    }


@app.get("/health", tags=["health"], summary="Health Check")
async def health_check() -> dict[str, Any]:
    """Liveness probe; does not touch dependencies."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": API_VERSION,
        "service": "Tubely API",
    }


@app.get("/ready", tags=["health"], summary="Readiness Check")
async def readiness_check() -> JSONResponse:
    """
    Readiness probe: the service is ready once MongoDB answers a ping.

    Returns 503 until then so load balancers hold traffic back.
    """
    checks: dict[str, bool] = {}

    try:
        checks["mongodb"] = await get_db_client().ping()
    except RuntimeError:
        checks["mongodb"] = False

    is_ready = all(checks.values())
    return JSONResponse(
        status_code=200 if is_ready else 503,
        content={
            "ready": is_ready,
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": checks,
        },
    )


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(TubelyError)
async def tubely_error_handler(request: Request, exc: TubelyError) -> JSONResponse:
    """
    Map pipeline errors to ``{"error": message}`` with their HTTP status.

    Diagnostic detail (subprocess stderr, storage errors) is logged and never
    returned to the client.
    """
    log_extra = {
        "method": request.method,
        "path": request.url.path,
        "error_type": type(exc).__name__,
        "status_code": exc.status_code,
    }
    if exc.is_server_error:
        logger.error("%s", exc.message, extra={**log_extra, "detail": exc.detail})
    else:
        logger.info("%s", exc.message, extra=log_extra)

    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# =============================================================================
# Main Execution Block
# =============================================================================

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "tubely.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level,
    )
