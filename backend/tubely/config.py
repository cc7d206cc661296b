"""
Tubely Configuration Management Module

This module provides configuration management for the Tubely upload backend using
Pydantic Settings. It loads and validates all environment variables required for:
- Application settings (name, environment, debug mode, logging)
- JWT validation of bearer credentials
- MongoDB connection for video records
- Thumbnail store backend (in-process memory or Redis)
- Local assets directory for thumbnails
- S3/MinIO object storage and the public distribution URL for videos
- External media tools (ffprobe, ffmpeg)

All settings support environment variable overrides and .env file loading.
"""

from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuration settings for the Tubely upload backend.

    Configuration Categories:
    - Application: Core app settings like name, environment, debug mode
    - Auth: Shared secret used to validate bearer tokens
    - MongoDB: Database connection URI and connection pool settings
    - Thumbnails: Keyed thumbnail store backend and local assets directory
    - S3/MinIO: Object storage credentials, bucket and distribution URL
    - Media tools: ffprobe/ffmpeg executables and optional run timeout

    Example usage:
        ```python
        from tubely.config import get_settings

        settings = get_settings()
        print(f"Serving assets from: {settings.public_assets_url}")
        ```
    """

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(
        default="tubely",
        description="Application name displayed in API documentation and logs",
    )

    app_env: str = Field(
        default="development",
        description="Application environment (development, staging, production, testing)",
    )

    debug: bool = Field(default=False, description="Enable debug mode with hot-reload")

    log_level: str = Field(
        default="info", description="Logging level (debug, info, warning, error, critical)"
    )

    json_logs: bool = Field(
        default=True, description="Emit structured JSON logs instead of plain text"
    )

    host: str = Field(default="0.0.0.0", description="Host address for the API server to bind to")

    port: int = Field(default=8091, description="Port number for the API server", ge=1, le=65535)

    cors_origins: Annotated[list[str], NoDecode] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins, given as a comma-separated list in the environment",
    )

    # =========================================================================
    # Auth Settings
    # =========================================================================

    jwt_secret: str = Field(
        default="development-jwt-secret-change-in-production-32chars",
        description="Shared secret for HS256 bearer token validation",
        min_length=32,
    )

    jwt_expiration_hours: int = Field(
        default=24, description="Lifetime of tokens issued by create_access_token", ge=1, le=168
    )

    # =========================================================================
    # MongoDB Configuration
    # =========================================================================

    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI (e.g., mongodb://localhost:27017)",
    )

    mongodb_db_name: str = Field(default="tubely", description="MongoDB database name")

    mongodb_min_pool_size: int = Field(
        default=1, description="Minimum number of connections in MongoDB connection pool", ge=0
    )

    mongodb_max_pool_size: int = Field(
        default=20, description="Maximum number of connections in MongoDB connection pool", ge=1
    )

    # =========================================================================
    # Thumbnail Settings
    # =========================================================================

    thumbnail_store_backend: str = Field(
        default="memory",
        description="Backend for the keyed thumbnail store served by GET /thumbnails (memory, redis)",
    )

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL used when thumbnail_store_backend is redis",
    )

    assets_root: str = Field(
        default="assets",
        description="Local directory where thumbnail files are written and served from /assets",
    )

    assets_base_url: str | None = Field(
        default=None,
        description="Public base URL for files in assets_root (defaults to http://localhost:<port>/assets)",
    )

    # =========================================================================
    # S3/MinIO Storage Configuration
    # =========================================================================

    s3_endpoint_url: str | None = Field(
        default=None, description="S3-compatible endpoint URL for MinIO (None for AWS S3)"
    )

    s3_access_key_id: str | None = Field(
        default=None, description="S3/MinIO access key ID (None uses the default AWS chain)"
    )

    s3_secret_access_key: str | None = Field(
        default=None, description="S3/MinIO secret access key"
    )

    s3_bucket_name: str = Field(default="tubely-videos", description="Bucket for video objects")

    s3_region: str = Field(default="us-east-1", description="AWS region for the bucket")

    s3_cf_distribution: str = Field(
        default="http://localhost:9000/tubely-videos",
        description="Public distribution URL prefixed to storage keys to build video URLs",
    )

    # =========================================================================
    # Media Tools
    # =========================================================================

    ffprobe_path: str = Field(default="ffprobe", description="ffprobe executable")

    ffmpeg_path: str = Field(default="ffmpeg", description="ffmpeg executable")

    media_tool_timeout_seconds: float | None = Field(
        default=None,
        description="Kill ffprobe/ffmpeg runs that exceed this many seconds (None waits forever)",
        gt=0,
    )

    # =========================================================================
    # Model Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"debug", "info", "warning", "error", "critical"}
        normalized = v.lower()
        if normalized not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {', '.join(valid_levels)}")
        return normalized

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate that app_env is a valid environment name."""
        valid_envs = {"development", "staging", "production", "testing"}
        normalized = v.lower()
        if normalized not in valid_envs:
            raise ValueError(f"Invalid app_env '{v}'. Must be one of: {', '.join(valid_envs)}")
        return normalized

    @field_validator("thumbnail_store_backend")
    @classmethod
    def validate_thumbnail_store_backend(cls, v: str) -> str:
        """Validate that the thumbnail store backend is supported."""
        valid_backends = {"memory", "redis"}
        normalized = v.lower()
        if normalized not in valid_backends:
            raise ValueError(
                f"Invalid thumbnail_store_backend '{v}'. Must be one of: {', '.join(valid_backends)}"
            )
        return normalized

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string if provided as string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("s3_cf_distribution", "assets_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        """URLs are joined with '/' so a trailing slash would double it."""
        if v is None:
            return v
        return v.rstrip("/")

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def public_assets_url(self) -> str:
        """Base URL under which files written to assets_root are reachable."""
        return self.assets_base_url or f"http://localhost:{self.port}/assets"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get the global Settings instance.

    Configuration is loaded once from environment variables and .env and
    reused for the lifetime of the process.

    Returns:
        Settings: The global configuration instance.
    """
    return Settings()
