"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class ShortenerSettings(BaseSettings):
    """Third-party shortening provider configuration."""

    providers: str = Field(
        "tinyurl,isgd",
        description="Comma-separated provider names in fallback order (tinyurl, isgd)",
    )
    tinyurl_api_url: str = Field(
        "https://tinyurl.com/api-create.php",
        description="TinyURL create endpoint (plain-text response)",
    )
    isgd_api_url: str = Field(
        "https://is.gd/create.php",
        description="is.gd create endpoint (JSON response with format=json)",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Per-request timeout for provider calls in seconds",
        gt=0,
    )
    user_agent: str = Field(
        "link-shortener-api/0.1",
        description="User-Agent header sent to providers",
    )

    model_config = SettingsConfigDict(
        env_prefix="SHORTENER_",
        case_sensitive=False,
    )

    @property
    def provider_names(self) -> list[str]:
        return [name.strip().lower() for name in self.providers.split(",") if name.strip()]


class RateLimitSettings(BaseSettings):
    """Outbound provider call budget."""

    max_requests: int = Field(
        50,
        description="Maximum provider attempts allowed per window",
        ge=1,
    )
    window_seconds: int = Field(
        3600,
        description="Rate limit window size in seconds",
        ge=1,
    )
    storage_key: str = Field(
        "url-shortener-rate-limit",
        description="Key under which the token bucket state is persisted",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class CacheSettings(BaseSettings):
    """Shortened URL cache configuration."""

    ttl_seconds: int = Field(
        24 * 60 * 60,
        description="Time-to-live applied to each cached short URL",
        ge=1,
    )
    storage_key: str = Field(
        "url-shortener-cache",
        description="Key under which cache entries are persisted",
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
    )


class StorageSettings(BaseSettings):
    """Durable key-value store used by the cache and the rate limiter."""

    backend: str = Field(
        "file",
        description="Store backend: 'file' (JSON document on disk) or 'memory'",
    )
    file_path: str = Field(
        "data/shortener-store.json",
        description="Path of the JSON store when backend is 'file'",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: 'json' or 'plain'")
    output: str = Field("stdout", description="Log output: 'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output is 'file'")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Number of rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    shortener: ShortenerSettings = Field(default_factory=ShortenerSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
