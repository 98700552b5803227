"""
API configuration settings.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class LibrarySettings(BaseSettings):
    """Library API configuration settings."""

    # API Settings
    api_title: str = "Library API"
    api_version: str = "1.0.0"
    api_prefix: str = "/api"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Storage Settings
    storage_backend: str = Field(default="memory", description="memory or mongodb")
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "library"
    seed_data: bool = True

    # Rate Limiting
    rate_limiting_enabled: bool = True
    rate_limit_rules: str = "1000/5m,200/10s"  # Comma-separated limit/period pairs

    # HTTP Caching
    cache_max_age: int = 600  # seconds
    cache_must_revalidate: bool = True
    cache_store_size: int = 1000

    # CORS Settings
    cors_origins: list = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list = ["*"]
    cors_allow_headers: list = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignore extra fields from .env
    }

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v):
        """Ensure the storage backend is known."""
        valid_backends = ["memory", "mongodb"]
        if v.lower() not in valid_backends:
            raise ValueError(f"storage_backend must be one of: {valid_backends}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of: {valid_formats}")
        return v.lower()

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, v):
        """Normalize the prefix to '' or '/segment'."""
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v


# Global config instance
config = LibrarySettings()
