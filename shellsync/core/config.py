"""Configuration management for shellsync."""

from __future__ import annotations

import json
from pathlib import Path

import structlog
from pydantic import BaseModel, Field, field_validator

logger = structlog.get_logger()


class CacheNames(BaseModel):
    """Names of the cache containers."""

    content: str = Field(default="app-cache", description="Durable content cache")
    staging: str = Field(default="app-temp-cache", description="Install-time staging cache")
    manifest: str = Field(default="app-manifest", description="Last applied manifest")

    @field_validator("content", "staging", "manifest")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate container name."""
        if not v or "/" in v:
            raise ValueError(f"Invalid cache name: {v!r}")
        return v


class NetworkConfig(BaseModel):
    """Network configuration for the application origin."""

    origin: str = Field(
        default="http://localhost:8080",
        description="Application origin, without trailing slash"
    )
    timeout: float | None = Field(
        default=None,
        description="Request timeout in seconds, None to wait indefinitely"
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_workers: int = Field(default=6, description="Concurrent downloads for offline preparation")

    @field_validator("origin")
    @classmethod
    def validate_origin(cls, v: str) -> str:
        """Validate origin and strip any trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Origin must be an http(s) URL: {v}")
        return v.rstrip("/")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        """Validate timeout value."""
        if v is not None and v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        """Validate worker count."""
        if v < 1:
            raise ValueError("Max workers must be at least 1")
        return v


class AppConfig(BaseModel):
    """Application configuration."""

    config_dir: Path = Field(
        default=Path.home() / ".config" / "shellsync",
        description="Configuration directory"
    )
    cache_dir: Path = Field(
        default=Path.home() / ".cache" / "shellsync",
        description="Cache storage directory"
    )
    release_file: Path | None = Field(
        default=None,
        description="Release document (manifest and core set) from the build"
    )

    network: NetworkConfig = Field(default_factory=NetworkConfig)
    caches: CacheNames = Field(default_factory=CacheNames)

    # Output settings
    output_format: str = Field(
        default="rich",
        description="Output format (rich, json, plain)"
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    @classmethod
    def load(cls, config_file: Path | None = None) -> AppConfig:
        """Load configuration from file.

        Args:
            config_file: Path to config file, uses default if None

        Returns:
            Application configuration
        """
        if config_file is None:
            config_file = Path.home() / ".config" / "shellsync" / "config.json"

        if config_file.exists():
            with open(config_file) as f:
                data = json.load(f)
                return cls(**data)

        # Return defaults
        return cls()

    def save(self, config_file: Path | None = None) -> None:
        """Save configuration to file.

        Args:
            config_file: Path to config file, uses default if None
        """
        if config_file is None:
            config_file = self.config_dir / "config.json"

        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2, default=str)

        logger.info("config_saved", path=str(config_file))

    @field_validator("output_format")
    @classmethod
    def validate_output_format(cls, v: str) -> str:
        """Validate output format."""
        valid_formats = {"rich", "json", "plain"}
        if v not in valid_formats:
            raise ValueError(f"Invalid output format: {v}. Valid formats: {valid_formats}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Valid levels: {valid_levels}")
        return v
