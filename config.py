"""Configuration management for the go links registry."""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Config(BaseSettings):
    """Application configuration."""

    # Storage settings
    db_path: str = Field(
        default="golinks.db",
        description="Path of the durable snapshot file (created if absent)"
    )

    sync_interval_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Minimum seconds between snapshot writes; 0 snapshots on every write"
    )

    queue_size: int = Field(
        default=0,
        ge=0,
        description="Bound of the write submission queue (0 = unbounded)"
    )

    fsync: bool = Field(
        default=True,
        description="fsync snapshot data and directory after each write"
    )

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind to"
    )

    port: int = Field(
        default=8085,
        description="Port to listen on"
    )

    # Go link settings
    base_url: str = Field(
        default="http://localhost:8085",
        description="Base URL for generating go link URLs"
    )

    path_prefix: str = Field(
        default="/v",
        description="Path prefix for redirects (e.g., '/v' for /v/docs)"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Log file path (logs to stdout if not specified)"
    )

    log_json: bool = Field(
        default=False,
        description="Use JSON format for logs"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra environment variables
    }


def load_config() -> Config:
    """Load configuration from environment."""
    return Config()
