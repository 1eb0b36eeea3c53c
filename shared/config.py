"""
Shared configuration management for the attendance client.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_STORE_PATH = Path.home() / ".attendance" / "store.json"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="ATTENDANCE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Logging
    log_level: str = Field(default="info")

    # Remote attendance endpoint
    api_url: str = Field(default="http://localhost:8080/exec")
    http_timeout_seconds: Optional[float] = Field(default=10.0)

    # Local persistence
    store_backend: str = Field(default="file")
    store_path: Path = Field(default=DEFAULT_STORE_PATH)
    redis_url: str = Field(default="redis://localhost:6379/0")

    # Cache TTLs (minutes)
    event_list_ttl_minutes: float = Field(default=60)
    leaderboard_ttl_minutes: float = Field(default=10)
    history_ttl_minutes: float = Field(default=10)
    titles_ttl_minutes: float = Field(default=30)

    # Scanning
    scan_cooldown_seconds: float = Field(default=3.0)

    # Invite banner
    invite_poll_interval_seconds: float = Field(default=30.0)
    invite_initial_delay_seconds: float = Field(default=1.0)
    invite_recent_hours: float = Field(default=6.0)


class ClientConfig(BaseConfig):
    """Client-specific configuration."""

    app_name: str = "attendance"


def get_config(**overrides) -> ClientConfig:
    """Get configuration, environment first, explicit overrides last."""
    return ClientConfig(**overrides)
