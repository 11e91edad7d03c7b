"""Configuration management for thread_sync.

This module provides typed configuration classes using pydantic-settings.
Configuration is loaded from environment variables with optional .env file support.
"""

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "TransportSettings",
    "PollingSettings",
    "ThreadSyncConfig",
    "DEFAULT_PAGE_SIZE",
]

DEFAULT_PAGE_SIZE = 15


class TransportSettings(BaseSettings):
    """Messaging API connection settings."""

    model_config = SettingsConfigDict(
        env_prefix="THREAD_SYNC_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = "http://localhost:5000"
    api_prefix: str = "/api/client/messaging"
    api_key: SecretStr | None = None
    tenant_id: str = "default"
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")


class PollingSettings(BaseSettings):
    """Background refresh settings.

    A polling window ends after ``max_ticks`` invocations or once
    ``max_duration`` seconds have elapsed, whichever comes first.
    """

    model_config = SettingsConfigDict(
        env_prefix="THREAD_SYNC_POLLING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    interval: float = Field(default=5.0, gt=0, description="Seconds between ticks")
    max_ticks: int | None = Field(default=24, ge=1)  # 2 minutes at 5s
    max_duration: float | None = Field(default=None, gt=0, description="Seconds")

    @model_validator(mode="after")
    def _require_bound(self) -> "PollingSettings":
        if self.max_ticks is None and self.max_duration is None:
            raise ValueError("Polling needs max_ticks or max_duration")
        return self


class ThreadSyncConfig(BaseSettings):
    """Main configuration aggregating all settings.

    Example usage:
        config = ThreadSyncConfig()
        base_url = config.transport.base_url
    """

    model_config = SettingsConfigDict(
        env_prefix="THREAD_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    transport: TransportSettings = Field(default_factory=TransportSettings)
    polling: PollingSettings = Field(default_factory=PollingSettings)

    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
