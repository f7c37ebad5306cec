"""
Connector settings using Pydantic.

Provides environment-based configuration loading with TCMONITOR_ prefix.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Connector settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TCMONITOR_",
    )

    # Credentials (empty values are sent as-is; the API rejects them)
    secret_id: str = ""
    secret_key: str = ""

    # Optional proxy in front of the cloud APIs, e.g. a Grafana datasource route
    api_base_url: str | None = None

    default_region: str = "ap-guangzhou"
    product: str = "cdb"

    # HTTP client settings
    http_timeout: float = 30.0
    http_max_retries: int = 3
    http_retry_backoff_factor: float = 0.5

    log_level: str = "INFO"
    # "json" or "console"
    log_format: str = "json"


@dataclass(frozen=True)
class Credentials:
    """API key pair passed explicitly into every signing call."""

    secret_id: str = ""
    secret_key: str = ""

    @classmethod
    def from_settings(cls, settings: Settings) -> "Credentials":
        return cls(secret_id=settings.secret_id, secret_key=settings.secret_key)

    def __repr__(self) -> str:
        return f"Credentials(secret_id={self.secret_id!r}, secret_key='***')"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
