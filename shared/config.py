"""
Shared configuration management for the http.cat image cache.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ORIGIN_URL = "https://http.cat/"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="HTTPCAT_CACHE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Observability
    metrics_port: Optional[int] = Field(default=None, ge=0, le=65535)


class ServiceConfig(BaseConfig):
    """Service-specific configuration.

    Built once at startup and handed to the service explicitly; nothing reads
    configuration from module globals.
    """

    service_name: str
    host: str
    port: int = Field(ge=0, le=65535)
    cache_dir: Path

    # Origin fallback, disabled for the store-only variant
    origin_enabled: bool = Field(default=True)
    origin_url: str = Field(default=DEFAULT_ORIGIN_URL)
    origin_timeout: float = Field(default=10.0, gt=0)

    @property
    def effective_origin_url(self) -> Optional[str]:
        """Origin base URL, or None when fetch-on-miss is off."""
        if not self.origin_enabled or not self.origin_url:
            return None
        return self.origin_url


def get_config(service_name: str, host: str, port: int, cache_dir, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    settings = {key: value for key, value in overrides.items() if value is not None}
    return ServiceConfig(
        service_name=service_name,
        host=host,
        port=port,
        cache_dir=Path(cache_dir),
        **settings
    )
