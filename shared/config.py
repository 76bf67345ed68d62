"""
Shared configuration management for the Scraper Access Service.
"""

from typing import Optional, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # External services
    redis_url: str = Field(default="redis://localhost:6379/0")
    scraper_api_url: str = Field(default="http://api.scraperapi.com")
    upstream_timeout_sec: float = Field(default=60.0, gt=0)

    # Observability
    enable_tracing: bool = Field(default=False)
    otel_exporter: str = Field(default="http://localhost:4317")
    enable_console_tracing: bool = Field(default=False)


class ServiceConfig(BaseConfig):
    """Scraper pipeline configuration."""

    service_name: str = "scraper"
    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=3000)

    # Upstream credentials and region
    scraper_api_keys: str = Field(default="")
    country_code: str = Field(default="us")

    # Cache
    cache_ttl_sec: int = Field(default=3600, gt=0)

    # Outbound throttling
    throttle_min_ms: int = Field(default=1000, ge=0)
    reservoir_per_min: Optional[int] = Field(default=60, gt=0)
    reservoir_refresh_ms: int = Field(default=60_000, gt=0)
    limiter_max_queue: Optional[int] = Field(default=None, gt=0)

    # Retry policy
    retry_max: int = Field(default=1, ge=0)
    retry_base_delay_ms: int = Field(default=600, ge=0)
    retry_jitter_ms: int = Field(default=200, ge=0)

    # Anti-thundering-herd jitter before contending for the limiter
    prefetch_jitter_ms: int = Field(default=120, ge=0)
    coalesce_inflight: bool = Field(default=False)

    def credential_pool(self) -> Tuple[str, ...]:
        """Parse the comma-separated credential list."""
        return tuple(
            item.strip() for item in self.scraper_api_keys.split(",") if item.strip()
        )


def get_config(**overrides) -> ServiceConfig:
    """Load configuration from the environment, applying explicit overrides."""
    return ServiceConfig(**overrides)
