"""Application configuration management."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_POPULAR_ZONES = ["DCZ001", "NYZ072", "PAZ071"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Server settings
    app_host: str = Field(default="0.0.0.0", description="Server bind host")
    app_port: int = Field(default=8080, description="Server bind port")

    # Upstream API settings
    upstream_url: str = Field(
        default="https://api.weather.gov",
        description="National Weather Service API base URL",
    )
    upstream_user_agent: str = Field(
        default="nws-proxy (contact@example.com)",
        description="User-Agent header sent to the NWS API",
    )
    upstream_timeout_seconds: float = Field(
        default=5.0,
        description="Upstream request timeout in seconds",
        ge=0.1,
        le=30.0,
    )

    # Cache settings
    zones_cache_ttl_seconds: int = Field(
        default=3600,
        description="Zone list cache TTL in seconds",
        ge=1,
    )
    forecast_cache_ttl_seconds: int = Field(
        default=900,
        description="Per-zone forecast cache TTL in seconds",
        ge=1,
    )
    cache_max_size: int = Field(
        default=10000,
        description="Maximum cache entries",
        ge=1,
        le=1000000,
    )

    # Pre-warming settings
    popular_zones: list[str] = Field(
        default_factory=lambda: list(DEFAULT_POPULAR_ZONES),
        description="Zones refreshed by the background pre-warmer",
    )
    prewarm_enabled: bool = Field(
        default=True,
        description="Run the background pre-warmer on startup",
    )
    prewarm_interval_seconds: float = Field(
        default=900.0,
        description="Seconds between pre-warm passes",
        gt=0,
    )
    prewarm_max_concurrency: int = Field(
        default=3,
        description="Maximum concurrent zone fetches per pre-warm pass",
        ge=1,
    )

    # Resilience testing
    fault_injection_every: int = Field(
        default=5,
        description="Fail every Nth forecast fetch attempt (0 disables)",
        ge=0,
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: str = Field(
        default="json",
        description="Log format (json or text)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
