"""Application settings using Pydantic Settings for environment-based configuration."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the push bridge.

    All settings can be overridden via environment variables.
    Prefix is not used to allow standard env var names (e.g., ADS_API_URL, PORT).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Ads feed
    ads_api_url: str = "http://localhost:3000/api/ads"
    feed_timeout_seconds: float = Field(default=10.0, gt=0.0, le=120.0)
    feed_user_agent: str = "Kimedata-Push-Bridge/1.0"

    # Expo push gateway
    expo_push_url: str = "https://exp.host/--/api/v2/push/send"
    expo_access_token: str | None = None
    push_batch_size: int = Field(default=100, ge=1, le=100)
    push_timeout_seconds: float = Field(default=30.0, gt=0.0, le=300.0)
    push_sound: str | None = "default"
    push_priority: Literal["default", "normal", "high"] = "high"
    push_badge: int | None = 1
    default_notification_body: str = "You have a new notification"
    notification_keyword: str = Field(default="notification", min_length=1)

    # Persisted state
    data_dir: Path = Path("./data")
    processed_ads_file: str = "processed_ads.json"
    push_tokens_file: str = "push_tokens.json"
    processed_ads_retention: int = Field(default=500, ge=1)

    # Scheduling
    poll_interval_seconds: int = Field(default=120, ge=1)
    startup_delay_seconds: float = Field(default=5.0, ge=0.0)
    poller_enabled: bool = True
    prune_unregistered_tokens: bool = False

    # HTTP API
    api_host: str = "0.0.0.0"
    api_port: int = Field(
        default=3001,
        validation_alias=AliasChoices("api_port", "port"),
    )
    api_prefix: str = "/api"

    # Observability
    metrics_port: int = 8000

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def processed_ads_path(self) -> Path:
        return self.data_dir / self.processed_ads_file

    @property
    def push_tokens_path(self) -> Path:
        return self.data_dir / self.push_tokens_file

    @property
    def polling_interval_label(self) -> str:
        """Human readable polling interval, e.g. ``every 2 minutes``."""
        seconds = self.poll_interval_seconds
        if seconds % 60 == 0:
            minutes = seconds // 60
            return "every minute" if minutes == 1 else f"every {minutes} minutes"
        return "every second" if seconds == 1 else f"every {seconds} seconds"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    Clear cache with get_settings.cache_clear() if needed.
    """
    return Settings()
