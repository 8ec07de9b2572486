"""
Central configuration for r6tracker
Based on Pydantic Settings with environment variable support
"""

from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Time
    timezone: str = "America/Fortaleza"

    # Resilient fetcher
    fetch_retry_budget: int = 3
    fetch_backoff_base: float = 1.5
    fetch_backoff_cap: float = 30.0
    fetch_timeout_seconds: float = 30.0

    # Session manager / browser
    session_ttl_seconds: int = 1800
    session_retry_cooldown_seconds: int = 60
    challenge_wait_budget: int = 15
    challenge_poll_interval_ms: int = 1000
    browser_idle_timeout_seconds: int = 300
    browser_headless: bool = True
    browser_executable_path: Optional[str] = None
    session_warmup_url: str = "https://r6.tracker.network/r6siege"

    # Acquisition
    inter_player_delay_seconds: float = 3.0
    default_platform: str = "ubi"
    extractor_version: str = "auto"  # auto, header-v1, match-groups-v2

    # Aggregation / ranking
    count_empty_days: bool = True
    ranking_top_n: int = 5

    # Schedules
    schedule_sync_seconds: float = 30.0

    # Persistence
    database_url: str = "sqlite+aiosqlite:///r6tracker.db"

    # Monitoring
    log_level: str = "INFO"
    log_format: str = "console"
    enable_metrics: bool = False
    metrics_port: int = 8008

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone: {v}") from exc
        return v

    @field_validator("fetch_retry_budget", "challenge_wait_budget", "ranking_top_n")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


# Global settings instance
settings = Settings()
