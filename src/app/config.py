from __future__ import annotations

from typing import Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.services.fetcher import (
    DEFAULT_BACKOFF_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: Optional[AnyUrl] = None
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    APP_ENV: str = "local"
    FRONTEND_CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"],
    )

    # Outbound fetching
    CRAWLER_USER_AGENT: str = DEFAULT_USER_AGENT
    CRAWLER_FETCH_MAX_ATTEMPTS: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1)
    CRAWLER_FETCH_BACKOFF_SECONDS: float = Field(default=DEFAULT_BACKOFF_SECONDS, ge=0)
    CRAWLER_FETCH_TIMEOUT_SECONDS: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)

    # Pause before every recipe page request
    CRAWLER_COURTESY_DELAY_SECONDS: float = Field(default=2.0, ge=0)

    # Scheduling
    CRAWLER_SCHEDULER_ENABLED: bool = True
    CRAWL_INTERVAL_HOURS: float = Field(default=24.0, gt=0)
    CRAWL_RUN_ON_STARTUP: bool = False


settings = Settings()
