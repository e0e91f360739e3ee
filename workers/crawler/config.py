# workers/crawler/config.py
"""
Configuration for the standalone crawler worker.
"""
from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class WorkerConfig:
    """Configuration for the crawler worker."""

    # Scheduling
    crawl_interval_hours: float = float(os.getenv("CRAWL_INTERVAL_HOURS", "24"))
    run_once: bool = os.getenv("CRAWLER_RUN_ONCE", "false").lower() == "true"
    seed_defaults: bool = os.getenv("CRAWLER_SEED_DEFAULTS", "true").lower() == "true"

    # Politeness
    courtesy_delay_seconds: float = float(os.getenv("CRAWLER_COURTESY_DELAY_SECONDS", "2"))

    # Fetching
    fetch_max_attempts: int = int(os.getenv("CRAWLER_FETCH_MAX_ATTEMPTS", "3"))
    fetch_backoff_seconds: float = float(os.getenv("CRAWLER_FETCH_BACKOFF_SECONDS", "1"))
    fetch_timeout_seconds: float = float(os.getenv("CRAWLER_FETCH_TIMEOUT_SECONDS", "20"))
    user_agent: str = os.getenv(
        "CRAWLER_USER_AGENT",
        "Mozilla/5.0 (compatible; CastIronRecipeCrawler/1.0; +https://mycookwarecare.com)",
    )

    # Supabase (inherited from env)
    supabase_url: str = os.getenv("SUPABASE_URL", "")
    supabase_key: str = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.supabase_url:
            errors.append("SUPABASE_URL is required")
        if not self.supabase_key:
            errors.append("SUPABASE_SERVICE_ROLE_KEY is required")
        if self.crawl_interval_hours <= 0:
            errors.append("CRAWL_INTERVAL_HOURS must be positive")
        if self.courtesy_delay_seconds < 0:
            errors.append("CRAWLER_COURTESY_DELAY_SECONDS cannot be negative")
        if self.fetch_max_attempts < 1:
            errors.append("CRAWLER_FETCH_MAX_ATTEMPTS must be at least 1")
        if self.fetch_timeout_seconds <= 0:
            errors.append("CRAWLER_FETCH_TIMEOUT_SECONDS must be positive")

        return errors


def get_config() -> WorkerConfig:
    """Get worker configuration from environment."""
    return WorkerConfig()
