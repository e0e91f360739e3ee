# src/app/services/crawler_runtime.py
"""
Wires the crawler components together from settings and exposes the two
entry points used by the routes, the scheduler and the worker.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from src.app.config import Settings, settings
from src.app.domain.errors import SiteAnalysisError
from src.app.domain.models import CrawlSummary
from src.app.infra.db.base import RecipeRepository, SiteConfigRepository
from src.app.services.crawl_orchestrator import CrawlOrchestrator
from src.app.services.crawl_scheduler import SECONDS_PER_HOUR, CrawlScheduler
from src.services.errors import FetchFailedError, InvalidURLError
from src.services.fetcher import ResilientFetcher
from src.services.recipe_extractor import RecipeExtractor
from src.services.site_analyzer import SiteAnalysis, SiteAnalyzer

log = logging.getLogger("crawler.runtime")


@dataclass
class CrawlerRuntime:
    site_repository: SiteConfigRepository
    recipe_repository: RecipeRepository
    fetcher: ResilientFetcher
    analyzer: SiteAnalyzer
    orchestrator: CrawlOrchestrator
    scheduler: CrawlScheduler


def build_runtime(
    site_repository: SiteConfigRepository,
    recipe_repository: RecipeRepository,
    config: Settings = settings,
    fetcher: Optional[ResilientFetcher] = None,
) -> CrawlerRuntime:
    fetcher = fetcher or ResilientFetcher(
        user_agent=config.CRAWLER_USER_AGENT,
        max_attempts=config.CRAWLER_FETCH_MAX_ATTEMPTS,
        backoff_seconds=config.CRAWLER_FETCH_BACKOFF_SECONDS,
        timeout_seconds=config.CRAWLER_FETCH_TIMEOUT_SECONDS,
    )
    extractor = RecipeExtractor(fetcher)
    analyzer = SiteAnalyzer(fetcher, extractor=extractor)
    orchestrator = CrawlOrchestrator(
        site_repository=site_repository,
        recipe_repository=recipe_repository,
        fetcher=fetcher,
        extractor=extractor,
        analyzer=analyzer,
        courtesy_delay_seconds=config.CRAWLER_COURTESY_DELAY_SECONDS,
    )
    scheduler = CrawlScheduler(
        orchestrator,
        interval_seconds=config.CRAWL_INTERVAL_HOURS * SECONDS_PER_HOUR,
        run_on_start=config.CRAWL_RUN_ON_STARTUP,
    )
    return CrawlerRuntime(
        site_repository=site_repository,
        recipe_repository=recipe_repository,
        fetcher=fetcher,
        analyzer=analyzer,
        orchestrator=orchestrator,
        scheduler=scheduler,
    )


_runtime: CrawlerRuntime | None = None


def get_runtime() -> CrawlerRuntime:
    global _runtime
    if _runtime is None:
        from src.app.deps import get_supabase
        from src.app.infra.db.supabase_crawler_repo import (
            SupabaseRecipeRepository,
            SupabaseSiteConfigRepository,
        )

        client = get_supabase()
        _runtime = build_runtime(
            SupabaseSiteConfigRepository(client),
            SupabaseRecipeRepository(client),
        )
    return _runtime


async def run_crawler(runtime: CrawlerRuntime | None = None) -> CrawlSummary:
    runtime = runtime or get_runtime()
    return await runtime.scheduler.run_now()


async def analyze_website(url: str, runtime: CrawlerRuntime | None = None) -> SiteAnalysis:
    runtime = runtime or get_runtime()
    try:
        return await runtime.analyzer.analyze(url)
    except (FetchFailedError, InvalidURLError) as error:
        log.warning("analyze.failed url=%s error=%s", url, error)
        raise SiteAnalysisError(url, str(error)) from error
