# src/app/services/crawl_orchestrator.py
"""
Top-level crawl driver.

Sites are processed one after another and links within a site one after
another, with a fixed courtesy pause before every recipe page request.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from starlette.concurrency import run_in_threadpool

from src.app.domain.errors import (
    CrawlAlreadyRunningError,
    InvalidSelectorConfigError,
    RecipeRepositoryError,
)
from src.app.domain.models import (
    CrawlSummary,
    LinkOutcome,
    NewRecipe,
    SiteConfig,
    SiteCrawlResult,
)
from src.app.infra.db.base import RecipeRepository, SiteConfigRepository
from src.services.errors import FetchFailedError
from src.services.fetcher import ResilientFetcher
from src.services.link_discoverer import discover_links
from src.services.page_parser import parse_document
from src.services.recipe_extractor import RecipeExtractor
from src.services.site_analyzer import SiteAnalyzer
from src.services.types import SiteSelectors

logger = logging.getLogger("crawler.orchestrator")

DEFAULT_COURTESY_DELAY_SECONDS = 2.0


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class CrawlOrchestrator:
    def __init__(
        self,
        site_repository: SiteConfigRepository,
        recipe_repository: RecipeRepository,
        fetcher: ResilientFetcher,
        extractor: Optional[RecipeExtractor] = None,
        analyzer: Optional[SiteAnalyzer] = None,
        courtesy_delay_seconds: float = DEFAULT_COURTESY_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = _now_utc,
        log: Optional[logging.Logger] = None,
    ):
        self._sites = site_repository
        self._recipes = recipe_repository
        self._fetcher = fetcher
        self._log = log or logger
        self._extractor = extractor or RecipeExtractor(fetcher, log=self._log)
        self._analyzer = analyzer
        self.courtesy_delay_seconds = courtesy_delay_seconds
        self._sleep = sleep
        self._clock = clock
        self._lock = asyncio.Lock()
        self._cancel_requested = False

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def cancel(self) -> None:
        """Ask the active run to stop at the next link or site boundary."""
        if self.is_running:
            self._log.info("crawler.cancel_requested")
            self._cancel_requested = True

    async def run(self) -> CrawlSummary:
        """
        Crawl every enabled site once.

        Raises:
            CrawlAlreadyRunningError: another run holds the lock
            SiteConfigRepositoryError: site configs could not be read
        """
        if self._lock.locked():
            raise CrawlAlreadyRunningError()

        async with self._lock:
            self._cancel_requested = False
            summary = CrawlSummary(started_at=self._clock())
            self._log.info("crawler.run_start")

            configs = await run_in_threadpool(self._sites.list_enabled)
            self._log.info("crawler.configs_loaded enabled=%d", len(configs))

            for config in configs:
                if self._cancel_requested:
                    summary.cancelled = True
                    break
                summary.sites.append(await self._crawl_site_isolated(config))

            if self._cancel_requested:
                summary.cancelled = True
            summary.finished_at = self._clock()
            self._log.info(
                "crawler.run_done sites=%d failed_sites=%d added=%d duplicates=%d failed_links=%d cancelled=%s",
                summary.sites_processed,
                summary.sites_failed,
                summary.recipes_added,
                summary.duplicates_skipped,
                summary.links_failed,
                summary.cancelled,
            )
            return summary

    async def _crawl_site_isolated(self, config: SiteConfig) -> SiteCrawlResult:
        result = SiteCrawlResult(site_name=config.site_name)
        self._log.info("crawler.site_start site=%s url=%s", config.site_name, config.site_url)

        try:
            await self._crawl_site(config, result)
        except Exception as error:
            result.error = str(error)
            self._log.exception("crawler.site_failed site=%s error=%s", config.site_name, error)

        await self._mark_crawled(config)
        self._log.info(
            "crawler.site_done site=%s links=%d added=%d duplicates=%d failed=%d",
            config.site_name,
            result.links_found,
            result.recipes_added,
            result.duplicates_skipped,
            result.links_failed,
        )
        return result

    async def _mark_crawled(self, config: SiteConfig) -> None:
        try:
            await run_in_threadpool(self._sites.update_last_crawl, config.id, self._clock())
        except Exception as error:
            self._log.error("crawler.last_crawl_update_failed site=%s error=%s", config.site_name, error)

    async def _crawl_site(self, config: SiteConfig, result: SiteCrawlResult) -> None:
        selectors = config.selectors or await self._detect_selectors(config)

        try:
            listing_html = await self._fetcher.fetch(config.site_url)
        except FetchFailedError as error:
            result.error = str(error)
            self._log.error("crawler.listing_unreachable site=%s error=%s", config.site_name, error)
            return

        links = await run_in_threadpool(self._discover_links, listing_html, selectors, config.site_url)
        result.links_found = len(links)

        for link in links:
            if self._cancel_requested:
                self._log.info("crawler.site_cancelled site=%s", config.site_name)
                return
            result.record(await self._process_link(config, selectors, link))

    def _discover_links(self, listing_html: str, selectors: SiteSelectors, site_url: str) -> list[str]:
        return discover_links(parse_document(listing_html), selectors.recipe_links, site_url, log=self._log)

    async def _detect_selectors(self, config: SiteConfig) -> SiteSelectors:
        if self._analyzer is None:
            raise InvalidSelectorConfigError(config.site_name, ["no selectors configured"])

        self._log.info("crawler.detecting_selectors site=%s", config.site_name)
        selectors = await self._analyzer.detect_selectors(config.site_url)
        await run_in_threadpool(self._sites.update_selectors, config.id, selectors)
        return selectors

    async def _process_link(self, config: SiteConfig, selectors: SiteSelectors, link: str) -> LinkOutcome:
        await self._sleep(self.courtesy_delay_seconds)

        recipe = await self._extractor.extract(link, selectors)
        if recipe is None:
            self._log.warning("crawler.link_skipped site=%s url=%s", config.site_name, link)
            return LinkOutcome.FAILED

        try:
            if await run_in_threadpool(self._recipes.exists, recipe.title, config.site_name):
                self._log.info("crawler.duplicate site=%s title=%r", config.site_name, recipe.title)
                return LinkOutcome.DUPLICATE

            await run_in_threadpool(self._recipes.insert, NewRecipe.from_extracted(recipe, config.site_name))
        except RecipeRepositoryError as error:
            self._log.error("crawler.persist_failed site=%s url=%s error=%s", config.site_name, link, error)
            return LinkOutcome.FAILED

        self._log.info("crawler.saved site=%s title=%r", config.site_name, recipe.title)
        return LinkOutcome.ADDED
