from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from src.app.domain.errors import CrawlAlreadyRunningError, WorkerConfigurationError
from src.app.domain.models import CrawlSummary
from src.app.infra.db.base import RecipeRepository, SiteConfigRepository
from src.app.services.crawl_orchestrator import CrawlOrchestrator
from src.app.services.site_seeding import seed_default_site_configs
from src.services.fetcher import ResilientFetcher
from src.services.recipe_extractor import RecipeExtractor
from src.services.site_analyzer import SiteAnalyzer
from workers.crawler.config import WorkerConfig, get_config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("crawler-worker")

SECONDS_PER_HOUR = 3600


class CrawlerWorker:
    def __init__(
        self,
        config: WorkerConfig,
        site_repository: SiteConfigRepository,
        recipe_repository: RecipeRepository,
        fetcher: ResilientFetcher | None = None,
    ):
        self.config = config
        self.site_repo = site_repository
        self.recipe_repo = recipe_repository
        self.fetcher = fetcher or ResilientFetcher(
            user_agent=config.user_agent,
            max_attempts=config.fetch_max_attempts,
            backoff_seconds=config.fetch_backoff_seconds,
            timeout_seconds=config.fetch_timeout_seconds,
        )
        extractor = RecipeExtractor(self.fetcher)
        self.orchestrator = CrawlOrchestrator(
            site_repository=site_repository,
            recipe_repository=recipe_repository,
            fetcher=self.fetcher,
            extractor=extractor,
            analyzer=SiteAnalyzer(self.fetcher, extractor=extractor),
            courtesy_delay_seconds=config.courtesy_delay_seconds,
        )
        self.runs_completed = 0
        self._stop_event: asyncio.Event | None = None

    def start(self) -> None:
        self._validate_configuration()
        self._log_startup_info()
        if self.config.seed_defaults:
            seed_default_site_configs(self.site_repo)
        asyncio.run(self.run())

    def _validate_configuration(self) -> None:
        errors = self.config.validate()
        if errors:
            raise WorkerConfigurationError(errors)

    def _log_startup_info(self) -> None:
        logger.info(
            "Starting crawler worker: interval=%.1fh, run_once=%s, courtesy_delay=%.1fs",
            self.config.crawl_interval_hours,
            self.config.run_once,
            self.config.courtesy_delay_seconds,
        )

    async def run(self) -> None:
        self._stop_event = asyncio.Event()
        self._setup_signal_handlers()
        try:
            await self._run_main_loop()
        finally:
            await self.fetcher.aclose()
            self._shutdown()

    def _setup_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(signum, self._handle_shutdown_signal, signum)
            except (NotImplementedError, RuntimeError):
                # add_signal_handler is unavailable on Windows event loops
                signal.signal(signum, lambda received, frame: self._handle_shutdown_signal(received))

    async def _run_main_loop(self) -> None:
        while not self._stop_requested():
            await self._run_crawl()

            if self.config.run_once:
                break

            interval = self.config.crawl_interval_hours * SECONDS_PER_HOUR
            logger.info("Next crawl in %.0fs", interval)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue

    def _stop_requested(self) -> bool:
        return self._stop_event is not None and self._stop_event.is_set()

    async def _run_crawl(self) -> CrawlSummary | None:
        try:
            summary = await self.orchestrator.run()
        except CrawlAlreadyRunningError:
            logger.warning("Crawl already in progress, skipping")
            return None
        except Exception:
            logger.exception("Crawl run failed")
            return None

        self.runs_completed += 1
        logger.info(
            "Crawl finished: sites=%d, failed_sites=%d, added=%d, duplicates=%d, failed_links=%d",
            summary.sites_processed,
            summary.sites_failed,
            summary.recipes_added,
            summary.duplicates_skipped,
            summary.links_failed,
        )
        return summary

    def _handle_shutdown_signal(self, signum: int) -> None:
        logger.info("Received shutdown signal %d", signum)
        self.orchestrator.cancel()
        if self._stop_event is not None:
            self._stop_event.set()

    def _shutdown(self) -> None:
        logger.info("Worker shutdown complete: runs_completed=%d", self.runs_completed)


def create_default_repositories(config: WorkerConfig) -> tuple[SiteConfigRepository, RecipeRepository]:
    from supabase import create_client

    from src.app.infra.db.supabase_crawler_repo import (
        SupabaseRecipeRepository,
        SupabaseSiteConfigRepository,
    )

    client = create_client(config.supabase_url, config.supabase_key)
    return SupabaseSiteConfigRepository(client), SupabaseRecipeRepository(client)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Recipe crawler worker")
    parser.add_argument("--once", action="store_true", help="Run a single crawl and exit")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    config = get_config()
    if args.once:
        config.run_once = True
    site_repo, recipe_repo = create_default_repositories(config)

    worker = CrawlerWorker(
        config=config,
        site_repository=site_repo,
        recipe_repository=recipe_repo,
    )

    worker.start()


if __name__ == "__main__":
    main()
