from __future__ import annotations

import asyncio
import logging
from typing import Optional

from src.app.domain.errors import CrawlAlreadyRunningError
from src.app.domain.models import CrawlSummary
from src.app.services.crawl_orchestrator import CrawlOrchestrator

log = logging.getLogger("crawler.scheduler")

SECONDS_PER_HOUR = 3600


class CrawlScheduler:
    """
    Runs the orchestrator on a fixed interval and on demand.

    Both triggers go through the orchestrator's single-flight lock, so a
    manual trigger during a scheduled run is refused rather than overlapped.
    """

    def __init__(
        self,
        orchestrator: CrawlOrchestrator,
        interval_seconds: float = 24 * SECONDS_PER_HOUR,
        run_on_start: bool = False,
    ) -> None:
        self._orchestrator = orchestrator
        self.interval_seconds = interval_seconds
        self.run_on_start = run_on_start
        self._loop_task: Optional[asyncio.Task[None]] = None
        self._background_runs: set[asyncio.Task[Optional[CrawlSummary]]] = set()
        self._lock = asyncio.Lock()
        self.last_summary: Optional[CrawlSummary] = None

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def crawl_in_progress(self) -> bool:
        return self._orchestrator.is_running

    async def start(self) -> None:
        async with self._lock:
            if self.is_running:
                return
            self._loop_task = asyncio.create_task(self._run_forever(), name="crawl-scheduler")
            log.info("scheduler.started interval=%.0fs run_on_start=%s", self.interval_seconds, self.run_on_start)

    async def stop(self) -> None:
        async with self._lock:
            self._orchestrator.cancel()
            tasks = [task for task in (self._loop_task, *self._background_runs) if task is not None]
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            self._loop_task = None
            self._background_runs.clear()
            log.info("scheduler.stopped")

    def trigger(self) -> bool:
        """Start a run in the background. Returns False if one is already active."""
        if self.crawl_in_progress or self._background_runs:
            log.info("scheduler.trigger_ignored reason=run_in_progress")
            return False
        task = asyncio.create_task(self._run_once(source="manual"), name="crawl-manual")
        self._background_runs.add(task)
        task.add_done_callback(self._background_runs.discard)
        return True

    async def run_now(self) -> CrawlSummary:
        """Run synchronously and return the summary; raises CrawlAlreadyRunningError on overlap."""
        summary = await self._orchestrator.run()
        self.last_summary = summary
        return summary

    async def _run_forever(self) -> None:
        if self.run_on_start:
            await self._run_once(source="startup")
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self._run_once(source="schedule")

    async def _run_once(self, source: str) -> Optional[CrawlSummary]:
        log.info("scheduler.run source=%s", source)
        try:
            summary = await self._orchestrator.run()
        except CrawlAlreadyRunningError:
            log.warning("scheduler.run_skipped source=%s reason=run_in_progress", source)
            return None
        except Exception:
            log.exception("scheduler.run_failed source=%s", source)
            return None
        self.last_summary = summary
        return summary
