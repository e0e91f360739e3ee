from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Optional

import pytest

from src.app.domain.errors import CrawlAlreadyRunningError
from src.app.domain.models import CrawlSummary
from src.app.services.crawl_scheduler import CrawlScheduler

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


class OrchestratorStub:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.runs = 0
        self.is_running = False
        self.cancelled = False
        self.gate: Optional[asyncio.Event] = None

    async def run(self) -> CrawlSummary:
        if self.is_running:
            raise CrawlAlreadyRunningError()
        self.is_running = True
        try:
            self.runs += 1
            if self.gate is not None:
                await self.gate.wait()
            if self.error is not None:
                raise self.error
            return CrawlSummary(started_at=NOW, finished_at=NOW)
        finally:
            self.is_running = False

    def cancel(self) -> None:
        self.cancelled = True


async def drain() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


class TestRunNow:
    def test_returns_and_remembers_summary(self) -> None:
        scheduler = CrawlScheduler(OrchestratorStub())

        summary = asyncio.run(scheduler.run_now())

        assert summary.started_at == NOW
        assert scheduler.last_summary is summary

    def test_overlap_raises(self) -> None:
        async def scenario() -> None:
            orchestrator = OrchestratorStub()
            orchestrator.gate = asyncio.Event()
            scheduler = CrawlScheduler(orchestrator)

            background = asyncio.create_task(scheduler.run_now())
            await drain()
            with pytest.raises(CrawlAlreadyRunningError):
                await scheduler.run_now()

            orchestrator.gate.set()
            await background

        asyncio.run(scenario())


class TestTrigger:
    def test_runs_in_background(self) -> None:
        async def scenario() -> None:
            orchestrator = OrchestratorStub()
            scheduler = CrawlScheduler(orchestrator)

            assert scheduler.trigger() is True
            await drain()

            assert orchestrator.runs == 1
            assert scheduler.last_summary is not None

        asyncio.run(scenario())

    def test_refused_while_a_run_is_pending_or_active(self) -> None:
        async def scenario() -> None:
            orchestrator = OrchestratorStub()
            orchestrator.gate = asyncio.Event()
            scheduler = CrawlScheduler(orchestrator)

            assert scheduler.trigger() is True
            # Not started yet, but already scheduled.
            assert scheduler.trigger() is False

            await drain()
            assert scheduler.crawl_in_progress
            assert scheduler.trigger() is False

            orchestrator.gate.set()
            await drain()
            assert orchestrator.runs == 1
            assert scheduler.trigger() is True
            await drain()
            assert orchestrator.runs == 2

        asyncio.run(scenario())

    def test_background_failure_is_logged_not_raised(self) -> None:
        async def scenario() -> None:
            orchestrator = OrchestratorStub(error=RuntimeError("db down"))
            scheduler = CrawlScheduler(orchestrator)

            assert scheduler.trigger() is True
            await drain()

            assert orchestrator.runs == 1
            assert scheduler.last_summary is None

        asyncio.run(scenario())


class TestScheduleLoop:
    def test_run_on_start_then_stop(self) -> None:
        async def scenario() -> None:
            orchestrator = OrchestratorStub()
            scheduler = CrawlScheduler(orchestrator, interval_seconds=3600, run_on_start=True)

            await scheduler.start()
            await drain()
            assert scheduler.is_running
            assert orchestrator.runs == 1

            await scheduler.stop()
            assert not scheduler.is_running
            assert orchestrator.cancelled

        asyncio.run(scenario())

    def test_without_run_on_start_waits_for_interval(self) -> None:
        async def scenario() -> None:
            orchestrator = OrchestratorStub()
            scheduler = CrawlScheduler(orchestrator, interval_seconds=3600)

            await scheduler.start()
            await drain()
            assert orchestrator.runs == 0

            await scheduler.stop()

        asyncio.run(scenario())

    def test_repeats_every_interval(self) -> None:
        async def scenario() -> None:
            orchestrator = OrchestratorStub()
            scheduler = CrawlScheduler(orchestrator, interval_seconds=0)

            await scheduler.start()
            for _ in range(50):
                if orchestrator.runs >= 3:
                    break
                await asyncio.sleep(0)
            await scheduler.stop()

            assert orchestrator.runs >= 3

        asyncio.run(scenario())

    def test_start_is_idempotent(self) -> None:
        async def scenario() -> None:
            scheduler = CrawlScheduler(OrchestratorStub(), interval_seconds=3600)

            await scheduler.start()
            first_task = scheduler._loop_task
            await scheduler.start()

            assert scheduler._loop_task is first_task
            await scheduler.stop()

        asyncio.run(scenario())
