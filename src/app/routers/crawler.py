# src/app/routers/crawler.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette.concurrency import run_in_threadpool

from src.app.deps import CurrentUser, get_crawler_runtime, get_current_user
from src.app.domain.errors import (
    CrawlAlreadyRunningError,
    InvalidSelectorConfigError,
    SiteAnalysisError,
    SiteConfigRepositoryError,
)
from src.app.schemas.crawler import (
    AnalysisResponse,
    AnalyzeRequest,
    CrawlStartedResponse,
    CrawlSummaryResponse,
    SiteConfigCreateRequest,
    SiteConfigResponse,
)
from src.app.services.crawler_runtime import CrawlerRuntime, analyze_website, run_crawler

log = logging.getLogger("crawler.routes")
router = APIRouter(prefix="/admin/crawler", tags=["crawler"])


@router.get("", response_model=list[SiteConfigResponse])
async def list_site_configs(
    user: CurrentUser = Depends(get_current_user),
    runtime: CrawlerRuntime = Depends(get_crawler_runtime),
) -> list[SiteConfigResponse]:
    try:
        configs = await run_in_threadpool(runtime.site_repository.list_all)
    except SiteConfigRepositoryError as exc:
        log.error("crawler.configs_fetch_fail error=%s", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch crawler configurations") from exc
    return [SiteConfigResponse.from_domain(config) for config in configs]


@router.post("", response_model=SiteConfigResponse, status_code=201)
async def create_site_config(
    body: SiteConfigCreateRequest,
    user: CurrentUser = Depends(get_current_user),
    runtime: CrawlerRuntime = Depends(get_crawler_runtime),
) -> SiteConfigResponse:
    try:
        existing = await run_in_threadpool(runtime.site_repository.get_by_name, body.siteName)
        if existing is not None:
            raise HTTPException(status_code=409, detail="A configuration with this site name already exists")
        config = await run_in_threadpool(
            runtime.site_repository.create,
            body.siteName,
            body.siteUrl,
            body.selectors,
            body.enabled,
        )
    except InvalidSelectorConfigError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except SiteConfigRepositoryError as exc:
        log.error("crawler.config_create_fail site=%s error=%s", body.siteName, exc)
        raise HTTPException(status_code=500, detail="Failed to create crawler configuration") from exc
    log.info("crawler.config_created site=%s user=%s", config.site_name, user.id)
    return SiteConfigResponse.from_domain(config)


@router.post("/run", response_model=CrawlSummaryResponse | CrawlStartedResponse)
async def start_crawl(
    wait: bool = Query(default=False, description="Block until the run finishes and return its summary"),
    user: CurrentUser = Depends(get_current_user),
    runtime: CrawlerRuntime = Depends(get_crawler_runtime),
) -> CrawlSummaryResponse | CrawlStartedResponse:
    log.info("crawler.run_requested user=%s wait=%s", user.id, wait)
    if not wait:
        if not runtime.scheduler.trigger():
            raise HTTPException(status_code=409, detail="Crawler is already running")
        return CrawlStartedResponse(message="Crawler started")

    try:
        summary = await run_crawler(runtime)
    except CrawlAlreadyRunningError as exc:
        raise HTTPException(status_code=409, detail="Crawler is already running") from exc
    except Exception as exc:
        log.exception("crawler.run_fail")
        raise HTTPException(status_code=500, detail="Crawler run failed") from exc
    return CrawlSummaryResponse.from_domain(summary)


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze_site(
    body: AnalyzeRequest,
    user: CurrentUser = Depends(get_current_user),
    runtime: CrawlerRuntime = Depends(get_crawler_runtime),
) -> AnalysisResponse:
    try:
        analysis = await analyze_website(body.url, runtime)
    except SiteAnalysisError as exc:
        raise HTTPException(status_code=502, detail=f"Failed to analyze website: {exc.reason}") from exc
    except Exception as exc:
        log.exception("crawler.analyze_fail url=%s", body.url)
        raise HTTPException(status_code=500, detail="Failed to analyze website") from exc
    return AnalysisResponse.from_domain(analysis)
