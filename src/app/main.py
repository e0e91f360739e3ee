# src/app/main.py
from __future__ import annotations
import logging
import sys
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from src.app.config import settings
from src.app.routers.crawler import router as crawler_router
from src.app.services.crawler_runtime import get_runtime
from src.app.services.site_seeding import seed_default_site_configs

# Plain stdout logging (fine for dev and containers)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
log = logging.getLogger("app")

app = FastAPI(title="Recipe Crawler API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(crawler_router)


@app.on_event("startup")
async def startup() -> None:
    if not settings.CRAWLER_SCHEDULER_ENABLED:
        log.info("Crawler scheduler disabled")
        return
    runtime = get_runtime()
    try:
        await run_in_threadpool(seed_default_site_configs, runtime.site_repository)
    except Exception:
        log.exception("Seeding default crawler configs failed")
    await runtime.scheduler.start()


@app.on_event("shutdown")
async def shutdown() -> None:
    if settings.CRAWLER_SCHEDULER_ENABLED:
        runtime = get_runtime()
        await runtime.scheduler.stop()
        await runtime.fetcher.aclose()


@app.get("/health")
def health():
    return {"ok": True}
