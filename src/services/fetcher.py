from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

import httpx

from .errors import FetchFailedError, NetworkTimeoutError

logger = logging.getLogger("crawler.fetcher")

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; CastIronRecipeCrawler/1.0; +https://mycookwarecare.com)"
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 1.0
DEFAULT_TIMEOUT_SECONDS = 20.0

Sleeper = Callable[[float], Awaitable[None]]


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Linear backoff: the wait after the attempt-th failure."""
    return attempt * base_delay


class ResilientFetcher:
    """
    GETs a page with an identifying user-agent, retrying failed attempts.

    Transport errors, timeouts and non-2xx responses all count as failed
    attempts. After `max_attempts` failures a FetchFailedError is raised
    with the last failure chained as its cause.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        sleep: Sleeper = asyncio.sleep,
        log: logging.Logger | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self.user_agent = user_agent
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.timeout_seconds = timeout_seconds
        self._sleep = sleep
        self._log = log or logger

    async def fetch(self, url: str) -> str:
        last_error: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            self._log.debug("fetch.attempt url=%s attempt=%d/%d", url, attempt, self.max_attempts)
            try:
                return await self._get_text(url)
            except (httpx.InvalidURL, ValueError) as error:
                # Retrying cannot fix a URL the client refuses to send.
                self._log.warning("fetch.invalid_url url=%r error=%s", url, error)
                raise FetchFailedError(url, attempt, f"invalid URL: {error}") from error
            except (httpx.HTTPError, NetworkTimeoutError) as error:
                last_error = error
                self._log.warning(
                    "fetch.attempt_failed url=%s attempt=%d/%d error=%s",
                    url,
                    attempt,
                    self.max_attempts,
                    error,
                )

            if attempt < self.max_attempts:
                await self._sleep(backoff_delay(attempt, self.backoff_seconds))

        raise FetchFailedError(url, self.max_attempts, str(last_error)) from last_error

    async def _get_text(self, url: str) -> str:
        try:
            response = await self._client.get(
                url,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            return response.text
        except httpx.TimeoutException as error:
            raise NetworkTimeoutError(url, self.timeout_seconds) from error
        finally:
            self._client.cookies.clear()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ResilientFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
