from __future__ import annotations

import asyncio

import httpx
import pytest

from src.services.errors import FetchFailedError
from src.services.fetcher import DEFAULT_USER_AGENT, ResilientFetcher, backoff_delay

URL = "https://recipes.example.com/list"


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_fetcher(handler, sleep: SleepRecorder, **kwargs) -> ResilientFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ResilientFetcher(client=client, sleep=sleep, **kwargs)


class TestBackoffDelay:
    def test_linear(self) -> None:
        assert backoff_delay(1, 1.0) == 1.0
        assert backoff_delay(2, 1.0) == 2.0
        assert backoff_delay(3, 0.5) == 1.5


class TestResilientFetcher:
    def test_returns_body_on_first_success(self) -> None:
        seen_agents: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen_agents.append(request.headers["User-Agent"])
            return httpx.Response(200, text="<html>ok</html>")

        sleep = SleepRecorder()
        fetcher = make_fetcher(handler, sleep)

        body = asyncio.run(fetcher.fetch(URL))

        assert body == "<html>ok</html>"
        assert seen_agents == [DEFAULT_USER_AGENT]
        assert sleep.delays == []

    def test_retries_then_succeeds(self) -> None:
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            if calls["count"] < 3:
                return httpx.Response(503)
            return httpx.Response(200, text="finally")

        sleep = SleepRecorder()
        fetcher = make_fetcher(handler, sleep)

        assert asyncio.run(fetcher.fetch(URL)) == "finally"
        assert calls["count"] == 3
        assert sleep.delays == [1.0, 2.0]

    def test_exhausted_attempts_raise_fetch_failed(self) -> None:
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            return httpx.Response(404)

        sleep = SleepRecorder()
        fetcher = make_fetcher(handler, sleep, backoff_seconds=0.25)

        with pytest.raises(FetchFailedError) as exc_info:
            asyncio.run(fetcher.fetch(URL))

        assert calls["count"] == 3
        # No pause after the final attempt.
        assert sleep.delays == [0.25, 0.5]
        assert exc_info.value.url == URL
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    def test_transport_errors_are_retried(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        sleep = SleepRecorder()
        fetcher = make_fetcher(handler, sleep, max_attempts=2)

        with pytest.raises(FetchFailedError) as exc_info:
            asyncio.run(fetcher.fetch(URL))

        assert exc_info.value.attempts == 2
        assert sleep.delays == [1.0]

    def test_timeouts_are_retried(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        sleep = SleepRecorder()
        fetcher = make_fetcher(handler, sleep, max_attempts=1, timeout_seconds=5)

        with pytest.raises(FetchFailedError) as exc_info:
            asyncio.run(fetcher.fetch(URL))

        assert "5" in exc_info.value.reason
        assert sleep.delays == []

    def test_invalid_url_fails_without_retrying(self) -> None:
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            return httpx.Response(200, text="ok")

        sleep = SleepRecorder()
        fetcher = make_fetcher(handler, sleep)
        bad_url = "https://recipes.example.com/recipes/\nbanana"

        with pytest.raises(FetchFailedError) as exc_info:
            asyncio.run(fetcher.fetch(bad_url))

        assert calls["count"] == 0
        assert sleep.delays == []
        assert exc_info.value.url == bad_url
        assert exc_info.value.attempts == 1
        assert "invalid URL" in exc_info.value.reason
        assert isinstance(exc_info.value.__cause__, httpx.InvalidURL)

    def test_invalid_url_from_transport_is_terminal(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")

        sleep = SleepRecorder()
        fetcher = make_fetcher(handler, sleep)

        with pytest.raises(FetchFailedError) as exc_info:
            asyncio.run(fetcher.fetch(URL))

        assert exc_info.value.attempts == 1
        assert sleep.delays == []

    def test_redirect_status_without_follow_is_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(304)

        fetcher = make_fetcher(handler, SleepRecorder(), max_attempts=1)

        with pytest.raises(FetchFailedError):
            asyncio.run(fetcher.fetch(URL))

    def test_cookies_do_not_carry_between_requests(self) -> None:
        cookie_headers: list[str | None] = []

        def handler(request: httpx.Request) -> httpx.Response:
            cookie_headers.append(request.headers.get("Cookie"))
            return httpx.Response(200, text="ok", headers={"Set-Cookie": "session=abc; Path=/"})

        fetcher = make_fetcher(handler, SleepRecorder())

        async def fetch_twice() -> None:
            await fetcher.fetch(URL)
            await fetcher.fetch(URL)

        asyncio.run(fetch_twice())

        assert cookie_headers == [None, None]

    def test_custom_user_agent(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers["User-Agent"])
            return httpx.Response(200, text="ok")

        fetcher = make_fetcher(handler, SleepRecorder(), user_agent="TestBot/1.0 (+https://example.org)")
        asyncio.run(fetcher.fetch(URL))

        assert seen == ["TestBot/1.0 (+https://example.org)"]

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            ResilientFetcher(client=httpx.AsyncClient(), max_attempts=0)
