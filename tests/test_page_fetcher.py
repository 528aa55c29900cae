"""
Tests for the page fetcher.

HTTP is served by httpx.MockTransport; no network access.
"""

import asyncio

import httpx
import pytest

from enrichment.fetchers import DomainRateLimiter, PageFetcher

URL = "https://springclassic.example.com/referees"


def html_response(body: str = "<p>Hello</p>", status: int = 200, content_type: str = "text/html; charset=utf-8"):
    return httpx.Response(status, headers={"content-type": content_type}, content=body.encode("utf-8"))


def make_fetcher(handler, **kwargs) -> PageFetcher:
    options = {
        "rate_limiter": DomainRateLimiter(min_interval=0),
        "timeout": 5,
        "max_retries": 0,
        "respect_robots": False,
        "retry_backoff": 0,
        "transport": httpx.MockTransport(handler),
    }
    options.update(kwargs)
    return PageFetcher(**options)


class TestFetch:
    @pytest.mark.asyncio
    async def test_returns_html(self):
        requests = []

        def handler(request):
            requests.append(request)
            return html_response("<h1>Referees</h1>")

        async with make_fetcher(handler, user_agent="TestBot/1.0 (+https://example.com/about)") as fetcher:
            html = await fetcher.fetch(URL)

        assert html == "<h1>Referees</h1>"
        assert requests[0].headers["user-agent"] == "TestBot/1.0 (+https://example.com/about)"

    @pytest.mark.asyncio
    async def test_non_html_is_discarded(self):
        def handler(request):
            return html_response("%PDF-1.4", content_type="application/pdf")

        async with make_fetcher(handler) as fetcher:
            assert await fetcher.fetch(URL) is None

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return html_response("Not found", status=404)

        async with make_fetcher(handler, max_retries=2) as fetcher:
            assert await fetcher.fetch(URL) is None

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_server_errors_are_retried(self):
        statuses = iter([503, 502, 200])
        calls = []

        def handler(request):
            calls.append(request)
            return html_response("<p>ok</p>", status=next(statuses))

        async with make_fetcher(handler, max_retries=2) as fetcher:
            html = await fetcher.fetch(URL)

        assert html == "<p>ok</p>"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        async with make_fetcher(handler, max_retries=1) as fetcher:
            assert await fetcher.fetch(URL) is None

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_timeout_returns_none_without_retry(self):
        calls = []

        async def handler(request):
            calls.append(request)
            await asyncio.sleep(1)
            return html_response()

        async with make_fetcher(handler, timeout=0.05, max_retries=2) as fetcher:
            assert await fetcher.fetch(URL) is None

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_body_is_capped(self):
        def handler(request):
            return html_response("a" * 5000)

        async with make_fetcher(handler, max_bytes=1000) as fetcher:
            html = await fetcher.fetch(URL)

        assert len(html) == 1000

    @pytest.mark.asyncio
    async def test_undecodable_bytes_are_replaced(self):
        def handler(request):
            return httpx.Response(200, headers={"content-type": "text/html"}, content=b"<p>caf\xe9</p>")

        async with make_fetcher(handler) as fetcher:
            html = await fetcher.fetch(URL)

        assert html.startswith("<p>caf")


class TestPoliteness:
    @pytest.mark.asyncio
    async def test_same_host_fetches_are_spaced(self, fake_clock):
        request_times = []

        def handler(request):
            request_times.append(fake_clock())
            return html_response()

        limiter = DomainRateLimiter(min_interval=0.5, clock=fake_clock, sleep=fake_clock.sleep)
        async with make_fetcher(handler, rate_limiter=limiter) as fetcher:
            await fetcher.fetch("https://springclassic.example.com/a")
            await fetcher.fetch("https://springclassic.example.com/b")

        assert request_times[1] - request_times[0] >= 0.5

    @pytest.mark.asyncio
    async def test_politeness_wait_does_not_count_against_timeout(self, fake_clock):
        async def slow_sleep(seconds):
            await asyncio.sleep(0.1)
            fake_clock.now += seconds

        limiter = DomainRateLimiter(min_interval=5, clock=fake_clock, sleep=slow_sleep)
        async with make_fetcher(lambda request: html_response(), rate_limiter=limiter, timeout=0.05) as fetcher:
            assert await fetcher.fetch("https://springclassic.example.com/a") is not None
            assert await fetcher.fetch("https://springclassic.example.com/b") is not None

    @pytest.mark.asyncio
    async def test_robots_disallow_is_respected(self):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            if request.url.path == "/robots.txt":
                return httpx.Response(200, text="User-agent: *\nDisallow: /private\n")
            return html_response()

        async with make_fetcher(handler, respect_robots=True) as fetcher:
            assert await fetcher.fetch("https://springclassic.example.com/private/pay") is None
            assert await fetcher.fetch("https://springclassic.example.com/referees") is not None

        assert paths == ["/robots.txt", "/referees"]

    @pytest.mark.asyncio
    async def test_missing_robots_allows_everything(self):
        def handler(request):
            if request.url.path == "/robots.txt":
                return httpx.Response(404)
            return html_response()

        async with make_fetcher(handler, respect_robots=True) as fetcher:
            assert await fetcher.fetch(URL) is not None
