"""
Page Fetcher - bounded, polite HTML fetches over async httpx.

Every fetch:
- waits for the per-host politeness slot (DomainRateLimiter)
- is aborted after ENRICHMENT_FETCH_TIMEOUT seconds (never retried)
- streams the body and stops at ENRICHMENT_MAX_PAGE_BYTES
- is discarded unless the response is text/html

Connection errors and 5xx responses are retried with exponential backoff.
A failed fetch returns None and logs a warning; it never raises.
"""

import asyncio
import logging
from typing import Dict, Optional, Tuple
from urllib.parse import urlparse
from urllib.robotparser import RobotFileParser

import httpx

from django.conf import settings

from enrichment.fetchers.rate_limiter import DomainRateLimiter, host_for

logger = logging.getLogger(__name__)


class PageFetcher:
    """
    Async fetcher for tournament website pages.

    Usage:
        async with PageFetcher(rate_limiter=limiter) as fetcher:
            html = await fetcher.fetch("https://example.org/referees")

    The httpx client lives for one ``async with`` block (one crawl); the rate
    limiter is passed in so it can outlive the fetcher.
    """

    DEFAULT_HEADERS = {
        "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.5",
        "Accept-Language": "en-US,en;q=0.9",
    }

    def __init__(
        self,
        rate_limiter: Optional[DomainRateLimiter] = None,
        timeout: Optional[float] = None,
        max_bytes: Optional[int] = None,
        max_retries: Optional[int] = None,
        user_agent: Optional[str] = None,
        respect_robots: Optional[bool] = None,
        retry_backoff: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize page fetcher.

        Args:
            rate_limiter: Shared per-host limiter (a private one is created if omitted)
            timeout: Whole-request timeout in seconds (default from settings)
            max_bytes: Body size cap in bytes (default from settings)
            max_retries: Retries for connection errors and 5xx (default from settings)
            user_agent: User-Agent header (default from settings)
            respect_robots: Check robots.txt before fetching (default from settings)
            retry_backoff: Base delay for exponential backoff between retries
            transport: Custom httpx transport, used by tests
        """
        self.rate_limiter = rate_limiter or DomainRateLimiter()
        self.timeout = (
            timeout if timeout is not None
            else getattr(settings, "ENRICHMENT_FETCH_TIMEOUT", 10)
        )
        self.max_bytes = (
            max_bytes if max_bytes is not None
            else getattr(settings, "ENRICHMENT_MAX_PAGE_BYTES", 1024 * 1024)
        )
        self.max_retries = (
            max_retries if max_retries is not None
            else getattr(settings, "ENRICHMENT_FETCH_MAX_RETRIES", 2)
        )
        self.user_agent = user_agent or getattr(
            settings, "ENRICHMENT_USER_AGENT", "TournamentEnricher/1.0"
        )
        self.respect_robots = (
            respect_robots if respect_robots is not None
            else getattr(settings, "ENRICHMENT_RESPECT_ROBOTS", True)
        )
        self.retry_backoff = retry_backoff
        self._transport = transport

        self._http_client: Optional[httpx.AsyncClient] = None
        self._robots: Dict[str, Optional[RobotFileParser]] = {}

    async def __aenter__(self):
        """Async context manager entry."""
        await self._init_http_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _init_http_client(self):
        """Initialize HTTP client."""
        if self._http_client is None:
            headers = {
                **self.DEFAULT_HEADERS,
                "User-Agent": self.user_agent,
            }
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers=headers,
                follow_redirects=True,
                transport=self._transport,
            )

    async def close(self):
        """Close HTTP client connection and forget robots rules for this session."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        self._robots = {}

    async def fetch(self, url: str) -> Optional[str]:
        """
        Fetch a page's HTML.

        Args:
            url: Absolute http(s) URL

        Returns:
            Decoded HTML (possibly truncated at the size cap), or None when the
            page is unavailable, not HTML, disallowed, or timed out
        """
        if self._http_client is None:
            await self._init_http_client()

        if self.respect_robots and not await self._allowed_by_robots(url):
            logger.info(f"robots.txt disallows {url}")
            return None

        last_error = None
        host = host_for(url)

        for attempt in range(self.max_retries + 1):
            try:
                # The politeness wait is not part of the request timeout
                async with self.rate_limiter.slot(host):
                    status_code, html = await asyncio.wait_for(
                        self._fetch_once(url), timeout=self.timeout
                    )
            except (asyncio.TimeoutError, httpx.TimeoutException):
                logger.warning(f"Timeout fetching {url} after {self.timeout}s")
                return None
            except httpx.HTTPError as e:
                last_error = f"{type(e).__name__}: {e}"
            else:
                if status_code < 500:
                    return html
                last_error = f"HTTP {status_code}"

            if attempt < self.max_retries:
                wait_time = self.retry_backoff * (2 ** attempt)
                logger.debug(
                    f"Fetch attempt {attempt + 1} failed for {url} ({last_error}), "
                    f"retrying in {wait_time}s"
                )
                await asyncio.sleep(wait_time)

        logger.warning(f"Failed to fetch {url}: {last_error}")
        return None

    async def _fetch_once(self, url: str) -> Tuple[int, Optional[str]]:
        """
        Run a single GET.

        Returns:
            (status_code, html or None)
        """
        async with self._http_client.stream("GET", url) as response:
            if response.status_code >= 400:
                if response.status_code < 500:
                    logger.warning(f"HTTP {response.status_code} for {url}")
                return response.status_code, None

            content_type = response.headers.get("content-type", "")
            if "text/html" not in content_type.lower():
                logger.debug(
                    f"Skipping non-HTML response for {url} "
                    f"({content_type or 'no content-type'})"
                )
                return response.status_code, None

            body = await self._read_capped(response)
            return response.status_code, self._decode(body, response)

    async def _read_capped(self, response: httpx.Response) -> bytes:
        """Read the streamed body, stopping once max_bytes have arrived."""
        buffer = bytearray()
        async for chunk in response.aiter_bytes():
            buffer.extend(chunk)
            if len(buffer) >= self.max_bytes:
                logger.debug(f"Truncating {response.url} at {self.max_bytes} bytes")
                del buffer[self.max_bytes:]
                break
        return bytes(buffer)

    @staticmethod
    def _decode(body: bytes, response: httpx.Response) -> str:
        encoding = response.charset_encoding or "utf-8"
        try:
            return body.decode(encoding, errors="replace")
        except LookupError:
            return body.decode("utf-8", errors="replace")

    async def _allowed_by_robots(self, url: str) -> bool:
        """Check robots.txt for the URL's origin, loading it once per session."""
        parsed = urlparse(url)
        origin = f"{parsed.scheme}://{parsed.netloc}"
        if origin not in self._robots:
            self._robots[origin] = await self._load_robots(origin)

        parser = self._robots[origin]
        if parser is None:
            return True
        return parser.can_fetch(self.user_agent, url)

    async def _load_robots(self, origin: str) -> Optional[RobotFileParser]:
        """Fetch and parse robots.txt; None means everything is allowed."""
        robots_url = f"{origin}/robots.txt"
        try:
            async with self.rate_limiter.slot(host_for(robots_url)):
                response = await asyncio.wait_for(
                    self._http_client.get(robots_url), timeout=self.timeout
                )
        except (asyncio.TimeoutError, httpx.HTTPError) as e:
            logger.debug(f"Could not load {robots_url}: {e}")
            return None

        if response.status_code != 200:
            return None

        parser = RobotFileParser(robots_url)
        parser.parse(response.text.splitlines())
        return parser
