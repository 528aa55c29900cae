"""
Per-host politeness spacing for the page fetcher.

The limiter remembers when the last fetch to each host completed and makes
the next fetch to that host wait until the configured spacing has elapsed.
Fetches to different hosts never wait on each other.

State is process-local. One limiter is shared by every job in a batch so
spacing holds across jobs that hit the same host; it is not safe to share
between concurrently running batches.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Dict, Optional
from urllib.parse import urlparse

from django.conf import settings

logger = logging.getLogger(__name__)


def host_for(url: str) -> str:
    """Rate-limit key for a URL: its lowercased hostname."""
    return (urlparse(url).hostname or "").lower()


class DomainRateLimiter:
    """
    Enforce a minimum delay between fetches to the same host.

    Usage:
        limiter = DomainRateLimiter()
        async with limiter.slot("example.com"):
            response = await client.get(url)

    The clock and sleep functions are injectable so spacing can be tested
    without real waiting.
    """

    def __init__(
        self,
        min_interval: Optional[float] = None,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Initialize rate limiter.

        Args:
            min_interval: Seconds between fetches to one host
                (default ENRICHMENT_PER_HOST_DELAY)
            clock: Monotonic clock returning seconds
            sleep: Coroutine function used to wait
        """
        if min_interval is None:
            min_interval = getattr(settings, "ENRICHMENT_PER_HOST_DELAY", 0.5)
        self.min_interval = float(min_interval)
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._last_fetch: Dict[str, float] = {}

    async def wait(self, host: str) -> float:
        """
        Wait until a fetch to ``host`` is allowed.

        Returns:
            Seconds actually waited (0.0 when no wait was needed)
        """
        last = self._last_fetch.get(host)
        if last is None:
            return 0.0

        remaining = self.min_interval - (self._clock() - last)
        if remaining <= 0:
            return 0.0

        logger.debug(f"Rate limiting {host}: waiting {remaining:.3f}s")
        await self._sleep(remaining)
        return remaining

    def record(self, host: str) -> None:
        """Record that a fetch to ``host`` just completed."""
        self._last_fetch[host] = self._clock()

    def last_fetch(self, host: str) -> Optional[float]:
        return self._last_fetch.get(host)

    @asynccontextmanager
    async def slot(self, host: str):
        """Wait for the host, run the block, then record completion even on failure."""
        await self.wait(host)
        try:
            yield
        finally:
            self.record(host)
