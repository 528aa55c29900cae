"""
Polite page fetching for tournament websites.

- DomainRateLimiter: minimum spacing between fetches to the same host
- PageFetcher: bounded, HTML-only async fetches over httpx
"""

from enrichment.fetchers.page_fetcher import PageFetcher
from enrichment.fetchers.rate_limiter import DomainRateLimiter

__all__ = ["DomainRateLimiter", "PageFetcher"]
