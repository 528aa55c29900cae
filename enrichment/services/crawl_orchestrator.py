"""
Crawl Orchestrator - bounded breadth-first crawl of one tournament website.

Flow for one seed URL:
1. Fetch the next frontier URL (FIFO) through the Page Fetcher
2. Run the Fact Extractor on every page that came back
3. Rank the page's same-host links and append unseen ones to the frontier

The crawl stops after the page budget (default 8) of successful fetches or
when the frontier runs dry. Failed fetches do not count toward the budget
but the URL stays in ``seen``. Frontier growth is capped at budget + 5
entries (frontier plus seen) to bound memory on link-heavy sites.
"""

import logging
from collections import deque
from typing import Callable, Optional

from django.conf import settings

from enrichment.exceptions import TournamentUrlMissing
from enrichment.extraction import extract_from_page
from enrichment.fetchers import DomainRateLimiter, PageFetcher
from enrichment.services.link_ranker import LinkRanker, get_link_ranker
from enrichment.types import PageResult, ScrapeResult

logger = logging.getLogger(__name__)

FRONTIER_SLACK = 5


class CrawlOrchestrator:
    """
    Crawls a tournament site and aggregates extracted facts.

    Usage:
        orchestrator = CrawlOrchestrator(rate_limiter=shared_limiter)
        result = await orchestrator.scrape("https://example.org/")

    The rate limiter is shared by every crawl this orchestrator runs so
    per-host spacing holds across the jobs of a batch.
    """

    def __init__(
        self,
        rate_limiter: Optional[DomainRateLimiter] = None,
        fetcher_factory: Optional[Callable[[], PageFetcher]] = None,
        link_ranker: Optional[LinkRanker] = None,
        extractor: Optional[Callable[[str, str], PageResult]] = None,
        max_pages: Optional[int] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            rate_limiter: Per-host limiter shared across crawls
            fetcher_factory: Builds a fresh fetcher (async context manager) per crawl
            link_ranker: Link ranker (default LinkRanker)
            extractor: Page extraction function (default extract_from_page)
            max_pages: Default page budget (default ENRICHMENT_MAX_PAGES)
        """
        self.rate_limiter = rate_limiter or DomainRateLimiter()
        self.fetcher_factory = fetcher_factory or (
            lambda: PageFetcher(rate_limiter=self.rate_limiter)
        )
        self.link_ranker = link_ranker or get_link_ranker()
        self.extractor = extractor or extract_from_page
        self.max_pages = max_pages or getattr(settings, "ENRICHMENT_MAX_PAGES", 8)

    def page_budget(self, max_pages: Optional[int] = None) -> int:
        """Budget for one crawl; explicit requests are clamped to 1..ENRICHMENT_DEEP_MAX_PAGES."""
        if max_pages is None:
            return self.max_pages
        ceiling = getattr(settings, "ENRICHMENT_DEEP_MAX_PAGES", 16)
        return max(1, min(int(max_pages), ceiling))

    async def scrape(self, seed_url: Optional[str], max_pages: Optional[int] = None) -> ScrapeResult:
        """
        Crawl from a seed URL.

        Args:
            seed_url: Tournament website URL
            max_pages: Optional page budget override

        Returns:
            ScrapeResult with the union of facts from every fetched page

        Raises:
            TournamentUrlMissing: seed_url is empty
        """
        if not seed_url:
            raise TournamentUrlMissing()

        budget = self.page_budget(max_pages)
        result = ScrapeResult(seed_url=seed_url)
        frontier = deque([seed_url])
        queued = {seed_url}
        seen = set()

        logger.info(f"Starting enrichment crawl of {seed_url} (budget {budget} pages)")

        async with self.fetcher_factory() as fetcher:
            while frontier and result.pages_fetched < budget:
                url = frontier.popleft()
                if url in seen:
                    continue
                seen.add(url)

                try:
                    html = await fetcher.fetch(url)
                except Exception as e:
                    logger.warning(f"Fetch failed for {url}: {e}")
                    continue

                if html is None:
                    continue

                result.pages_fetched += 1
                result.fetched_urls.append(url)

                try:
                    result.add_page(self.extractor(html, url))
                except Exception as e:
                    logger.warning(f"Extraction failed for {url}: {e}", exc_info=True)

                try:
                    links = self.link_ranker.rank(html, url)
                except Exception as e:
                    logger.warning(f"Link ranking failed for {url}: {e}")
                    continue

                for link in links:
                    if len(frontier) + len(seen) >= budget + FRONTIER_SLACK:
                        break
                    if link in seen or link in queued:
                        continue
                    frontier.append(link)
                    queued.add(link)

        logger.info(
            f"Finished crawl of {seed_url}: {result.pages_fetched} pages, "
            f"candidates {result.counts()}"
        )
        return result
