"""
Tests for the crawl orchestrator.

Sites are served by an in-memory fake fetcher so crawl order and the page
budget can be checked without HTTP.
"""

import pytest

from enrichment.exceptions import TournamentUrlMissing
from enrichment.services.crawl_orchestrator import CrawlOrchestrator

HOST = "https://site.example.com"


class FakeFetcher:
    def __init__(self, site):
        self.site = site

    async def __aenter__(self):
        self.site.sessions += 1
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def fetch(self, url):
        self.site.fetched.append(url)
        if url in self.site.errors:
            raise self.site.errors[url]
        return self.site.pages.get(url)


class FakeSite:
    """Maps URL -> HTML; unknown URLs fail to fetch."""

    def __init__(self, pages, errors=None):
        self.pages = pages
        self.errors = errors or {}
        self.fetched = []
        self.sessions = 0

    def __call__(self):
        return FakeFetcher(self)


def linked_site(count: int) -> FakeSite:
    """A site where every page has a contact and links to every other page."""
    urls = [f"{HOST}/page-{i}" for i in range(count)]
    links = "".join(f'<a href="{url}">Page</a>' for url in urls)
    pages = {
        url: f"<p>Referee Assignor: ref{i}@site.example.com</p>{links}"
        for i, url in enumerate(urls)
    }
    return FakeSite(pages)


def orchestrator_for(site, **kwargs) -> CrawlOrchestrator:
    return CrawlOrchestrator(fetcher_factory=site, **kwargs)


class TestPageBudget:
    @pytest.mark.asyncio
    async def test_fifty_page_site_stops_at_eight(self):
        site = linked_site(50)

        result = await orchestrator_for(site, max_pages=8).scrape(f"{HOST}/page-0")

        assert result.pages_fetched == 8
        assert len(site.fetched) == 8
        assert len(result.contacts) == 8
        assert site.sessions == 1

    @pytest.mark.asyncio
    async def test_explicit_budget_is_clamped(self, settings):
        settings.ENRICHMENT_DEEP_MAX_PAGES = 16
        site = linked_site(50)

        result = await orchestrator_for(site, max_pages=8).scrape(f"{HOST}/page-0", max_pages=100)

        assert result.pages_fetched == 16

    def test_page_budget_bounds(self, settings):
        settings.ENRICHMENT_DEEP_MAX_PAGES = 16
        orchestrator = CrawlOrchestrator(fetcher_factory=FakeSite({}), max_pages=8)

        assert orchestrator.page_budget() == 8
        assert orchestrator.page_budget(0) == 1
        assert orchestrator.page_budget(12) == 12
        assert orchestrator.page_budget(40) == 16

    @pytest.mark.asyncio
    async def test_small_site_ends_when_frontier_is_empty(self):
        site = linked_site(3)

        result = await orchestrator_for(site, max_pages=8).scrape(f"{HOST}/page-0")

        assert result.pages_fetched == 3
        assert sorted(result.fetched_urls) == sorted(site.pages)


class TestFailures:
    @pytest.mark.asyncio
    async def test_missing_seed_url(self):
        with pytest.raises(TournamentUrlMissing):
            await orchestrator_for(FakeSite({})).scrape(None)

    @pytest.mark.asyncio
    async def test_failed_fetch_is_consumed_not_counted(self):
        site = FakeSite(
            {
                f"{HOST}/": f'<a href="{HOST}/broken">Referees</a><a href="{HOST}/ok">Venue</a>',
                f"{HOST}/ok": f'<a href="{HOST}/broken">Referees</a><p>Hi</p>',
            },
            errors={f"{HOST}/broken": RuntimeError("boom")},
        )

        result = await orchestrator_for(site, max_pages=8).scrape(f"{HOST}/")

        assert result.pages_fetched == 2
        assert result.fetched_urls == [f"{HOST}/", f"{HOST}/ok"]
        assert site.fetched.count(f"{HOST}/broken") == 1

    @pytest.mark.asyncio
    async def test_extractor_error_does_not_stop_crawl(self):
        site = linked_site(3)

        def broken_extractor(html, url):
            raise ValueError("bad markup")

        result = await orchestrator_for(site, max_pages=8, extractor=broken_extractor).scrape(
            f"{HOST}/page-0"
        )

        assert result.pages_fetched == 3
        assert result.contacts == []


class TestAggregation:
    @pytest.mark.asyncio
    async def test_pdf_hints_fold_into_comps(self):
        site = FakeSite(
            {f"{HOST}/": f'<a href="{HOST}/files/referee-pay.pdf">Referee Pay Scale</a>'}
        )

        result = await orchestrator_for(site).scrape(f"{HOST}/")

        assert len(result.comps) == 1
        assert result.comps[0].source_url == f"{HOST}/files/referee-pay.pdf"
        assert result.comps[0].confidence == 0.3
        assert result.counts()["comp"] == 1
