"""
Link Ranker Service.

Orders a page's same-host links so the crawl visits likely contact, venue,
pay and travel pages first.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup

from enrichment.extraction.document import collapse
from enrichment.extraction.keywords import LINK_KEYWORDS

logger = logging.getLogger(__name__)

KEYWORD_POINTS = 2
BASELINE_SCORE = 1


@dataclass
class RankedLink:
    """A candidate crawl URL with its priority score."""

    url: str
    score: int
    text: str = ""


class LinkRanker:
    """
    Scores and orders links found on a tournament page.

    Score is 2 points per keyword found in the link's path or visible text;
    links with no keyword keep a baseline of 1 so navigation can continue.
    """

    # URLs to skip
    SKIP_PATTERNS = [
        r"\.(jpg|jpeg|png|gif|svg|webp|ico|css|js|pdf|zip|doc|docx|xls|xlsx|mp4|mov|mp3)$",
        r"/wp-admin",
        r"/wp-login",
        r"/cart",
        r"/checkout",
        r"/login",
    ]

    def __init__(self, keywords: Optional[List[str]] = None):
        """
        Initialize the link ranker.

        Args:
            keywords: Keyword vocabulary (defaults to the union of extractor keywords)
        """
        self.keywords = keywords or LINK_KEYWORDS
        self._skip_regexes = [re.compile(p, re.IGNORECASE) for p in self.SKIP_PATTERNS]

    def score(self, url: str, text: str = "") -> int:
        """Score one link from its path and anchor text."""
        path = urlparse(url).path.lower()
        haystack = " ".join([re.sub(r"[-_/.+]+", " ", path), text.lower()])
        hits = sum(1 for keyword in self.keywords if keyword in haystack)
        return hits * KEYWORD_POINTS if hits else BASELINE_SCORE

    def rank_links(self, html: str, base_url: str) -> List[RankedLink]:
        """
        Collect, filter and score every anchor on the page.

        Args:
            html: Page markup
            base_url: URL of the page (for resolving relative links and host check)

        Returns:
            RankedLinks by descending score, ties in first-seen order
        """
        if not html:
            return []

        soup = BeautifulSoup(html, "html.parser")
        base_host = (urlparse(base_url).hostname or "").lower()

        best: Dict[str, RankedLink] = {}
        for anchor in soup.find_all("a", href=True):
            href = anchor.get("href", "").strip()
            if not href:
                continue

            url = self._normalize(href, base_url)
            if url is None:
                continue
            parsed = urlparse(url)
            if (parsed.hostname or "").lower() != base_host:
                continue
            if self._should_skip(parsed.path):
                continue

            text = collapse(anchor.get_text(" "))
            score = self.score(url, text)
            existing = best.get(url)
            if existing is None:
                best[url] = RankedLink(url=url, score=score, text=text)
            elif score > existing.score:
                existing.score = score
                existing.text = text

        logger.debug(f"Ranked {len(best)} same-host links on {base_url}")

        # dict preserves first-seen order; sorted() is stable
        return sorted(best.values(), key=lambda link: link.score, reverse=True)

    def rank(self, html: str, base_url: str) -> List[str]:
        """Ranked same-host absolute URLs, highest priority first."""
        return [link.url for link in self.rank_links(html, base_url)]

    def _normalize(self, href: str, base_url: str) -> Optional[str]:
        url, _fragment = urldefrag(urljoin(base_url, href))
        if urlparse(url).scheme not in ("http", "https"):
            return None
        return url

    def _should_skip(self, path: str) -> bool:
        return any(regex.search(path) for regex in self._skip_regexes)


def get_link_ranker() -> LinkRanker:
    """Factory function to get LinkRanker instance."""
    return LinkRanker()
