"""
Parsed view of one fetched page shared by all extractors.

Script, style, noscript and template contents are dropped before any text is
read. Block-level elements are separated by newlines so ``lines`` follows the
rendered layout, while ``flat_text`` is the same text with all whitespace
collapsed (used for position-based contact windows).

Cloudflare-protected addresses are decoded in place so the rest of the
pipeline sees them as ordinary text.
"""

import re
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

REMOVED_TAGS = ["script", "style", "noscript", "template"]

BLOCK_TAGS = [
    "p", "div", "section", "article", "aside", "header", "footer", "nav", "main",
    "h1", "h2", "h3", "h4", "h5", "h6", "li", "ul", "ol", "tr", "td", "th",
    "table", "dt", "dd", "blockquote", "address", "form", "figure", "figcaption",
]

VENUE_BLOCK_TAGS = ["h1", "h2", "h3", "li", "p"]

CF_EMAIL_HREF = re.compile(r"/cdn-cgi/l/email-protection#([0-9a-f]+)", re.IGNORECASE)

WHITESPACE = re.compile(r"\s+")


def collapse(text: str) -> str:
    return WHITESPACE.sub(" ", text).strip()


def decode_cfemail(encoded: str) -> Optional[str]:
    """
    Decode a Cloudflare email-protection token.

    The first byte is an XOR key for every following byte.
    """
    if not encoded or len(encoded) < 4 or len(encoded) % 2:
        return None
    try:
        key = int(encoded[:2], 16)
        chars = [
            chr(int(encoded[i:i + 2], 16) ^ key)
            for i in range(2, len(encoded), 2)
        ]
    except ValueError:
        return None
    return "".join(chars)


@dataclass
class PageLink:
    """An anchor as found on the page."""

    href: str
    url: str
    text: str


class PageDocument:
    """
    Text and link views of a page.

    Attributes:
        url: The page URL (used to resolve relative links)
        soup: Parsed, cleaned tree
        lines: Non-empty text lines following block layout
        flat_text: Whole-page text with whitespace collapsed
        links: Anchors with absolute URLs and visible text
        cf_emails: Addresses decoded from Cloudflare protection
    """

    def __init__(self, html: str, url: str):
        self.url = url
        self.soup = BeautifulSoup(html or "", "html.parser")

        for tag in self.soup(REMOVED_TAGS):
            tag.decompose()

        self.cf_emails = self._decode_cloudflare()
        self.links = self._collect_links()
        self.markup = str(self.soup)

        for br in self.soup.find_all("br"):
            br.replace_with("\n")
        for tag in self.soup.find_all(BLOCK_TAGS):
            tag.insert_before("\n")
            tag.insert_after("\n")

        raw_text = self.soup.get_text()
        self.lines: List[str] = [
            collapse(line) for line in raw_text.split("\n") if line.strip()
        ]
        self.flat_text = collapse(raw_text)
        self.lower_text = self.flat_text.lower()

    def _decode_cloudflare(self) -> List[str]:
        decoded = []
        for tag in self.soup.find_all(attrs={"data-cfemail": True}):
            email = decode_cfemail(tag.get("data-cfemail", ""))
            if email:
                tag.string = email
                decoded.append(email)
        for anchor in self.soup.find_all("a", href=CF_EMAIL_HREF):
            match = CF_EMAIL_HREF.search(anchor["href"])
            email = decode_cfemail(match.group(1)) if match else None
            if email:
                anchor["href"] = f"mailto:{email}"
                if email not in decoded:
                    decoded.append(email)
        return decoded

    def _collect_links(self) -> List[PageLink]:
        links = []
        for anchor in self.soup.find_all("a", href=True):
            href = anchor["href"].strip()
            if not href:
                continue
            links.append(
                PageLink(
                    href=href,
                    url=urljoin(self.url, href),
                    text=collapse(anchor.get_text(" ")),
                )
            )
        return links

    def blocks(self, tags=None) -> List[str]:
        """Collapsed text of each matching element, first occurrence only."""
        seen = set()
        result = []
        for tag in self.soup.find_all(tags or VENUE_BLOCK_TAGS):
            text = collapse(tag.get_text(" "))
            if text and text not in seen:
                seen.add(text)
                result.append(text)
        return result
