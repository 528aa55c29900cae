"""
Fact Extractor - turns one fetched page into candidate facts.

Usage:
    from enrichment.extraction import extract_from_page

    page = extract_from_page(html, "https://example.org/referees")
    page.contacts, page.venues, page.comps, page.dates, page.attributes, page.pdf_hints

Extraction is pure and synchronous: no network, no database.
"""

from enrichment.extraction.attributes import extract_attributes
from enrichment.extraction.comp import extract_comp, extract_pdf_hints
from enrichment.extraction.contacts import extract_contacts
from enrichment.extraction.dates import extract_dates
from enrichment.extraction.document import PageDocument
from enrichment.extraction.venues import extract_venues
from enrichment.types import PageResult


def extract_from_page(html: str, page_url: str) -> PageResult:
    """
    Extract every candidate kind from a page.

    Args:
        html: Page markup
        page_url: URL the page was fetched from (resolves relative links)

    Returns:
        PageResult with contacts, venues, comps, dates, attributes and PDF hints
    """
    doc = PageDocument(html, page_url)
    return PageResult(
        contacts=extract_contacts(doc),
        venues=extract_venues(doc),
        comps=extract_comp(doc),
        dates=extract_dates(doc),
        attributes=extract_attributes(doc),
        pdf_hints=extract_pdf_hints(doc),
    )


__all__ = ["PageDocument", "extract_from_page"]
