"""
Venue extraction: keyword/address blocks and map links.
"""

import re
from typing import List

from enrichment.extraction.document import PageDocument
from enrichment.extraction.keywords import VENUE_KEYWORDS, contains_any
from enrichment.extraction.scoring import VENUE_LINK_CONFIDENCE, score_venue
from enrichment.types import VenueCandidate

STREET_SUFFIXES = (
    "St|Street|Rd|Road|Ave|Avenue|Blvd|Boulevard|Dr|Drive|Ln|Lane|Way|Pkwy|Parkway|"
    "Hwy|Highway|Ct|Court|Pl|Place|Cir|Circle|Trl|Trail|Pike|Route|Rte"
)

# House number followed by a street name
ADDRESS = re.compile(
    rf"\b\d{{1,5}}\s+(?:[NSEW]\.?\s+)?(?:[A-Z0-9][\w'.-]*\s+){{0,4}}(?:{STREET_SUFFIXES})\b\.?",
)

NAME_LIMIT = 80
TEXT_LIMIT = 300


def extract_venues(doc: PageDocument) -> List[VenueCandidate]:
    """
    Find venue blocks and map/directions links.

    Block scanning only runs when the page mentions a venue keyword at all;
    map links are collected regardless.
    """
    venues: List[VenueCandidate] = []
    seen = set()

    if contains_any(doc.lower_text, VENUE_KEYWORDS):
        for block in doc.blocks():
            lower = block.lower()
            has_keyword = contains_any(lower, VENUE_KEYWORDS)
            has_address = bool(ADDRESS.search(block))
            if not (has_keyword or has_address):
                continue
            venue_name = block[:NAME_LIMIT] if has_keyword else None
            address_text = block[:TEXT_LIMIT] if has_address else None
            key = (venue_name, address_text, None)
            if key in seen:
                continue
            seen.add(key)
            venues.append(
                VenueCandidate(
                    venue_name=venue_name,
                    address_text=address_text,
                    source_url=doc.url,
                    evidence_text=block[:TEXT_LIMIT],
                    confidence=score_venue(has_keyword, has_address),
                )
            )

    for link in doc.links:
        if not link.url.startswith(("http://", "https://")):
            continue
        haystack = f"{link.href} {link.text}".lower()
        if "maps" not in haystack and "directions" not in haystack:
            continue
        key = (None, None, link.url)
        if key in seen:
            continue
        seen.add(key)
        venues.append(
            VenueCandidate(
                venue_url=link.url,
                source_url=doc.url,
                evidence_text=(link.text or link.url)[:TEXT_LIMIT],
                confidence=VENUE_LINK_CONFIDENCE,
            )
        )

    return venues
