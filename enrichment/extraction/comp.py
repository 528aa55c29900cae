"""
Referee compensation extraction.

Works line by line over the page text. A line qualifies when it carries a
dollar amount or a travel/lodging keyword; the previous and next lines give
context for evidence, travel notes and the team-fee filter.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple

from enrichment.extraction.document import PageDocument
from enrichment.extraction.keywords import (
    ASSIGNING_PLATFORMS,
    FEE_NEGATIVE_KEYWORDS,
    RATE_KEYWORDS,
    REFEREE_CONTEXT_KEYWORDS,
    TRAVEL_KEYWORDS,
    contains_any,
)
from enrichment.extraction.scoring import score_comp
from enrichment.models import RateUnit, TravelLodging
from enrichment.types import CompCandidate, PdfHint

AMOUNT = r"\$\s?(\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)"
AMOUNT_PATTERN = re.compile(AMOUNT)
RANGE_PATTERN = re.compile(rf"{AMOUNT}\s*(?:-|–|—|to)\s*\$?\s?(\d{{1,3}}(?:,\d{{3}})+(?:\.\d{{1,2}})?|\d+(?:\.\d{{1,2}})?)")

DIVISION_PATTERN = re.compile(r"\b(u\d{2}|varsity|jv|final|semi|center|ar)\b", re.IGNORECASE)

UNIT_PATTERNS = [
    (RateUnit.PER_GAME, re.compile(r"per\s+(?:game|match)|/\s*(?:game|match)\b")),
    (RateUnit.PER_DAY, re.compile(r"per\s+day|/\s*day\b")),
    (RateUnit.PER_HOUR, re.compile(r"per\s+hour|/\s*(?:hour|hr)\b")),
    (RateUnit.FLAT, re.compile(r"\bflat\b")),
]

PLATFORM_PATTERN = re.compile(
    r"\b(" + "|".join(sorted(ASSIGNING_PLATFORMS, key=len, reverse=True)) + r")\b"
)

EVIDENCE_LIMIT = 400
RATE_TEXT_LIMIT = 300


def _amount(raw: str) -> Optional[Decimal]:
    try:
        return Decimal(raw.replace(",", ""))
    except InvalidOperation:
        return None


def parse_amounts(line: str) -> Tuple[Optional[Decimal], Optional[Decimal]]:
    """First dollar amount, and the upper end when written as a $X - $Y range."""
    match = RANGE_PATTERN.search(line)
    if match:
        low, high = _amount(match.group(1)), _amount(match.group(2))
        if low is not None and high is not None and high >= low:
            return low, high
    match = AMOUNT_PATTERN.search(line)
    if not match:
        return None, None
    value = _amount(match.group(1))
    return value, value


def parse_rate_unit(line: str) -> Optional[str]:
    lower = line.lower()
    for unit, pattern in UNIT_PATTERNS:
        if pattern.search(lower):
            return unit.value
    return None


def parse_division(line: str) -> Optional[str]:
    """All division/position tokens in the line, e.g. "U12, U14, Center, AR"."""
    tokens = []
    for match in DIVISION_PATTERN.finditer(line):
        token = match.group(1)
        if token.lower() not in (t.lower() for t in tokens):
            tokens.append(token)
    return ", ".join(tokens) if tokens else None


def classify_travel(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    lower = text.lower()
    if contains_any(lower, ["hotel", "lodging", "accommodation", "housing"]):
        return TravelLodging.HOTEL.value
    if contains_any(lower, ["stipend", "per diem", "reimbursement", "mileage", "travel", "meals", "airfare"]):
        return TravelLodging.STIPEND.value
    return None


def extract_comp(doc: PageDocument) -> List[CompCandidate]:
    """
    Find referee pay and travel lines.

    Lines whose context mentions team or registration fees are skipped
    unless the same context also mentions referees.
    """
    lines = doc.lines
    url_has_referee_context = contains_any(doc.url.lower(), REFEREE_CONTEXT_KEYWORDS)
    comps: List[CompCandidate] = []

    for idx, line in enumerate(lines):
        lower = line.lower()
        has_dollar = bool(AMOUNT_PATTERN.search(line))
        has_travel = contains_any(lower, TRAVEL_KEYWORDS)
        if not (has_dollar or has_travel):
            continue

        window = lines[max(idx - 1, 0):idx + 2]
        window_lower = " ".join(window).lower()
        referee_context = url_has_referee_context or contains_any(window_lower, REFEREE_CONTEXT_KEYWORDS)
        if contains_any(window_lower, FEE_NEGATIVE_KEYWORDS) and not referee_context:
            continue

        amount_min, amount_max = parse_amounts(line)
        rate_unit = parse_rate_unit(line)
        division = parse_division(line)
        travel_line = next((l for l in window if contains_any(l.lower(), TRAVEL_KEYWORDS)), None)
        platforms = list(dict.fromkeys(PLATFORM_PATTERN.findall(lower)))

        comps.append(
            CompCandidate(
                rate_text=line[:RATE_TEXT_LIMIT],
                rate_amount_min=amount_min,
                rate_amount_max=amount_max,
                rate_unit=rate_unit,
                division_context=division,
                travel_lodging=classify_travel(travel_line),
                travel_housing_text=travel_line[:RATE_TEXT_LIMIT] if travel_line else None,
                assigning_platforms=platforms,
                source_url=doc.url,
                evidence_text=" | ".join(window)[:EVIDENCE_LIMIT],
                confidence=score_comp(
                    has_amount=amount_min is not None,
                    has_unit=rate_unit is not None,
                    has_division=division is not None,
                    has_rate_keyword=contains_any(lower, RATE_KEYWORDS),
                ),
            )
        )

    return comps


def extract_pdf_hints(doc: PageDocument) -> List[PdfHint]:
    """PDF links labelled for referees or officials. The PDFs are not opened."""
    hints = []
    seen = set()
    for link in doc.links:
        path = link.url.lower().split("?", 1)[0].split("#", 1)[0]
        if not path.endswith(".pdf"):
            continue
        text = link.text.lower()
        if "referee" not in text and "official" not in text:
            continue
        if link.url in seen:
            continue
        seen.add(link.url)
        hints.append(PdfHint(url=link.url, link_text=link.text, source_url=doc.url))
    return hints
