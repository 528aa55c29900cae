"""
Event date extraction.

Recognised forms:
    March 14-16, 2026      Mar 14 – 16 2026      Sept 30 - Oct 2, 2026
    March 14, 2026         March 14              (no year: text only)
    02/20/2026             02/20/2026 - 02/22/2026
"""

import re
from datetime import date
from typing import List, Optional, Tuple

from enrichment.extraction.document import PageDocument
from enrichment.extraction.scoring import score_date
from enrichment.types import DateCandidate

MONTHS = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

MONTH = r"(" + "|".join(sorted(MONTHS, key=len, reverse=True)) + r")\.?"
RANGE_SEP = r"\s*(?:-|–|—|to|through|thru)\s*"

MONTH_DATE = re.compile(
    rf"\b{MONTH}\s+(\d{{1,2}})(?:st|nd|rd|th)?"
    rf"(?:{RANGE_SEP}(?:{MONTH}\s+)?(\d{{1,2}})(?:st|nd|rd|th)?)?"
    r"(?:,?\s*(\d{4}))?\b",
    re.IGNORECASE,
)

NUMERIC_DATE = re.compile(
    r"(?<![\d/])(\d{1,2})/(\d{1,2})/(\d{4})"
    rf"(?:{RANGE_SEP}(\d{{1,2}})/(\d{{1,2}})/(\d{{4}}))?(?![\d/])"
)

MAX_DATES_PER_PAGE = 10
EVIDENCE_LIMIT = 400


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _month_match(match: re.Match) -> Tuple[str, Optional[date], Optional[date]]:
    start_month = MONTHS[match.group(1).lower()]
    start_day = int(match.group(2))
    end_month = MONTHS[match.group(3).lower()] if match.group(3) else start_month
    end_day = int(match.group(4)) if match.group(4) else start_day
    text = match.group(0).strip()

    if not match.group(5):
        return text, None, None

    year = int(match.group(5))
    # The trailing year belongs to the end date; Dec 30 - Jan 2, 2027 starts in 2026
    start_year = year - 1 if end_month < start_month else year
    start = _safe_date(start_year, start_month, start_day)
    end = _safe_date(year, end_month, end_day)
    if start is None or end is None or end < start:
        return text, None, None
    return text, start, end


def _numeric_match(match: re.Match) -> Tuple[str, Optional[date], Optional[date]]:
    text = match.group(0).strip()
    start = _safe_date(int(match.group(3)), int(match.group(1)), int(match.group(2)))
    if start is None:
        return text, None, None
    end = start
    if match.group(4):
        end = _safe_date(int(match.group(6)), int(match.group(4)), int(match.group(5)))
        if end is None or end < start:
            end = start
    return text, start, end


def parse_dates(line: str) -> List[Tuple[str, Optional[date], Optional[date]]]:
    """All (date_text, start, end) found in one line, in order of appearance."""
    found = []
    for match in MONTH_DATE.finditer(line):
        found.append((match.start(), _month_match(match)))
    for match in NUMERIC_DATE.finditer(line):
        found.append((match.start(), _numeric_match(match)))
    found.sort(key=lambda item: item[0])
    return [parsed for _, parsed in found]


def extract_dates(doc: PageDocument) -> List[DateCandidate]:
    """Date candidates for every date in the page text, at most ten per page."""
    dates: List[DateCandidate] = []
    seen = set()

    for line in doc.lines:
        for date_text, start, end in parse_dates(line):
            key = (start, end, date_text.lower())
            if key in seen:
                continue
            seen.add(key)
            dates.append(
                DateCandidate(
                    date_text=date_text,
                    start_date=start,
                    end_date=end,
                    source_url=doc.url,
                    evidence_text=line[:EVIDENCE_LIMIT],
                    confidence=score_date(start is not None),
                )
            )
            if len(dates) >= MAX_DATES_PER_PAGE:
                return dates

    return dates
