"""
Confidence scoring for extracted candidates.

Each candidate kind has one scoring function so the weights can be tested
independently of the pattern matching that feeds them.
"""

from typing import Optional

# Contact weights
CONTACT_BASE = 0.4
CONTACT_WINDOW_ROLE_BOOST = 0.3
CONTACT_PAGE_ROLE_BOOST = 0.2
CONTACT_NAME_BOOST = 0.2
CONTACT_FALLBACK_CONFIDENCE = 0.5
DIRECTOR_PROMOTION_FLOOR = 0.7

# Venue weights
VENUE_BASE = 0.1
VENUE_KEYWORD_BOOST = 0.3
VENUE_ADDRESS_BOOST = 0.4
VENUE_LINK_CONFIDENCE = 0.5

# Compensation weights
COMP_AMOUNT_WEIGHT = 0.4
COMP_UNIT_WEIGHT = 0.2
COMP_DIVISION_WEIGHT = 0.2
COMP_KEYWORD_WEIGHT = 0.1
COMP_FLOOR = 0.3
PDF_HINT_CONFIDENCE = 0.3

# Date weights
DATE_PARSED_CONFIDENCE = 0.6
DATE_TEXT_ONLY_CONFIDENCE = 0.3

# Where a contact's role was found
ROLE_SOURCE_WINDOW = "window"
ROLE_SOURCE_PAGE = "page"


def _cap(value: float) -> float:
    return round(min(1.0, value), 2)


def score_contact(role_source: Optional[str], has_name: bool) -> float:
    """
    Score a contact hit.

    Args:
        role_source: "window" when the role keyword sat next to the hit,
            "page" when only the whole-page fallback matched, None otherwise
        has_name: Whether a person name was found near the hit

    Returns:
        Confidence in [0.4, 1.0]
    """
    score = CONTACT_BASE
    if role_source == ROLE_SOURCE_WINDOW:
        score += CONTACT_WINDOW_ROLE_BOOST
    elif role_source == ROLE_SOURCE_PAGE:
        score += CONTACT_PAGE_ROLE_BOOST
    if has_name:
        score += CONTACT_NAME_BOOST
    return _cap(score)


def score_venue(has_keyword: bool, has_address: bool) -> float:
    score = VENUE_BASE
    if has_keyword:
        score += VENUE_KEYWORD_BOOST
    if has_address:
        score += VENUE_ADDRESS_BOOST
    return _cap(score)


def score_comp(has_amount: bool, has_unit: bool, has_division: bool, has_rate_keyword: bool) -> float:
    """Additive compensation score, floored at 0.3 for lines that qualified at all."""
    score = 0.0
    if has_amount:
        score += COMP_AMOUNT_WEIGHT
    if has_unit:
        score += COMP_UNIT_WEIGHT
    if has_division:
        score += COMP_DIVISION_WEIGHT
    if has_rate_keyword:
        score += COMP_KEYWORD_WEIGHT
    return _cap(max(score, COMP_FLOOR))


def score_date(has_start_date: bool) -> float:
    return DATE_PARSED_CONFIDENCE if has_start_date else DATE_TEXT_ONLY_CONFIDENCE
