"""
Data types passed between the fetch, extraction, crawl and review stages.

Extraction results are plain dataclasses. They carry no tournament reference;
the candidate store tags them with the tournament and job when it persists
them.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional


@dataclass
class ContactCandidate:
    """A person (or mailbox) found on a page, with the role it appears under."""

    role: Optional[str] = None  # TD | ASSIGNOR | GENERAL | None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    source_url: str = ""
    evidence_text: str = ""
    confidence: float = 0.0


@dataclass
class VenueCandidate:
    """A venue block or a maps/directions link."""

    venue_name: Optional[str] = None
    address_text: Optional[str] = None
    venue_url: Optional[str] = None
    source_url: str = ""
    evidence_text: str = ""
    confidence: float = 0.0


@dataclass
class CompCandidate:
    """A referee pay line, optionally with travel/lodging context."""

    rate_text: Optional[str] = None
    rate_amount_min: Optional[Decimal] = None
    rate_amount_max: Optional[Decimal] = None
    rate_unit: Optional[str] = None  # per_game | per_day | per_hour | flat
    division_context: Optional[str] = None
    travel_lodging: Optional[str] = None  # hotel | stipend
    travel_housing_text: Optional[str] = None
    assigning_platforms: List[str] = field(default_factory=list)
    source_url: str = ""
    evidence_text: str = ""
    confidence: float = 0.0


@dataclass
class DateCandidate:
    """An event date or range as written on the page."""

    date_text: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    source_url: str = ""
    evidence_text: str = ""
    confidence: float = 0.0


@dataclass
class AttributeCandidate:
    """A keyed on-site attribute, e.g. referee_tents=yes."""

    attribute_key: str = ""
    attribute_value: str = ""
    source_url: str = ""
    evidence_text: str = ""
    confidence: float = 0.0


@dataclass
class PdfHint:
    """
    A linked PDF that probably holds referee rates.

    PDFs are never downloaded; the link itself is surfaced for review.
    """

    url: str
    link_text: str = ""
    source_url: str = ""
    evidence_text: str = "PDF linked: likely referee rates/travel info"
    confidence: float = 0.3

    def to_comp_candidate(self) -> CompCandidate:
        """Represent the hint as a comp candidate whose source is the PDF itself."""
        return CompCandidate(
            source_url=self.url,
            evidence_text=self.evidence_text,
            confidence=self.confidence,
        )


@dataclass
class PageResult:
    """Everything extracted from a single page."""

    contacts: List[ContactCandidate] = field(default_factory=list)
    venues: List[VenueCandidate] = field(default_factory=list)
    comps: List[CompCandidate] = field(default_factory=list)
    dates: List[DateCandidate] = field(default_factory=list)
    attributes: List[AttributeCandidate] = field(default_factory=list)
    pdf_hints: List[PdfHint] = field(default_factory=list)


@dataclass
class ScrapeResult:
    """
    Union of the facts found across one crawl of a tournament site.

    PDF hints are already folded into ``comps``. No cross-page dedup happens
    here; the candidate store drops exact duplicates when persisting.
    """

    seed_url: str
    pages_fetched: int = 0
    fetched_urls: List[str] = field(default_factory=list)
    contacts: List[ContactCandidate] = field(default_factory=list)
    venues: List[VenueCandidate] = field(default_factory=list)
    comps: List[CompCandidate] = field(default_factory=list)
    dates: List[DateCandidate] = field(default_factory=list)
    attributes: List[AttributeCandidate] = field(default_factory=list)

    def add_page(self, page: PageResult) -> None:
        self.contacts.extend(page.contacts)
        self.venues.extend(page.venues)
        self.comps.extend(page.comps)
        self.comps.extend(hint.to_comp_candidate() for hint in page.pdf_hints)
        self.dates.extend(page.dates)
        self.attributes.extend(page.attributes)

    def counts(self) -> Dict[str, int]:
        return {
            "contact": len(self.contacts),
            "venue": len(self.venues),
            "comp": len(self.comps),
            "date": len(self.dates),
            "attribute": len(self.attributes),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for JSON serialization."""
        return {
            "seed_url": self.seed_url,
            "pages_fetched": self.pages_fetched,
            "fetched_urls": self.fetched_urls,
            "counts": self.counts(),
        }


@dataclass
class ReviewGroup:
    """
    Pending candidates of one kind that say the same thing.

    Derived on demand from the pending candidate rows; never stored.
    """

    kind: str
    tournament_id: Any
    signature: str
    label: str
    detail: str
    candidate_ids: List[Any] = field(default_factory=list)
    confidence: Optional[float] = None
    source_url: str = ""

    @property
    def count(self) -> int:
        return len(self.candidate_ids)

    def to_dict(self) -> Dict[str, Any]:
        """Convert group to dictionary for JSON serialization."""
        return {
            "kind": self.kind,
            "tournament_id": str(self.tournament_id),
            "signature": self.signature,
            "label": self.label,
            "detail": self.detail,
            "candidate_ids": [str(cid) for cid in self.candidate_ids],
            "confidence": self.confidence,
            "source_url": self.source_url,
            "count": self.count,
        }
