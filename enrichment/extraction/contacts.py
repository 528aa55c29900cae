"""
Contact extraction.

Each email or phone hit becomes a contact. Role and name are read from the
text immediately around the hit; the leading side is bounded by the previous
email and the trailing side by the next one so a label belonging to a
neighbouring contact is not borrowed.

Role lookup order:
    1. text leading up to the hit (and the address's own local part)
    2. text following the hit
    3. the whole page
    4. contact-page URL or "contact us" wording -> GENERAL
Within each step assignor cues win over director cues.
"""

import re
from typing import List, Optional, Tuple
from urllib.parse import urlparse

from enrichment.extraction.document import PageDocument
from enrichment.extraction.emails import (
    EmailHit,
    find_emails,
    find_loose_email,
    find_phones,
)
from enrichment.extraction.keywords import ASSIGNOR_CUES, DIRECTOR_CUES
from enrichment.extraction.scoring import (
    CONTACT_FALLBACK_CONFIDENCE,
    DIRECTOR_PROMOTION_FLOOR,
    ROLE_SOURCE_PAGE,
    ROLE_SOURCE_WINDOW,
    score_contact,
)
from enrichment.models import ContactRole
from enrichment.types import ContactCandidate

WINDOW = 120
EVIDENCE_LIMIT = 300

NAME_PAIR = re.compile(r"(?=\b([A-Z][a-z]+(?:[-'][A-Z][a-z]+)?) ([A-Z][a-z]+(?:[-'][A-Z][a-z]+)?)\b)")

# Capitalised words that are labels, not people
NAME_STOP_WORDS = {
    "Tournament", "Director", "Event", "Referee", "Referees", "Assignor",
    "Coordinator", "Officials", "Official", "Email", "E-mail", "Phone", "Cell",
    "Contact", "Contacts", "Us", "Info", "Information", "The", "For", "Questions",
    "Please", "Call", "Text", "Fax", "Mail", "Website", "Field", "Fields", "Park",
    "Complex", "Registration", "Soccer", "Club", "Cup", "Classic", "Showcase",
    "Tel", "Office", "Head", "Assistant", "Scheduler", "Administrator", "Team",
    "League", "Youth", "Sports", "Dates", "Location", "Venue", "Home", "About",
}

ROLE_PATTERNS = [
    (ContactRole.ASSIGNOR, re.compile("|".join(rf"\b{re.escape(c)}\b" for c in ASSIGNOR_CUES))),
    (ContactRole.TD, re.compile("|".join(rf"\b{re.escape(c)}\b" for c in DIRECTOR_CUES))),
]

CONTACT_PAGE_CUES = ("contact us", "contact information", "contact info")


def role_in(text: str) -> Optional[str]:
    """Most specific role cue in lowercased text, assignor first."""
    for role, pattern in ROLE_PATTERNS:
        if pattern.search(text):
            return role.value
    return None


def _is_contact_page(doc: PageDocument) -> bool:
    path = urlparse(doc.url).path.lower()
    return "contact" in path or any(cue in doc.lower_text for cue in CONTACT_PAGE_CUES)


def _find_name(leading: str, trailing: str) -> Optional[str]:
    """Capitalised name pair closest before the hit, else the first one after it."""
    before = [
        f"{m.group(1)} {m.group(2)}"
        for m in NAME_PAIR.finditer(leading)
        if m.group(1) not in NAME_STOP_WORDS and m.group(2) not in NAME_STOP_WORDS
    ]
    if before:
        return before[-1]
    for match in NAME_PAIR.finditer(trailing):
        if match.group(1) not in NAME_STOP_WORDS and match.group(2) not in NAME_STOP_WORDS:
            return f"{match.group(1)} {match.group(2)}"
    return None


class _HitContext:
    """Text segments around one hit."""

    def __init__(self, text: str, start: int, end: int, prev_end: int, next_start: int):
        self.leading = text[max(start - WINDOW, prev_end, 0):start]
        self.trailing = text[end:min(end + WINDOW, next_start)]
        self.evidence = text[max(start - WINDOW, 0):end + WINDOW].strip()[:EVIDENCE_LIMIT]


def _classify(doc: PageDocument, ctx: Optional[_HitContext], email: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Returns (role, role_source)."""
    if ctx is not None:
        local = (email or "").split("@")[0]
        if "assignor" in local:
            return ContactRole.ASSIGNOR.value, ROLE_SOURCE_WINDOW
        for segment in (ctx.leading, ctx.trailing):
            role = role_in(segment.lower())
            if role:
                return role, ROLE_SOURCE_WINDOW
    elif email and "assignor" in email.split("@")[0]:
        return ContactRole.ASSIGNOR.value, ROLE_SOURCE_WINDOW

    role = role_in(doc.lower_text)
    if role:
        return role, ROLE_SOURCE_PAGE
    if _is_contact_page(doc):
        return ContactRole.GENERAL.value, ROLE_SOURCE_PAGE
    return None, None


def _build_contact(
    doc: PageDocument,
    start: int,
    end: int,
    bounds: Tuple[int, int],
    email: Optional[str] = None,
    phone: Optional[str] = None,
) -> ContactCandidate:
    ctx = None
    name = None
    evidence = ""
    if start >= 0:
        ctx = _HitContext(doc.flat_text, start, end, *bounds)
        name = _find_name(ctx.leading, ctx.trailing)
        evidence = ctx.evidence
    role, role_source = _classify(doc, ctx, email)
    return ContactCandidate(
        role=role,
        name=name,
        email=email,
        phone=phone,
        source_url=doc.url,
        evidence_text=evidence or (email or phone or ""),
        confidence=score_contact(role_source, bool(name)),
    )


def _same_contact(a: ContactCandidate, b: ContactCandidate) -> bool:
    if a.email and b.email:
        return a.email == b.email
    return bool(a.phone and b.phone and a.phone == b.phone)


def merge_contacts(candidates: List[ContactCandidate]) -> List[ContactCandidate]:
    """Collapse candidates sharing an email or phone, filling gaps and keeping max confidence."""
    merged: List[ContactCandidate] = []
    for candidate in candidates:
        existing = next((c for c in merged if _same_contact(c, candidate)), None)
        if existing is None:
            merged.append(candidate)
            continue
        existing.name = existing.name or candidate.name
        existing.role = existing.role or candidate.role
        existing.email = existing.email or candidate.email
        existing.phone = existing.phone or candidate.phone
        existing.confidence = max(existing.confidence, candidate.confidence)
    return merged


def _attach_nearby_phones(email_hits: List[EmailHit], phone_hits) -> dict:
    """Map email hit index -> the phone hit whose closest email it is, within the window."""
    attached = {}
    for phone in phone_hits:
        if phone.start < 0:
            continue
        best = None
        for i, hit in enumerate(email_hits):
            if not hit.located:
                continue
            distance = min(abs(phone.start - hit.end), abs(hit.start - phone.end))
            if distance <= WINDOW and (best is None or distance < best[0]):
                best = (distance, i)
        if best and best[1] not in attached:
            attached[best[1]] = phone.phone
    return attached


def extract_contacts(doc: PageDocument) -> List[ContactCandidate]:
    """
    Find contact people on a page.

    Args:
        doc: Parsed page

    Returns:
        Merged contacts, in page order
    """
    email_hits = find_emails(doc)
    phone_hits = find_phones(doc)

    # Windows are bounded by neighbouring email hits only; a phone usually
    # belongs to the same person as the label before it.
    positions = sorted((h.start, h.end) for h in email_hits if h.located)

    def bounds_for(start: int, end: int) -> Tuple[int, int]:
        prev_end = max((e for s, e in positions if e <= start), default=0)
        next_start = min((s for s, e in positions if s >= end), default=len(doc.flat_text))
        return prev_end, next_start

    phones_for_email = _attach_nearby_phones(email_hits, phone_hits)
    candidates = []
    for i, hit in enumerate(email_hits):
        candidates.append(
            _build_contact(
                doc, hit.start, hit.end, bounds_for(hit.start, hit.end),
                email=hit.email, phone=phones_for_email.get(i),
            )
        )
    for hit in phone_hits:
        bounds = bounds_for(hit.start, hit.end) if hit.start >= 0 else (0, 0)
        candidates.append(_build_contact(doc, hit.start, hit.end, bounds, phone=hit.phone))

    contacts = merge_contacts(candidates)

    if not email_hits:
        loose = find_loose_email(doc)
        if loose:
            email, snippet = loose
            contacts = merge_contacts(
                contacts
                + [
                    ContactCandidate(
                        role=ContactRole.GENERAL.value,
                        email=email,
                        source_url=doc.url,
                        evidence_text=snippet[:EVIDENCE_LIMIT],
                        confidence=CONTACT_FALLBACK_CONFIDENCE,
                    )
                ]
            )

    _promote_director(contacts, doc.lower_text)
    return contacts


def _promote_director(contacts: List[ContactCandidate], lower_text: str) -> None:
    """Tag the first non-assignor email contact as TD when the page names a director but nobody got the role."""
    if "tournament director" not in lower_text:
        return
    if any(c.role == ContactRole.TD.value for c in contacts):
        return
    for contact in contacts:
        if contact.email and contact.role != ContactRole.ASSIGNOR.value:
            contact.role = ContactRole.TD.value
            contact.confidence = max(contact.confidence, DIRECTOR_PROMOTION_FLOOR)
            return
