"""
Email and phone discovery.

Emails are found by an ordered list of named strategies. Each strategy
reports hits with their position in the page's flat text; a position claimed
by an earlier strategy is never re-read by a later one, so an address written
as ``<a href="mailto:x@y.org">x@y.org</a>`` yields one hit, not two.

Strategies, in priority order:
    mailto       href="mailto:..." anchors
    cloudflare   data-cfemail / email-protection tokens (decoded by PageDocument)
    plain        user@domain.tld
    bracketed    user [at] domain [dot] tld, user (at) domain (dot) tld
    spelled_out  user at domain dot tld
"""

import html
import re
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple
from urllib.parse import unquote

from enrichment.extraction.document import PageDocument

# Local parts that are really JS globals or analytics tokens
SCRIPT_LOCAL_MARKERS = ["datalayer", "gtag", "monsterinsights", "window", "navigator"]

# File extensions that show up as fake TLDs (logo@2x.png, bundle@1.2.js)
ASSET_TLDS = {
    "png", "jpg", "jpeg", "gif", "svg", "webp", "css", "js", "json", "pdf",
    "woff", "woff2", "ttf", "eot", "map", "ico",
}

# Site-builder and error-tracker hosts that leak addresses into markup
BLOCKED_EMAIL_DOMAINS = [
    "sentry.io",
    "wixpress.com",
    "wix.com",
    "wixstatic.com",
    "parastorage.com",
    "wixsite.com",
]

NOREPLY_LOCALS = {"noreply", "no-reply", "donotreply", "do-not-reply", "mailer-daemon"}

# TLDs accepted from the bare-word form and the fallback scan
COMMON_TLDS = {
    "com", "org", "net", "edu", "gov", "us", "co", "io",
    "ai", "club", "sports", "soccer", "info",
}

LOCAL = r"[a-z0-9._%+-]+"
LABEL = r"[a-z0-9](?:[a-z0-9-]*[a-z0-9])?"

PLAIN_EMAIL = re.compile(rf"(?<![a-z0-9._%+-])({LOCAL})@({LABEL}(?:\.{LABEL})+)", re.IGNORECASE)

AT_TOKEN = r"\s*[\[\(\{]\s*at\s*[\]\)\}]\s*"
DOT_TOKEN = r"\s*[\[\(\{]\s*dot\s*[\]\)\}]\s*"
BRACKETED_EMAIL = re.compile(
    rf"(?<![a-z0-9._%+-])({LOCAL}){AT_TOKEN}({LABEL}(?:(?:{DOT_TOKEN}|\.){LABEL})+)",
    re.IGNORECASE,
)
SPELLED_OUT_EMAIL = re.compile(
    rf"(?<![a-z0-9._%+-])({LOCAL})\s+at\s+({LABEL}(?:\s+dot\s+{LABEL})+)\b",
    re.IGNORECASE,
)
DOT_SEPARATOR = re.compile(rf"{DOT_TOKEN}|\s+dot\s+", re.IGNORECASE)

# Looser pattern for the fallback scan over raw markup; "at" must be an
# explicit marker, never the bare word
LOOSE_EMAIL = re.compile(
    rf"({LOCAL})\s*(?:@|\[\s*at\s*\]|\(\s*at\s*\))\s*({LABEL})"
    r"\s*(?:\.|\[\s*dot\s*\]|\(\s*dot\s*\))\s*([a-z]{2,6})\b",
    re.IGNORECASE,
)
TAG = re.compile(r"<[^>]+>")

PHONE = re.compile(
    r"(?<![\d])(?:\+?1[\s.-]?)?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}(?![\d])"
)


@dataclass
class EmailHit:
    """An email found on the page, positioned in ``PageDocument.flat_text``."""

    email: str
    start: int
    end: int
    strategy: str

    @property
    def located(self) -> bool:
        return self.start >= 0


@dataclass
class PhoneHit:
    phone: str
    start: int
    end: int


def normalize_email(raw: str) -> str:
    """Canonical lowercase form: no mailto query, no trailing punctuation, no spaces."""
    email = unquote(raw).split("?", 1)[0]
    email = re.sub(r"\s+", "", email)
    return email.strip(".,;:)(<>[]\"'").lower()


def is_valid_email(email: str) -> bool:
    """Heuristic filter for strings that only look like addresses."""
    local, _, domain = email.rpartition("@")
    if len(local) < 2 or not domain:
        return False
    if local.startswith("__") or any(marker in local for marker in SCRIPT_LOCAL_MARKERS):
        return False
    if local in NOREPLY_LOCALS:
        return False
    if "." not in domain:
        return False
    labels = domain.split(".")
    if any(len(label) < 2 for label in labels):
        return False
    tld = labels[-1]
    if not 2 <= len(tld) <= 6 or not tld.isalpha():
        return False
    if tld in ASSET_TLDS:
        return False
    if any(domain == blocked or domain.endswith(f".{blocked}") for blocked in BLOCKED_EMAIL_DOMAINS):
        return False
    return True


def normalize_phone(raw: str) -> str:
    """Digits only, US country code dropped."""
    digits = re.sub(r"\D", "", raw)
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    return digits


def _locate(doc: PageDocument, needle: str) -> Tuple[int, int]:
    if not needle:
        return -1, -1
    index = doc.lower_text.find(needle.lower())
    if index < 0:
        return -1, -1
    return index, index + len(needle)


def _mailto_hits(doc: PageDocument) -> Iterator[EmailHit]:
    for link in doc.links:
        if not link.href.lower().startswith("mailto:"):
            continue
        email = normalize_email(link.href[len("mailto:"):])
        start, end = _locate(doc, email)
        if start < 0:
            start, end = _locate(doc, link.text)
        yield EmailHit(email, start, end, "mailto")


def _cloudflare_hits(doc: PageDocument) -> Iterator[EmailHit]:
    for decoded in doc.cf_emails:
        email = normalize_email(decoded)
        start, end = _locate(doc, email)
        yield EmailHit(email, start, end, "cloudflare")


def _plain_hits(doc: PageDocument) -> Iterator[EmailHit]:
    for match in PLAIN_EMAIL.finditer(doc.flat_text):
        email = normalize_email(f"{match.group(1)}@{match.group(2)}")
        yield EmailHit(email, match.start(), match.end(), "plain")


def _bracketed_hits(doc: PageDocument) -> Iterator[EmailHit]:
    for match in BRACKETED_EMAIL.finditer(doc.flat_text):
        domain = DOT_SEPARATOR.sub(".", match.group(2))
        email = normalize_email(f"{match.group(1)}@{domain}")
        yield EmailHit(email, match.start(), match.end(), "bracketed")


def _spelled_out_hits(doc: PageDocument) -> Iterator[EmailHit]:
    for match in SPELLED_OUT_EMAIL.finditer(doc.flat_text):
        domain = DOT_SEPARATOR.sub(".", match.group(2))
        if domain.rsplit(".", 1)[-1].lower() not in COMMON_TLDS:
            continue
        email = normalize_email(f"{match.group(1)}@{domain}")
        yield EmailHit(email, match.start(), match.end(), "spelled_out")


EMAIL_STRATEGIES: List[Tuple[str, Callable[[PageDocument], Iterator[EmailHit]]]] = [
    ("mailto", _mailto_hits),
    ("cloudflare", _cloudflare_hits),
    ("plain", _plain_hits),
    ("bracketed", _bracketed_hits),
    ("spelled_out", _spelled_out_hits),
]


def find_emails(doc: PageDocument) -> List[EmailHit]:
    """
    Run every strategy in priority order.

    A hit overlapping a span already claimed by an earlier hit is skipped.
    Unpositioned hits (e.g. a mailto whose address is not visible) are kept
    once per address.

    Returns:
        Valid hits ordered by position in the page, unpositioned ones last
    """
    claimed: List[Tuple[int, int]] = []
    unpositioned = set()
    hits: List[EmailHit] = []

    for _name, strategy in EMAIL_STRATEGIES:
        for hit in strategy(doc):
            if hit.located:
                if any(hit.start < end and start < hit.end for start, end in claimed):
                    continue
                claimed.append((hit.start, hit.end))
            elif hit.email in unpositioned:
                continue
            else:
                unpositioned.add(hit.email)

            if is_valid_email(hit.email):
                hits.append(hit)

    hits.sort(key=lambda h: (not h.located, h.start))
    return hits


def find_phones(doc: PageDocument) -> List[PhoneHit]:
    """tel: hrefs first, then phone-shaped text; one hit per position."""
    hits: List[PhoneHit] = []
    claimed: List[Tuple[int, int]] = []

    for link in doc.links:
        if not link.href.lower().startswith("tel:"):
            continue
        phone = normalize_phone(link.href[len("tel:"):])
        if len(phone) != 10:
            continue
        start, end = _locate(doc, link.text)
        if start >= 0:
            claimed.append((start, end))
        hits.append(PhoneHit(phone, start, end))

    for match in PHONE.finditer(doc.flat_text):
        if any(match.start() < end and start < match.end() for start, end in claimed):
            continue
        hits.append(PhoneHit(normalize_phone(match.group(0)), match.start(), match.end()))

    return hits


def find_loose_email(doc: PageDocument) -> Optional[Tuple[str, str]]:
    """
    Last-resort scan over the markup with tags stripped.

    Catches addresses split across inline tags or written with spaced
    separators that the strategies above do not accept.

    Returns:
        (email, surrounding text) for the first plausible token, or None
    """
    text = re.sub(r"\s+", " ", html.unescape(TAG.sub("", doc.markup)))
    for match in LOOSE_EMAIL.finditer(text):
        email = normalize_email(f"{match.group(1)}@{match.group(2)}.{match.group(3)}")
        if match.group(3).lower() in COMMON_TLDS and is_valid_email(email):
            snippet = text[max(0, match.start() - 120):match.end() + 120].strip()
            return email, snippet
    return None
