"""
Attribute extraction: keyword-triggered snippets for the fixed attribute vocabulary.
"""

import re
from typing import List

from enrichment.extraction.comp import classify_travel
from enrichment.extraction.document import PageDocument
from enrichment.extraction.keywords import REFEREE_CONTEXT_KEYWORDS, TRAVEL_KEYWORDS, contains_any
from enrichment.models import AttributeKey
from enrichment.types import AttributeCandidate

EVIDENCE_LIMIT = 300


def _has(pattern: str, text: str) -> bool:
    return re.search(pattern, text) is not None


def extract_attributes(doc: PageDocument) -> List[AttributeCandidate]:
    """
    Scan each text line for on-site attribute cues.

    Food and travel cues only count near referee wording (or on a
    referee-specific URL) since the same words appear in team hotel and
    concession notices.
    """
    lines = doc.lines
    url_has_referee_context = contains_any(doc.url.lower(), REFEREE_CONTEXT_KEYWORDS)
    found: List[AttributeCandidate] = []

    def push(key: AttributeKey, value: str, line: str, confidence: float = 0.6):
        found.append(
            AttributeCandidate(
                attribute_key=key.value,
                attribute_value=value,
                source_url=doc.url,
                evidence_text=line[:EVIDENCE_LIMIT],
                confidence=confidence,
            )
        )

    for idx, line in enumerate(lines):
        lower = line.lower()
        window_lower = " ".join(lines[max(idx - 1, 0):idx + 2]).lower()
        referee_context = url_has_referee_context or contains_any(window_lower, REFEREE_CONTEXT_KEYWORDS)

        if "cash" in lower and _has(r"\bfield\b|on[\s-]?site", lower):
            push(AttributeKey.CASH_AT_FIELD, "yes", line, 0.7)

        if referee_context:
            if "snack" in lower:
                push(AttributeKey.REFEREE_FOOD, "snacks", line)
            elif _has(r"\b(meal|meals|lunch|dinner|breakfast)\b", lower):
                push(AttributeKey.REFEREE_FOOD, "meal", line)

        if _has(r"\b(restroom|restrooms|bathroom|bathrooms)\b", lower):
            push(AttributeKey.FACILITIES, "restrooms", line)
        elif _has(r"\b(portable toilets?|porta[\s-]?(potty|potties|john|johns))\b", lower):
            push(AttributeKey.FACILITIES, "portables", line)

        if _has(r"\b(referee|ref|officials) tents?\b", lower):
            negated = _has(r"\bno (referee|ref|officials) tents?\b", lower)
            push(AttributeKey.REFEREE_TENTS, "no" if negated else "yes", line, 0.7)

        if referee_context and contains_any(lower, TRAVEL_KEYWORDS):
            travel = classify_travel(line)
            if travel:
                push(AttributeKey.TRAVEL_LODGING, travel, line)

        if "schedule" in lower:
            for phrase in ("too close", "just right", "too much down time"):
                if phrase in lower:
                    push(AttributeKey.REF_GAME_SCHEDULE, phrase, line)
                    break

        if "parking" in lower:
            if _has(r"\bfree\b", lower):
                push(AttributeKey.REF_PARKING_COST, "free", line)
            elif _has(r"\bpaid\b|parking fee|\$\s?\d", lower):
                push(AttributeKey.REF_PARKING_COST, "paid", line)

            if _has(r"\b(close|adjacent|near|nearby|next to)\b", lower):
                push(AttributeKey.REF_PARKING, "close", line)
            elif _has(r"\bstroll\b|short walk", lower):
                push(AttributeKey.REF_PARKING, "a stroll", line)
            elif _has(r"\bhike\b|long walk|\bfar\b", lower):
                push(AttributeKey.REF_PARKING, "a hike", line)

        if "mentor" in lower:
            negated = _has(r"\bno mentors?\b|without mentors?", lower)
            push(AttributeKey.MENTORS, "no" if negated else "yes", line)

        if "assigned appropriately" in lower or "appropriate assignments" in lower:
            negated = "not assigned appropriately" in lower or "inappropriate" in lower
            push(AttributeKey.ASSIGNED_APPROPRIATELY, "no" if negated else "yes", line)

    return found
