"""
Candidate Store & Merge.

Persists extracted facts as pending candidates, groups pending candidates
for review, and merges reviewer-selected candidates into canonical
tournament, venue and contact records.

Review grouping:
    Candidates of one kind and tournament with the same signature
    ``kind|lower(label)|lower(strip(detail))`` form one ReviewGroup. Accepting
    or rejecting any member also stamps every other pending member, so the
    same fact found on several pages is reviewed once.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from enrichment.exceptions import InvalidReviewItem, TournamentNotFound
from enrichment.models import (
    AttributeKey,
    ContactRole,
    ContactStatus,
    ContactType,
    RefereeCompCandidate,
    Tournament,
    TournamentAttributeCandidate,
    TournamentContact,
    TournamentContactCandidate,
    TournamentDateCandidate,
    TournamentVenueCandidate,
    TravelLodging,
    Venue,
)
from enrichment.types import ReviewGroup, ScrapeResult

logger = logging.getLogger(__name__)

KIND_MODELS = {
    "contact": TournamentContactCandidate,
    "venue": TournamentVenueCandidate,
    "comp": RefereeCompCandidate,
    "date": TournamentDateCandidate,
    "attribute": TournamentAttributeCandidate,
}

DEFAULT_CAPS = {"contact": 20, "venue": 10, "comp": 5, "date": 5, "attribute": 10}

CONTACT_TYPES = {
    ContactRole.TD.value: ContactType.DIRECTOR,
    ContactRole.ASSIGNOR.value: ContactType.ASSIGNOR,
}

# Order in which selected kinds are merged into the tournament
APPLY_ORDER = ["venue", "date", "comp", "attribute", "contact"]


# ============================================================
# Signatures
# ============================================================


def describe(kind: str, row) -> Tuple[str, str]:
    """(label, detail) used to build a candidate's review signature."""
    if kind == "contact":
        detail = row.email or "".join(ch for ch in (row.phone or "") if ch.isdigit()) or row.name or ""
        return row.role_normalized or ContactRole.GENERAL.value, detail
    if kind == "venue":
        return row.venue_name or "", row.address_text or row.venue_url or ""
    if kind == "comp":
        detail = row.travel_lodging or ("" if row.rate_text else row.source_url) or ""
        return row.rate_text or "", detail
    if kind == "date":
        start = row.start_date.isoformat() if row.start_date else ""
        end = row.end_date.isoformat() if row.end_date else ""
        return row.date_text or "", f"{start}/{end}"
    if kind == "attribute":
        return row.attribute_key, row.attribute_value
    raise InvalidReviewItem(f"unknown candidate kind: {kind}")


def signature(kind: str, label: str, detail: str) -> str:
    return f"{kind}|{(label or '').lower()}|{(detail or '').strip().lower()}"


# ============================================================
# Row builders
# ============================================================


def _contact_row(c) -> Dict[str, Any]:
    return {
        "role_normalized": c.role,
        "name": (c.name or None) and c.name[:255],
        "email": c.email,
        "phone": c.phone,
    }


def _venue_row(v) -> Dict[str, Any]:
    return {
        "venue_name": v.venue_name,
        "address_text": v.address_text,
        "venue_url": v.venue_url,
    }


def _comp_row(c) -> Dict[str, Any]:
    return {
        "rate_text": c.rate_text,
        "rate_amount_min": c.rate_amount_min,
        "rate_amount_max": c.rate_amount_max,
        "rate_unit": c.rate_unit,
        "division_context": (c.division_context or None) and c.division_context[:100],
        "travel_lodging": c.travel_lodging,
        "travel_housing_text": c.travel_housing_text,
        "assigning_platforms": list(c.assigning_platforms or []),
    }


def _date_row(d) -> Dict[str, Any]:
    return {
        "date_text": d.date_text,
        "start_date": d.start_date,
        "end_date": d.end_date,
    }


def _attribute_row(a) -> Dict[str, Any]:
    return {
        "attribute_key": a.attribute_key,
        "attribute_value": a.attribute_value[:255],
    }


ROW_BUILDERS = {
    "contact": ("contacts", _contact_row),
    "venue": ("venues", _venue_row),
    "comp": ("comps", _comp_row),
    "date": ("dates", _date_row),
    "attribute": ("attributes", _attribute_row),
}


def _row_key(fields: Dict[str, Any], source_url: str) -> tuple:
    return (source_url,) + tuple(
        tuple(value) if isinstance(value, list) else value
        for _, value in sorted(fields.items())
    )


class CandidateStore:
    """
    Append-only candidate persistence plus the review merge.

    Usage:
        store = CandidateStore()
        store.add_candidates(tournament, scrape_result, job=job)
        groups = store.group_pending([tournament.id])
        store.apply(tournament.id, [("contact", candidate_id)])
    """

    def __init__(self, caps: Optional[Dict[str, int]] = None):
        """
        Initialize the store.

        Args:
            caps: Per-kind limit on rows persisted per batch
                (default ENRICHMENT_CANDIDATE_CAPS)
        """
        self.caps = caps if caps is not None else getattr(
            settings, "ENRICHMENT_CANDIDATE_CAPS", DEFAULT_CAPS
        )

    # --------------------------------------------------------
    # Persistence
    # --------------------------------------------------------

    def add_candidates(self, tournament: Tournament, result: ScrapeResult, job=None) -> Dict[str, int]:
        """
        Append a crawl's candidates for a tournament.

        Exact duplicates within this batch collapse to the highest-confidence
        copy; rows from earlier batches are never touched.

        Args:
            tournament: Tournament the facts belong to
            result: Aggregated crawl result
            job: EnrichmentJob that produced them, if any

        Returns:
            Rows inserted per kind
        """
        inserted = {}
        for kind, (attr, build) in ROW_BUILDERS.items():
            unique: Dict[tuple, Any] = {}
            for item in getattr(result, attr):
                fields = build(item)
                key = _row_key(fields, item.source_url)
                existing = unique.get(key)
                if existing is None or item.confidence > existing[1].confidence:
                    unique[key] = (fields, item)

            cap = self.caps.get(kind)
            selected = list(unique.values())
            if cap is not None:
                selected = selected[:cap]

            model = KIND_MODELS[kind]
            rows = [
                model(
                    tournament=tournament,
                    job=job,
                    source_url=item.source_url or "",
                    evidence_text=item.evidence_text or "",
                    confidence=item.confidence,
                    **fields,
                )
                for fields, item in selected
            ]
            model.objects.bulk_create(rows)
            inserted[kind] = len(rows)

        logger.info(f"Stored candidates for tournament {tournament.id}: {inserted}")
        return inserted

    # --------------------------------------------------------
    # Review grouping
    # --------------------------------------------------------

    def group_pending(self, tournament_ids: Optional[Iterable] = None) -> Dict[Any, Dict[str, ReviewGroup]]:
        """
        Group pending candidates by tournament, then by signature.

        Args:
            tournament_ids: Restrict to these tournaments (default: all)

        Returns:
            {tournament_id: {signature: ReviewGroup}}
        """
        groups: Dict[Any, Dict[str, ReviewGroup]] = defaultdict(dict)

        for kind, model in KIND_MODELS.items():
            queryset = model.objects.filter(accepted_at__isnull=True, rejected_at__isnull=True)
            if tournament_ids is not None:
                queryset = queryset.filter(tournament_id__in=list(tournament_ids))

            for row in queryset.order_by("created_at", "id"):
                label, detail = describe(kind, row)
                sig = signature(kind, label, detail)
                confidence = row.confidence or 0.0
                group = groups[row.tournament_id].get(sig)
                if group is None:
                    groups[row.tournament_id][sig] = ReviewGroup(
                        kind=kind,
                        tournament_id=row.tournament_id,
                        signature=sig,
                        label=label,
                        detail=detail,
                        candidate_ids=[row.id],
                        confidence=confidence,
                        source_url=row.source_url,
                    )
                    continue
                group.candidate_ids.append(row.id)
                if confidence > (group.confidence or 0.0):
                    group.confidence = confidence
                    group.source_url = row.source_url

        return dict(groups)

    def _with_duplicates(self, tournament_id, kind: str, ids: Sequence) -> List:
        """Selected ids plus the ids of pending candidates sharing their signature."""
        groups = self.group_pending([tournament_id]).get(tournament_id, {})
        wanted = set(ids)
        expanded = set(ids)
        for group in groups.values():
            if group.kind == kind and wanted.intersection(group.candidate_ids):
                expanded.update(group.candidate_ids)
        return list(expanded)

    def _load_selection(self, items: Iterable[Tuple[str, Any]], tournament_id=None) -> Dict[str, List]:
        """Fetch selected rows per kind, validating kinds and ownership."""
        ids_by_kind: Dict[str, List] = defaultdict(list)
        for kind, candidate_id in items:
            if kind not in KIND_MODELS:
                raise InvalidReviewItem(f"unknown candidate kind: {kind}")
            ids_by_kind[kind].append(candidate_id)

        selection = {}
        for kind, ids in ids_by_kind.items():
            queryset = KIND_MODELS[kind].objects.filter(id__in=ids)
            if tournament_id is not None:
                queryset = queryset.filter(tournament_id=tournament_id)
            rows = list(queryset)
            if len(rows) != len(set(ids)):
                raise InvalidReviewItem(f"{kind} candidates not found for this tournament")
            selection[kind] = rows
        return selection

    def _stamp(self, selection: Dict[str, List], field: str) -> int:
        now = timezone.now()
        stamped = 0
        for kind, rows in selection.items():
            by_tournament: Dict[Any, List] = defaultdict(list)
            for row in rows:
                by_tournament[row.tournament_id].append(row.id)
            for tournament_id, ids in by_tournament.items():
                all_ids = self._with_duplicates(tournament_id, kind, ids)
                stamped += KIND_MODELS[kind].objects.filter(
                    id__in=all_ids, accepted_at__isnull=True, rejected_at__isnull=True
                ).update(**{field: now})
        return stamped

    # --------------------------------------------------------
    # Apply / reject
    # --------------------------------------------------------

    def apply(self, tournament_id, items: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
        """
        Merge selected candidates into the canonical tournament record.

        Args:
            tournament_id: Tournament the candidates belong to
            items: (kind, candidate_id) pairs picked by a reviewer

        Returns:
            Dict with updated tournament fields and counts

        Raises:
            TournamentNotFound: Unknown tournament
            InvalidReviewItem: Unknown kind, or a candidate of another tournament
        """
        try:
            tournament = Tournament.objects.get(id=tournament_id)
        except Tournament.DoesNotExist:
            raise TournamentNotFound()

        selection = self._load_selection(items, tournament_id=tournament.id)
        updates: Dict[str, Any] = {}
        summary = {"contacts_created": 0, "venues_linked": 0}

        with transaction.atomic():
            for kind in APPLY_ORDER:
                rows = selection.get(kind)
                if not rows:
                    continue
                getattr(self, f"_apply_{kind}")(tournament, rows, updates, summary)

            if updates:
                for field, value in updates.items():
                    setattr(tournament, field, value)
                tournament.save(update_fields=list(updates) + ["updated_at"])

            accepted = self._stamp(selection, "accepted_at")

        logger.info(
            f"Applied {accepted} candidates to tournament {tournament.id}; "
            f"updated fields: {sorted(updates)}"
        )
        return {
            "tournament_id": str(tournament.id),
            "updated_fields": sorted(updates),
            "accepted": accepted,
            **summary,
        }

    def reject(self, items: Iterable[Tuple[str, Any]]) -> int:
        """
        Mark selected candidates (and their pending duplicates) rejected.

        Canonical records are not touched.

        Returns:
            Number of candidate rows stamped
        """
        selection = self._load_selection(items)
        rejected = self._stamp(selection, "rejected_at")
        logger.info(f"Rejected {rejected} candidates")
        return rejected

    @staticmethod
    def _best(rows: List, predicate=None):
        candidates = [row for row in rows if predicate is None or predicate(row)]
        if not candidates:
            return None
        return max(candidates, key=lambda row: row.confidence or 0.0)

    def _apply_venue(self, tournament, rows, updates, summary):
        named = self._best(rows, lambda r: r.venue_name or r.address_text)
        if named:
            if named.venue_name:
                updates["venue"] = named.venue_name[:255]
            if named.address_text:
                updates["address"] = named.address_text[:500]

        venue_url = next((r.venue_url for r in rows if r.venue_url), "")
        for row in rows:
            if not (row.venue_name or row.address_text):
                continue
            venue, _created = Venue.objects.get_or_create(
                name=(row.venue_name or "")[:255],
                address=(row.address_text or "")[:500],
                city=tournament.city,
                state=tournament.state,
                defaults={"sport": tournament.sport, "venue_url": venue_url},
            )
            tournament.venues.add(venue)
            summary["venues_linked"] += 1

        if venue_url:
            tournament.venues.filter(venue_url="").update(venue_url=venue_url)

    def _apply_date(self, tournament, rows, updates, summary):
        best = self._best(rows, lambda r: r.start_date)
        if best:
            updates["start_date"] = best.start_date
            updates["end_date"] = best.end_date or best.start_date

    def _apply_comp(self, tournament, rows, updates, summary):
        rate = self._best(rows, lambda r: r.rate_text)
        if rate:
            updates["referee_pay"] = rate.rate_text
            if "cash" in rate.rate_text.lower():
                updates["cash_tournament"] = True

        travel = self._best(rows, lambda r: r.travel_lodging in TravelLodging.values)
        if travel:
            updates["travel_lodging"] = travel.travel_lodging

    def _apply_attribute(self, tournament, rows, updates, summary):
        by_key = defaultdict(list)
        for row in rows:
            by_key[row.attribute_key].append(row)

        for key, key_rows in by_key.items():
            best = self._best(key_rows)
            if key == AttributeKey.TRAVEL_LODGING:
                if best.attribute_value in TravelLodging.values:
                    updates["travel_lodging"] = best.attribute_value
                continue
            updates[key] = best.attribute_value[:100]
            if key == AttributeKey.CASH_AT_FIELD and best.attribute_value == "yes":
                updates["cash_tournament"] = True

    def _apply_contact(self, tournament, rows, updates, summary):
        for row in sorted(rows, key=lambda r: r.confidence or 0.0):
            contact_type = CONTACT_TYPES.get(row.role_normalized, ContactType.GENERAL)
            lookup = {"tournament": tournament, "type": contact_type}
            if row.email:
                lookup["email"] = row.email
            elif row.phone:
                lookup["phone"] = row.phone
            else:
                lookup["name"] = row.name or ""

            if not TournamentContact.objects.filter(**lookup).exists():
                TournamentContact.objects.create(
                    tournament=tournament,
                    type=contact_type,
                    name=row.name or "",
                    email=row.email or "",
                    phone=row.phone or "",
                    source_url=row.source_url,
                    confidence=round((row.confidence or 0.0) * 100),
                    status=ContactStatus.VERIFIED,
                )
                summary["contacts_created"] += 1

            # Highest confidence is applied last and wins
            if contact_type == ContactType.DIRECTOR:
                if row.name:
                    updates["tournament_director"] = row.name
                if row.email:
                    updates["tournament_director_email"] = row.email
            elif contact_type == ContactType.ASSIGNOR:
                if row.name:
                    updates["referee_contact"] = row.name
                if row.email:
                    updates["referee_contact_email"] = row.email


def get_candidate_store() -> CandidateStore:
    """Factory function to get CandidateStore instance."""
    return CandidateStore()
