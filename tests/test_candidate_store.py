"""
Tests for candidate persistence, review grouping and merge.
"""

from datetime import date
from decimal import Decimal

import pytest

from enrichment.exceptions import InvalidReviewItem, TournamentNotFound
from enrichment.models import (
    EnrichmentJob,
    RefereeCompCandidate,
    TournamentAttributeCandidate,
    TournamentContact,
    TournamentContactCandidate,
    TournamentDateCandidate,
    TournamentVenueCandidate,
    Venue,
)
from enrichment.services.candidate_store import CandidateStore, signature
from enrichment.types import (
    AttributeCandidate,
    CompCandidate,
    ContactCandidate,
    DateCandidate,
    ScrapeResult,
    VenueCandidate,
)

SITE = "https://springclassic.example.com"


@pytest.fixture
def store():
    return CandidateStore()


def contact_row(tournament, email="td@springclassic.org", source="/", confidence=0.7, **kwargs):
    fields = {"role_normalized": "TD", "name": "Jane Smith", "email": email}
    fields.update(kwargs)
    return TournamentContactCandidate.objects.create(
        tournament=tournament,
        source_url=f"{SITE}{source}",
        evidence_text="Tournament Director: Jane Smith",
        confidence=confidence,
        **fields,
    )


class TestAddCandidates:
    def test_persists_every_kind(self, store, tournament):
        job = EnrichmentJob.objects.create(tournament=tournament)
        result = ScrapeResult(seed_url=f"{SITE}/")
        result.contacts.append(ContactCandidate(role="ASSIGNOR", email="refs@springclassic.org", source_url=f"{SITE}/", confidence=0.7))
        result.venues.append(VenueCandidate(venue_name="Zilker Park", address_text="2100 Barton Springs Rd", source_url=f"{SITE}/", confidence=0.8))
        result.comps.append(
            CompCandidate(
                rate_text="Center $60 per game",
                rate_amount_min=Decimal("60"),
                rate_amount_max=Decimal("60"),
                rate_unit="per_game",
                assigning_platforms=["arbiter"],
                source_url=f"{SITE}/",
                confidence=0.7,
            )
        )
        result.dates.append(DateCandidate(date_text="Mar 14-16, 2026", start_date=date(2026, 3, 14), end_date=date(2026, 3, 16), source_url=f"{SITE}/", confidence=0.6))
        result.attributes.append(AttributeCandidate(attribute_key="referee_tents", attribute_value="yes", source_url=f"{SITE}/", confidence=0.7))

        inserted = store.add_candidates(tournament, result, job=job)

        assert inserted == {"contact": 1, "venue": 1, "comp": 1, "date": 1, "attribute": 1}
        comp = RefereeCompCandidate.objects.get(tournament=tournament)
        assert comp.job == job
        assert comp.rate_amount_min == Decimal("60")
        assert comp.assigning_platforms == ["arbiter"]
        assert comp.is_pending

    def test_exact_duplicates_in_batch_collapse(self, store, tournament):
        result = ScrapeResult(seed_url=f"{SITE}/")
        for confidence in (0.5, 0.9, 0.7):
            result.contacts.append(
                ContactCandidate(role="TD", email="td@springclassic.org", source_url=f"{SITE}/", confidence=confidence)
            )

        store.add_candidates(tournament, result)

        row = TournamentContactCandidate.objects.get(tournament=tournament)
        assert row.confidence == 0.9

    def test_batches_append(self, store, tournament):
        result = ScrapeResult(seed_url=f"{SITE}/")
        result.contacts.append(ContactCandidate(role="TD", email="td@springclassic.org", source_url=f"{SITE}/", confidence=0.9))

        store.add_candidates(tournament, result)
        store.add_candidates(tournament, result)

        assert TournamentContactCandidate.objects.filter(tournament=tournament).count() == 2

    def test_caps_per_kind(self, tournament):
        store = CandidateStore(caps={"contact": 2})
        result = ScrapeResult(seed_url=f"{SITE}/")
        for i in range(5):
            result.contacts.append(ContactCandidate(email=f"user{i}@springclassic.org", source_url=f"{SITE}/", confidence=0.4))

        inserted = store.add_candidates(tournament, result)

        assert inserted["contact"] == 2
        assert list(
            TournamentContactCandidate.objects.order_by("email").values_list("email", flat=True)
        ) == ["user0@springclassic.org", "user1@springclassic.org"]

    def test_pdf_hint_comp_has_no_rate(self, store, tournament):
        result = ScrapeResult(seed_url=f"{SITE}/")
        result.comps.append(CompCandidate(source_url=f"{SITE}/files/pay.pdf", evidence_text="PDF linked", confidence=0.3))

        store.add_candidates(tournament, result)

        comp = RefereeCompCandidate.objects.get(tournament=tournament)
        assert comp.rate_text is None
        assert comp.assigning_platforms == []


class TestGroupPending:
    def test_same_signature_groups_across_pages(self, store, tournament):
        low = contact_row(tournament, source="/", confidence=0.6)
        high = contact_row(tournament, email="TD@springclassic.org ", source="/contact", confidence=0.9)
        other = contact_row(tournament, email="refs@springclassic.org", role_normalized="ASSIGNOR")

        groups = store.group_pending([tournament.id])[tournament.id]

        td_group = groups[signature("contact", "TD", "td@springclassic.org")]
        assert set(td_group.candidate_ids) == {low.id, high.id}
        assert td_group.count == 2
        assert td_group.confidence == 0.9
        assert td_group.source_url == f"{SITE}/contact"
        assert groups[signature("contact", "ASSIGNOR", "refs@springclassic.org")].candidate_ids == [other.id]

    def test_labels_per_kind(self, store, tournament):
        TournamentVenueCandidate.objects.create(tournament=tournament, venue_url="https://maps.google.com/?q=zilker", source_url=f"{SITE}/", confidence=0.5)
        TournamentDateCandidate.objects.create(tournament=tournament, date_text="Mar 14-16, 2026", start_date=date(2026, 3, 14), end_date=date(2026, 3, 16), source_url=f"{SITE}/", confidence=0.6)
        TournamentAttributeCandidate.objects.create(tournament=tournament, attribute_key="mentors", attribute_value="yes", source_url=f"{SITE}/", confidence=0.6)
        contact_row(tournament, email=None, phone="5125550100", role_normalized=None, name=None)

        groups = store.group_pending([tournament.id])[tournament.id]

        assert set(groups) == {
            "venue||https://maps.google.com/?q=zilker",
            "date|mar 14-16, 2026|2026-03-14/2026-03-16",
            "attribute|mentors|yes",
            "contact|general|5125550100",
        }

    def test_accepted_and_rejected_are_not_pending(self, store, tournament):
        from django.utils import timezone

        contact_row(tournament, accepted_at=timezone.now())
        contact_row(tournament, email="x@springclassic.org", rejected_at=timezone.now())

        assert store.group_pending([tournament.id]) == {}

    def test_filters_by_tournament(self, store, make_tournament):
        first = make_tournament()
        second = make_tournament()
        contact_row(first)
        contact_row(second)

        assert list(store.group_pending([first.id])) == [first.id]
        assert set(store.group_pending()) == {first.id, second.id}


class TestApply:
    def test_contact_updates_tournament_and_stamps_duplicates(self, store, tournament):
        selected = contact_row(tournament, confidence=0.9)
        duplicate = contact_row(tournament, source="/contact", confidence=0.6)

        result = store.apply(tournament.id, [("contact", selected.id)])

        tournament.refresh_from_db()
        assert tournament.tournament_director == "Jane Smith"
        assert tournament.tournament_director_email == "td@springclassic.org"
        assert result["accepted"] == 2
        assert result["contacts_created"] == 1
        duplicate.refresh_from_db()
        assert duplicate.accepted_at is not None
        contact = TournamentContact.objects.get(tournament=tournament)
        assert contact.type == "director"
        assert contact.status == "verified"
        assert contact.confidence == 90

    def test_assignor_sets_referee_contact(self, store, tournament):
        row = contact_row(tournament, email="refs@springclassic.org", role_normalized="ASSIGNOR", name="Alex Jones")

        store.apply(tournament.id, [("contact", row.id)])

        tournament.refresh_from_db()
        assert tournament.referee_contact == "Alex Jones"
        assert tournament.referee_contact_email == "refs@springclassic.org"

    def test_applying_same_contact_twice_creates_one_record(self, store, tournament):
        first = contact_row(tournament)
        store.apply(tournament.id, [("contact", first.id)])
        second = contact_row(tournament, source="/later")

        store.apply(tournament.id, [("contact", second.id)])

        assert TournamentContact.objects.filter(tournament=tournament).count() == 1

    def test_venue_date_comp_attribute(self, store, tournament):
        venue = TournamentVenueCandidate.objects.create(
            tournament=tournament, venue_name="Zilker Park", address_text="2100 Barton Springs Rd",
            source_url=f"{SITE}/", confidence=0.8,
        )
        dates = TournamentDateCandidate.objects.create(
            tournament=tournament, date_text="Mar 14-16, 2026", start_date=date(2026, 3, 14),
            end_date=date(2026, 3, 16), source_url=f"{SITE}/", confidence=0.6,
        )
        comp = RefereeCompCandidate.objects.create(
            tournament=tournament, rate_text="Center $60 per game, paid cash", travel_lodging="hotel",
            source_url=f"{SITE}/", confidence=0.9,
        )
        tents = TournamentAttributeCandidate.objects.create(
            tournament=tournament, attribute_key="referee_tents", attribute_value="yes",
            source_url=f"{SITE}/", confidence=0.7,
        )

        result = store.apply(
            tournament.id,
            [("venue", venue.id), ("date", dates.id), ("comp", comp.id), ("attribute", tents.id)],
        )

        tournament.refresh_from_db()
        assert tournament.venue == "Zilker Park"
        assert tournament.address == "2100 Barton Springs Rd"
        assert tournament.start_date == date(2026, 3, 14)
        assert tournament.end_date == date(2026, 3, 16)
        assert tournament.referee_pay == "Center $60 per game, paid cash"
        assert tournament.travel_lodging == "hotel"
        assert tournament.cash_tournament is True
        assert tournament.referee_tents == "yes"
        assert result["venues_linked"] == 1
        linked = Venue.objects.get(name="Zilker Park")
        assert list(linked.tournaments.all()) == [tournament]
        assert linked.city == "Austin"

    def test_venue_upsert_reuses_existing(self, store, tournament):
        Venue.objects.create(name="Zilker Park", address="2100 Barton Springs Rd", city="Austin", state="TX")
        venue = TournamentVenueCandidate.objects.create(
            tournament=tournament, venue_name="Zilker Park", address_text="2100 Barton Springs Rd",
            source_url=f"{SITE}/", confidence=0.8,
        )

        store.apply(tournament.id, [("venue", venue.id)])

        assert Venue.objects.count() == 1
        assert tournament.venues.count() == 1

    def test_candidate_of_another_tournament_is_rejected(self, store, make_tournament):
        owner = make_tournament()
        other = make_tournament()
        row = contact_row(owner)

        with pytest.raises(InvalidReviewItem):
            store.apply(other.id, [("contact", row.id)])

        row.refresh_from_db()
        assert row.accepted_at is None

    def test_unknown_kind(self, store, tournament):
        with pytest.raises(InvalidReviewItem):
            store.apply(tournament.id, [("ticket", "6f1b2c3d-0000-4000-8000-000000000000")])

    def test_unknown_tournament(self, store, db):
        with pytest.raises(TournamentNotFound):
            store.apply("6f1b2c3d-0000-4000-8000-000000000000", [])


class TestReject:
    def test_reject_stamps_group_and_leaves_tournament(self, store, tournament):
        first = contact_row(tournament)
        second = contact_row(tournament, source="/contact")

        rejected = store.reject([("contact", first.id)])

        assert rejected == 2
        second.refresh_from_db()
        assert second.rejected_at is not None
        tournament.refresh_from_db()
        assert tournament.tournament_director == ""
        assert store.group_pending([tournament.id]) == {}
