"""
Django models for the Tournament Enrichment Service.

Canonical records:
- Tournament: the record being enriched, plus the fields review can fill in
- Venue: a playing site, shared between tournaments
- TournamentContact: an accepted contact person for a tournament

Pipeline records:
- EnrichmentJob: one queued/running/finished crawl of a tournament's website
- *Candidate: facts extracted by a crawl, waiting for review
"""

import uuid

from django.db import models
from django.db.models import Q
from django.utils import timezone


# ============================================================
# Choices
# ============================================================


class EnrichmentJobStatus(models.TextChoices):
    """Status of an enrichment job."""

    QUEUED = "queued", "Queued"
    RUNNING = "running", "Running"
    DONE = "done", "Done"
    ERROR = "error", "Error"


ACTIVE_JOB_STATUSES = [EnrichmentJobStatus.QUEUED, EnrichmentJobStatus.RUNNING]


class ContactRole(models.TextChoices):
    """Role inferred for an extracted contact."""

    TD = "TD", "Tournament Director"
    ASSIGNOR = "ASSIGNOR", "Referee Assignor"
    GENERAL = "GENERAL", "General"


class ContactType(models.TextChoices):
    """Type of an accepted tournament contact."""

    DIRECTOR = "director", "Director"
    ASSIGNOR = "assignor", "Assignor"
    GENERAL = "general", "General"


class ContactStatus(models.TextChoices):
    """Verification status of an accepted tournament contact."""

    PENDING = "pending", "Pending"
    VERIFIED = "verified", "Verified"


class RateUnit(models.TextChoices):
    """Unit a referee pay rate is quoted in."""

    PER_GAME = "per_game", "Per Game"
    PER_DAY = "per_day", "Per Day"
    PER_HOUR = "per_hour", "Per Hour"
    FLAT = "flat", "Flat"


class TravelLodging(models.TextChoices):
    """How referee travel is covered."""

    HOTEL = "hotel", "Hotel"
    STIPEND = "stipend", "Stipend"


class AttributeKey(models.TextChoices):
    """Closed set of tournament attributes the extractor can detect."""

    CASH_AT_FIELD = "cash_at_field", "Cash at Field"
    REFEREE_FOOD = "referee_food", "Referee Food"
    FACILITIES = "facilities", "Facilities"
    REFEREE_TENTS = "referee_tents", "Referee Tents"
    TRAVEL_LODGING = "travel_lodging", "Travel / Lodging"
    REF_GAME_SCHEDULE = "ref_game_schedule", "Referee Game Schedule"
    REF_PARKING = "ref_parking", "Referee Parking"
    REF_PARKING_COST = "ref_parking_cost", "Referee Parking Cost"
    MENTORS = "mentors", "Mentors"
    ASSIGNED_APPROPRIATELY = "assigned_appropriately", "Assigned Appropriately"


# ============================================================
# Canonical records
# ============================================================


class Venue(models.Model):
    """A playing site. One row per distinct name/address/city/state."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, blank=True)
    address = models.CharField(max_length=500, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=50, blank=True)
    sport = models.CharField(max_length=50, blank=True)
    venue_url = models.URLField(max_length=2000, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "venues"
        constraints = [
            models.UniqueConstraint(
                fields=["name", "address", "city", "state"],
                name="uniq_venue_name_address_city_state",
            ),
        ]

    def __str__(self):
        return self.name or self.address or str(self.id)


class Tournament(models.Model):
    """
    A tournament listing.

    Only the fields the enrichment pipeline reads or writes are modelled;
    the listing site owns the rest of the record.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, blank=True)
    sport = models.CharField(max_length=50, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=50, blank=True)

    # Crawl seeds
    source_url = models.URLField(max_length=2000, blank=True)
    official_website_url = models.URLField(max_length=2000, blank=True)
    enrichment_skip = models.BooleanField(default=False)

    # Dates
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)

    # Location
    venue = models.CharField(max_length=255, blank=True)
    address = models.CharField(max_length=500, blank=True)
    venues = models.ManyToManyField(Venue, related_name="tournaments", blank=True)

    # People
    tournament_director = models.CharField(max_length=255, blank=True)
    tournament_director_email = models.EmailField(blank=True)
    referee_contact = models.CharField(max_length=255, blank=True)
    referee_contact_email = models.EmailField(blank=True)

    # Compensation
    referee_pay = models.TextField(blank=True)
    travel_lodging = models.CharField(
        max_length=20, choices=TravelLodging.choices, blank=True
    )
    cash_tournament = models.BooleanField(default=False)

    # On-site attributes
    cash_at_field = models.CharField(max_length=100, blank=True)
    referee_food = models.CharField(max_length=100, blank=True)
    facilities = models.CharField(max_length=100, blank=True)
    referee_tents = models.CharField(max_length=100, blank=True)
    ref_game_schedule = models.CharField(max_length=100, blank=True)
    ref_parking = models.CharField(max_length=100, blank=True)
    ref_parking_cost = models.CharField(max_length=100, blank=True)
    mentors = models.CharField(max_length=100, blank=True)
    assigned_appropriately = models.CharField(max_length=100, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "tournaments"
        ordering = ["name"]

    def __str__(self):
        return self.name

    @property
    def crawl_url(self):
        """URL the crawl starts from: the official site, else the listing source."""
        return self.official_website_url or self.source_url or None


class TournamentContact(models.Model):
    """A contact person accepted from review."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tournament = models.ForeignKey(
        Tournament, on_delete=models.CASCADE, related_name="contacts"
    )
    type = models.CharField(
        max_length=20, choices=ContactType.choices, default=ContactType.GENERAL
    )
    name = models.CharField(max_length=255, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    source_url = models.URLField(max_length=2000, blank=True)
    confidence = models.IntegerField(null=True, blank=True)
    status = models.CharField(
        max_length=20, choices=ContactStatus.choices, default=ContactStatus.PENDING
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "tournament_contacts"
        indexes = [
            models.Index(fields=["tournament", "type"], name="tournament__tournam_6b1d0c_idx"),
        ]

    def __str__(self):
        return f"{self.name or self.email or self.phone} ({self.type})"


# ============================================================
# Enrichment jobs
# ============================================================


class EnrichmentJob(models.Model):
    """
    Tracks one enrichment crawl of a tournament website.

    queued -> running -> done | error. At most one queued or running job
    may exist per tournament; finished jobs are kept as history.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tournament = models.ForeignKey(
        Tournament, on_delete=models.CASCADE, related_name="enrichment_jobs"
    )

    status = models.CharField(
        max_length=20,
        choices=EnrichmentJobStatus.choices,
        default=EnrichmentJobStatus.QUEUED,
    )
    attempt_count = models.IntegerField(default=0)

    # Timing
    created_at = models.DateTimeField(default=timezone.now)
    started_at = models.DateTimeField(null=True, blank=True)
    finished_at = models.DateTimeField(null=True, blank=True)

    # Results
    pages_fetched_count = models.IntegerField(default=0)
    last_error = models.TextField(null=True, blank=True)

    class Meta:
        db_table = "tournament_enrichment_jobs"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="tournament__status_4f3a2e_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["tournament"],
                condition=Q(status__in=["queued", "running"]),
                name="uniq_active_enrichment_job_per_tournament",
            ),
        ]

    def __str__(self):
        return f"EnrichmentJob {self.id} ({self.status})"

    @property
    def duration_seconds(self):
        """Calculate job duration."""
        if self.started_at and self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    def finish(self, pages_fetched: int) -> bool:
        """
        Mark job as done.

        Returns False when the row was deleted mid-run (tournament skipped).
        """
        self.status = EnrichmentJobStatus.DONE
        self.finished_at = timezone.now()
        self.pages_fetched_count = pages_fetched
        return self._write("status", "finished_at", "pages_fetched_count")

    def fail(self, error_message: str) -> bool:
        """
        Mark job as failed.

        Returns False when the row was deleted mid-run (tournament skipped).
        """
        self.status = EnrichmentJobStatus.ERROR
        self.finished_at = timezone.now()
        self.last_error = error_message or "unknown_error"
        return self._write("status", "finished_at", "last_error")

    def _write(self, *fields: str) -> bool:
        # Filtered update: a deleted row is a no-op, not a DatabaseError
        updated = EnrichmentJob.objects.filter(id=self.id).update(
            **{field: getattr(self, field) for field in fields}
        )
        return updated == 1


# ============================================================
# Candidates
# ============================================================


class CandidateBase(models.Model):
    """
    Fields shared by every extracted fact awaiting review.

    Candidates are append-only; review only stamps accepted_at/rejected_at.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    job = models.ForeignKey(
        EnrichmentJob, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    source_url = models.URLField(max_length=2000, blank=True)
    evidence_text = models.TextField(blank=True)
    confidence = models.FloatField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    accepted_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        abstract = True

    @property
    def is_pending(self):
        return self.accepted_at is None and self.rejected_at is None


class TournamentContactCandidate(CandidateBase):
    """A contact person found on a tournament page."""

    tournament = models.ForeignKey(
        Tournament, on_delete=models.CASCADE, related_name="contact_candidates"
    )
    role_normalized = models.CharField(
        max_length=20, choices=ContactRole.choices, null=True, blank=True
    )
    name = models.CharField(max_length=255, null=True, blank=True)
    email = models.CharField(max_length=320, null=True, blank=True)
    phone = models.CharField(max_length=50, null=True, blank=True)

    class Meta:
        db_table = "tournament_contact_candidates"
        indexes = [
            models.Index(fields=["tournament", "created_at"], name="tournament__tournam_c0a1e7_idx"),
        ]


class TournamentVenueCandidate(CandidateBase):
    """A venue name, address or map link found on a tournament page."""

    tournament = models.ForeignKey(
        Tournament, on_delete=models.CASCADE, related_name="venue_candidates"
    )
    venue_name = models.CharField(max_length=255, null=True, blank=True)
    address_text = models.TextField(null=True, blank=True)
    venue_url = models.URLField(max_length=2000, null=True, blank=True)

    class Meta:
        db_table = "tournament_venue_candidates"
        indexes = [
            models.Index(fields=["tournament", "created_at"], name="tournament__tournam_9d27b4_idx"),
        ]


class RefereeCompCandidate(CandidateBase):
    """A referee pay rate or travel/lodging note found on a tournament page."""

    tournament = models.ForeignKey(
        Tournament, on_delete=models.CASCADE, related_name="comp_candidates"
    )
    rate_text = models.TextField(null=True, blank=True)
    rate_amount_min = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    rate_amount_max = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    rate_unit = models.CharField(
        max_length=20, choices=RateUnit.choices, null=True, blank=True
    )
    division_context = models.CharField(max_length=100, null=True, blank=True)
    travel_lodging = models.CharField(
        max_length=20, choices=TravelLodging.choices, null=True, blank=True
    )
    travel_housing_text = models.TextField(null=True, blank=True)
    assigning_platforms = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "tournament_referee_comp_candidates"
        indexes = [
            models.Index(fields=["tournament", "created_at"], name="tournament__tournam_5e8f61_idx"),
        ]


class TournamentDateCandidate(CandidateBase):
    """An event date or date range found on a tournament page."""

    tournament = models.ForeignKey(
        Tournament, on_delete=models.CASCADE, related_name="date_candidates"
    )
    date_text = models.TextField(null=True, blank=True)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)

    class Meta:
        db_table = "tournament_date_candidates"
        indexes = [
            models.Index(fields=["tournament", "created_at"], name="tournament__tournam_a7c392_idx"),
        ]


class TournamentAttributeCandidate(CandidateBase):
    """An on-site attribute (food, tents, parking...) found on a tournament page."""

    tournament = models.ForeignKey(
        Tournament, on_delete=models.CASCADE, related_name="attribute_candidates"
    )
    attribute_key = models.CharField(max_length=50, choices=AttributeKey.choices)
    attribute_value = models.CharField(max_length=255)

    class Meta:
        db_table = "tournament_attribute_candidates"
        indexes = [
            models.Index(fields=["tournament", "created_at"], name="tournament__tournam_e41b58_idx"),
        ]
