"""
Migration: Initial schema for tournaments, venues, contacts, enrichment jobs
and the five candidate tables.
"""

import uuid
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


def candidate_fields():
    """Columns shared by every candidate table (see CandidateBase)."""
    return [
        (
            "id",
            models.UUIDField(
                default=uuid.uuid4,
                editable=False,
                primary_key=True,
                serialize=False,
            ),
        ),
        ("source_url", models.URLField(blank=True, max_length=2000)),
        ("evidence_text", models.TextField(blank=True)),
        ("confidence", models.FloatField(blank=True, null=True)),
        ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
        ("accepted_at", models.DateTimeField(blank=True, null=True)),
        ("rejected_at", models.DateTimeField(blank=True, null=True)),
        (
            "job",
            models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to="enrichment.enrichmentjob",
            ),
        ),
    ]


def tournament_fk(related_name):
    return (
        "tournament",
        models.ForeignKey(
            on_delete=django.db.models.deletion.CASCADE,
            related_name=related_name,
            to="enrichment.tournament",
        ),
    )


TRAVEL_LODGING_CHOICES = [("hotel", "Hotel"), ("stipend", "Stipend")]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Venue",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(blank=True, max_length=255)),
                ("address", models.CharField(blank=True, max_length=500)),
                ("city", models.CharField(blank=True, max_length=100)),
                ("state", models.CharField(blank=True, max_length=50)),
                ("sport", models.CharField(blank=True, max_length=50)),
                ("venue_url", models.URLField(blank=True, max_length=2000)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "venues",
            },
        ),
        migrations.AddConstraint(
            model_name="venue",
            constraint=models.UniqueConstraint(
                fields=("name", "address", "city", "state"),
                name="uniq_venue_name_address_city_state",
            ),
        ),
        migrations.CreateModel(
            name="Tournament",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                ("slug", models.SlugField(blank=True, max_length=255)),
                ("sport", models.CharField(blank=True, max_length=50)),
                ("city", models.CharField(blank=True, max_length=100)),
                ("state", models.CharField(blank=True, max_length=50)),
                ("source_url", models.URLField(blank=True, max_length=2000)),
                ("official_website_url", models.URLField(blank=True, max_length=2000)),
                ("enrichment_skip", models.BooleanField(default=False)),
                ("start_date", models.DateField(blank=True, null=True)),
                ("end_date", models.DateField(blank=True, null=True)),
                ("venue", models.CharField(blank=True, max_length=255)),
                ("address", models.CharField(blank=True, max_length=500)),
                ("tournament_director", models.CharField(blank=True, max_length=255)),
                ("tournament_director_email", models.EmailField(blank=True, max_length=254)),
                ("referee_contact", models.CharField(blank=True, max_length=255)),
                ("referee_contact_email", models.EmailField(blank=True, max_length=254)),
                ("referee_pay", models.TextField(blank=True)),
                (
                    "travel_lodging",
                    models.CharField(
                        blank=True, choices=TRAVEL_LODGING_CHOICES, max_length=20
                    ),
                ),
                ("cash_tournament", models.BooleanField(default=False)),
                ("cash_at_field", models.CharField(blank=True, max_length=100)),
                ("referee_food", models.CharField(blank=True, max_length=100)),
                ("facilities", models.CharField(blank=True, max_length=100)),
                ("referee_tents", models.CharField(blank=True, max_length=100)),
                ("ref_game_schedule", models.CharField(blank=True, max_length=100)),
                ("ref_parking", models.CharField(blank=True, max_length=100)),
                ("ref_parking_cost", models.CharField(blank=True, max_length=100)),
                ("mentors", models.CharField(blank=True, max_length=100)),
                ("assigned_appropriately", models.CharField(blank=True, max_length=100)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "venues",
                    models.ManyToManyField(
                        blank=True, related_name="tournaments", to="enrichment.venue"
                    ),
                ),
            ],
            options={
                "db_table": "tournaments",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="TournamentContact",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("director", "Director"),
                            ("assignor", "Assignor"),
                            ("general", "General"),
                        ],
                        default="general",
                        max_length=20,
                    ),
                ),
                ("name", models.CharField(blank=True, max_length=255)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("phone", models.CharField(blank=True, max_length=50)),
                ("source_url", models.URLField(blank=True, max_length=2000)),
                ("confidence", models.IntegerField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("verified", "Verified")],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                tournament_fk("contacts"),
            ],
            options={
                "db_table": "tournament_contacts",
                "indexes": [
                    models.Index(
                        fields=["tournament", "type"],
                        name="tournament__tournam_6b1d0c_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="EnrichmentJob",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("queued", "Queued"),
                            ("running", "Running"),
                            ("done", "Done"),
                            ("error", "Error"),
                        ],
                        default="queued",
                        max_length=20,
                    ),
                ),
                ("attempt_count", models.IntegerField(default=0)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("started_at", models.DateTimeField(blank=True, null=True)),
                ("finished_at", models.DateTimeField(blank=True, null=True)),
                ("pages_fetched_count", models.IntegerField(default=0)),
                ("last_error", models.TextField(blank=True, null=True)),
                tournament_fk("enrichment_jobs"),
            ],
            options={
                "db_table": "tournament_enrichment_jobs",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "created_at"],
                        name="tournament__status_4f3a2e_idx",
                    )
                ],
            },
        ),
        migrations.AddConstraint(
            model_name="enrichmentjob",
            constraint=models.UniqueConstraint(
                condition=models.Q(("status__in", ["queued", "running"])),
                fields=("tournament",),
                name="uniq_active_enrichment_job_per_tournament",
            ),
        ),
        migrations.CreateModel(
            name="TournamentContactCandidate",
            fields=candidate_fields() + [
                (
                    "role_normalized",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("TD", "Tournament Director"),
                            ("ASSIGNOR", "Referee Assignor"),
                            ("GENERAL", "General"),
                        ],
                        max_length=20,
                        null=True,
                    ),
                ),
                ("name", models.CharField(blank=True, max_length=255, null=True)),
                ("email", models.CharField(blank=True, max_length=320, null=True)),
                ("phone", models.CharField(blank=True, max_length=50, null=True)),
                tournament_fk("contact_candidates"),
            ],
            options={
                "db_table": "tournament_contact_candidates",
                "indexes": [
                    models.Index(
                        fields=["tournament", "created_at"],
                        name="tournament__tournam_c0a1e7_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="TournamentVenueCandidate",
            fields=candidate_fields() + [
                ("venue_name", models.CharField(blank=True, max_length=255, null=True)),
                ("address_text", models.TextField(blank=True, null=True)),
                ("venue_url", models.URLField(blank=True, max_length=2000, null=True)),
                tournament_fk("venue_candidates"),
            ],
            options={
                "db_table": "tournament_venue_candidates",
                "indexes": [
                    models.Index(
                        fields=["tournament", "created_at"],
                        name="tournament__tournam_9d27b4_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="RefereeCompCandidate",
            fields=candidate_fields() + [
                ("rate_text", models.TextField(blank=True, null=True)),
                (
                    "rate_amount_min",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=10, null=True
                    ),
                ),
                (
                    "rate_amount_max",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=10, null=True
                    ),
                ),
                (
                    "rate_unit",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("per_game", "Per Game"),
                            ("per_day", "Per Day"),
                            ("per_hour", "Per Hour"),
                            ("flat", "Flat"),
                        ],
                        max_length=20,
                        null=True,
                    ),
                ),
                ("division_context", models.CharField(blank=True, max_length=100, null=True)),
                (
                    "travel_lodging",
                    models.CharField(
                        blank=True,
                        choices=TRAVEL_LODGING_CHOICES,
                        max_length=20,
                        null=True,
                    ),
                ),
                ("travel_housing_text", models.TextField(blank=True, null=True)),
                ("assigning_platforms", models.JSONField(blank=True, default=list)),
                tournament_fk("comp_candidates"),
            ],
            options={
                "db_table": "tournament_referee_comp_candidates",
                "indexes": [
                    models.Index(
                        fields=["tournament", "created_at"],
                        name="tournament__tournam_5e8f61_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="TournamentDateCandidate",
            fields=candidate_fields() + [
                ("date_text", models.TextField(blank=True, null=True)),
                ("start_date", models.DateField(blank=True, null=True)),
                ("end_date", models.DateField(blank=True, null=True)),
                tournament_fk("date_candidates"),
            ],
            options={
                "db_table": "tournament_date_candidates",
                "indexes": [
                    models.Index(
                        fields=["tournament", "created_at"],
                        name="tournament__tournam_a7c392_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="TournamentAttributeCandidate",
            fields=candidate_fields() + [
                (
                    "attribute_key",
                    models.CharField(
                        choices=[
                            ("cash_at_field", "Cash at Field"),
                            ("referee_food", "Referee Food"),
                            ("facilities", "Facilities"),
                            ("referee_tents", "Referee Tents"),
                            ("travel_lodging", "Travel / Lodging"),
                            ("ref_game_schedule", "Referee Game Schedule"),
                            ("ref_parking", "Referee Parking"),
                            ("ref_parking_cost", "Referee Parking Cost"),
                            ("mentors", "Mentors"),
                            ("assigned_appropriately", "Assigned Appropriately"),
                        ],
                        max_length=50,
                    ),
                ),
                ("attribute_value", models.CharField(max_length=255)),
                tournament_fk("attribute_candidates"),
            ],
            options={
                "db_table": "tournament_attribute_candidates",
                "indexes": [
                    models.Index(
                        fields=["tournament", "created_at"],
                        name="tournament__tournam_e41b58_idx",
                    )
                ],
            },
        ),
    ]
