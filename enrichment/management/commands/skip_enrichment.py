"""
Management command to exclude a tournament from enrichment.

Usage:
    python manage.py skip_enrichment <tournament_id>
"""

from django.core.management.base import BaseCommand, CommandError

from enrichment.exceptions import TournamentNotFound
from enrichment.services.job_scheduler import get_job_scheduler


class Command(BaseCommand):
    help = "Mark a tournament enrichment_skip and remove its active jobs"

    def add_arguments(self, parser):
        parser.add_argument("tournament_id", help="Tournament UUID")

    def handle(self, *args, **options):
        try:
            result = get_job_scheduler().skip(options["tournament_id"])
        except TournamentNotFound:
            raise CommandError(f"Tournament {options['tournament_id']} not found")

        self.stdout.write(self.style.SUCCESS(
            f"Tournament {result['tournament_id']} skipped; "
            f"removed {result['jobs_removed']} active jobs"
        ))
