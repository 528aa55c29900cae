"""
Management command to queue tournaments for web enrichment.

Usage:
    python manage.py enqueue_enrichment <tournament_id> [<tournament_id> ...]
    python manage.py enqueue_enrichment --all-with-urls
"""

from django.core.management.base import BaseCommand, CommandError
from django.db.models import Q

from enrichment.models import Tournament
from enrichment.services.job_scheduler import get_job_scheduler


class Command(BaseCommand):
    help = "Queue enrichment jobs for tournaments"

    def add_arguments(self, parser):
        parser.add_argument(
            "tournament_ids",
            nargs="*",
            help="Tournament UUIDs to queue",
        )
        parser.add_argument(
            "--all-with-urls",
            action="store_true",
            help="Queue every non-skipped tournament that has a website or source URL",
        )

    def handle(self, *args, **options):
        tournament_ids = list(options["tournament_ids"])

        if options["all_with_urls"]:
            tournament_ids += [
                str(pk)
                for pk in Tournament.objects.filter(enrichment_skip=False)
                .exclude(Q(official_website_url="") & Q(source_url=""))
                .values_list("id", flat=True)
            ]

        if not tournament_ids:
            raise CommandError("Provide tournament ids or --all-with-urls")

        result = get_job_scheduler().enqueue(tournament_ids)
        self.stdout.write(self.style.SUCCESS(
            f"Queued {result['inserted']} enrichment jobs ({len(tournament_ids)} requested)"
        ))
