"""
Management command to run enrichment crawls.

Usage:
    python manage.py run_enrichment                       # drain queued jobs
    python manage.py run_enrichment --limit 25
    python manage.py run_enrichment --tournament <id> --max-pages 16
"""

from django.core.management.base import BaseCommand

from enrichment.models import EnrichmentJobStatus
from enrichment.services.job_scheduler import get_job_scheduler


class Command(BaseCommand):
    help = "Run queued enrichment jobs, or crawl specific tournaments now"

    def add_arguments(self, parser):
        parser.add_argument(
            "--limit",
            type=int,
            default=None,
            help="Maximum queued jobs to run (default: ENRICHMENT_BATCH_LIMIT)",
        )
        parser.add_argument(
            "--tournament",
            action="append",
            dest="tournaments",
            default=[],
            help="Crawl this tournament immediately (repeatable); bypasses the queue",
        )
        parser.add_argument(
            "--max-pages",
            type=int,
            default=None,
            help="Page budget for --tournament runs (capped at ENRICHMENT_DEEP_MAX_PAGES)",
        )

    def handle(self, *args, **options):
        scheduler = get_job_scheduler()

        if options["tournaments"]:
            results = scheduler.run_for_tournaments(
                options["tournaments"], max_pages=options["max_pages"]
            )
            label = "tournament_id"
        else:
            results = scheduler.run_queued(limit=options["limit"])
            label = "id"

        if not results:
            self.stdout.write("No enrichment jobs to run")
            return

        failed = 0
        for row in results:
            line = f"  {row[label]}: {row['status']} ({row['pages']} pages)"
            if row["status"] == EnrichmentJobStatus.ERROR:
                failed += 1
                self.stdout.write(self.style.ERROR(f"{line} - {row.get('error')}"))
            else:
                self.stdout.write(line)

        self.stdout.write(self.style.SUCCESS(
            f"Enrichment finished: {len(results) - failed} done, {failed} failed"
        ))
