"""
Management command to review pending enrichment candidates.

Usage:
    python manage.py review_candidates <tournament_id>
    python manage.py review_candidates <tournament_id> --apply contact:<id> --apply date:<id>
    python manage.py review_candidates <tournament_id> --reject venue:<id>
"""

import uuid

from django.core.management.base import BaseCommand, CommandError

from enrichment.exceptions import EnrichmentError
from enrichment.services.candidate_store import KIND_MODELS, get_candidate_store


def parse_item(value):
    kind, sep, candidate_id = value.partition(":")
    if not sep or kind not in KIND_MODELS or not candidate_id:
        raise CommandError(f"Expected <kind>:<candidate_id>, got {value!r}")
    try:
        return kind, uuid.UUID(candidate_id)
    except ValueError:
        raise CommandError(f"Invalid candidate id: {candidate_id}")


class Command(BaseCommand):
    help = "List, apply or reject pending candidates for a tournament"

    def add_arguments(self, parser):
        parser.add_argument("tournament_id", help="Tournament UUID")
        parser.add_argument(
            "--apply",
            action="append",
            default=[],
            help="kind:candidate_id to accept and merge (repeatable)",
        )
        parser.add_argument(
            "--reject",
            action="append",
            default=[],
            help="kind:candidate_id to reject (repeatable)",
        )

    def handle(self, *args, **options):
        try:
            tournament_id = uuid.UUID(options["tournament_id"])
        except ValueError:
            raise CommandError(f"Invalid tournament id: {options['tournament_id']}")

        store = get_candidate_store()
        to_apply = [parse_item(v) for v in options["apply"]]
        to_reject = [parse_item(v) for v in options["reject"]]

        if not (to_apply or to_reject):
            self._list_pending(store, tournament_id)
            return

        try:
            if to_apply:
                result = store.apply(tournament_id, to_apply)
                self.stdout.write(self.style.SUCCESS(
                    f"Accepted {result['accepted']} candidates; "
                    f"updated {', '.join(result['updated_fields']) or 'no fields'}"
                ))
            if to_reject:
                rejected = store.reject(to_reject)
                self.stdout.write(self.style.SUCCESS(f"Rejected {rejected} candidates"))
        except EnrichmentError as e:
            raise CommandError(str(e))

    def _list_pending(self, store, tournament_id):
        groups = store.group_pending([tournament_id]).get(tournament_id, {})
        if not groups:
            self.stdout.write("No pending candidates")
            return

        for group in sorted(groups.values(), key=lambda g: (g.kind, -(g.confidence or 0))):
            self.stdout.write(
                f"[{group.kind}] {group.label} | {group.detail} "
                f"(x{group.count}, conf {group.confidence or 0:.2f}) "
                f"-> {group.kind}:{group.candidate_ids[0]}"
            )
