"""
Celery tasks for tournament enrichment.

- enqueue_enrichment: Create queued jobs for a set of tournaments
- run_queued_enrichment: Periodic task that drains a batch of queued jobs
"""

import logging
from typing import Any, Dict, List, Optional

from celery import shared_task
from django.utils import timezone

from enrichment.services.job_scheduler import get_job_scheduler

logger = logging.getLogger(__name__)


@shared_task(name="enrichment.tasks.enqueue_enrichment")
def enqueue_enrichment(tournament_ids: List[str]) -> Dict[str, Any]:
    """
    Queue enrichment jobs for the given tournaments.

    Args:
        tournament_ids: Tournament UUIDs as strings

    Returns:
        Dict with the number of jobs inserted
    """
    result = get_job_scheduler().enqueue(tournament_ids)
    logger.info(f"enqueue_enrichment: {result['inserted']} of {len(tournament_ids)} queued")
    return result


@shared_task(name="enrichment.tasks.run_queued_enrichment")
def run_queued_enrichment(limit: Optional[int] = None) -> Dict[str, Any]:
    """
    Run a batch of queued enrichment jobs.

    Runs every 10 minutes via Celery Beat.

    Returns:
        Dict with per-job results and a timestamp
    """
    results = get_job_scheduler().run_queued(limit=limit)
    return {
        "processed": len(results),
        "results": results,
        "timestamp": timezone.now().isoformat(),
    }
