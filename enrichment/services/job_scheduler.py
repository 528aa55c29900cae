"""
Job Scheduler - queue and run enrichment jobs.

Job lifecycle:
    enqueue()     -> queued   (at most one queued/running job per tournament)
    run_queued()  -> running  (claimed with a compare-and-swap on status)
                  -> done | error

A failing job never aborts the rest of its batch. All jobs in one
``run_queued`` batch share a single rate limiter, so per-host spacing holds
across tournaments hosted on the same site.
"""

import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional

from asgiref.sync import async_to_sync
from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from enrichment.exceptions import EnrichmentError, TournamentNotFound
from enrichment.models import (
    ACTIVE_JOB_STATUSES,
    EnrichmentJob,
    EnrichmentJobStatus,
    Tournament,
)
from enrichment.monitoring import add_enrichment_breadcrumb, capture_job_error
from enrichment.services.candidate_store import CandidateStore
from enrichment.services.crawl_orchestrator import CrawlOrchestrator
from enrichment.types import ScrapeResult

logger = logging.getLogger(__name__)


def _parse_ids(tournament_ids: Iterable[Any]) -> List[uuid.UUID]:
    """Unique, valid tournament UUIDs in input order."""
    parsed = []
    for raw in tournament_ids:
        try:
            value = raw if isinstance(raw, uuid.UUID) else uuid.UUID(str(raw))
        except ValueError:
            logger.warning(f"Ignoring invalid tournament id: {raw!r}")
            continue
        if value not in parsed:
            parsed.append(value)
    return parsed


class JobScheduler:
    """
    Creates and executes enrichment jobs.

    Usage:
        scheduler = JobScheduler()
        scheduler.enqueue([tournament.id])
        results = scheduler.run_queued(limit=10)
    """

    def __init__(
        self,
        orchestrator: Optional[CrawlOrchestrator] = None,
        store: Optional[CandidateStore] = None,
    ):
        self.orchestrator = orchestrator or CrawlOrchestrator()
        self.store = store or CandidateStore()

    # --------------------------------------------------------
    # Queueing
    # --------------------------------------------------------

    def enqueue(self, tournament_ids: Iterable[Any]) -> Dict[str, int]:
        """
        Create a queued job for each tournament that has no active job.

        Unknown tournaments and tournaments flagged ``enrichment_skip`` are
        ignored. Re-enqueueing a tournament whose last job is done or error
        creates a fresh job.

        Returns:
            {"inserted": number of jobs created}
        """
        ids = _parse_ids(tournament_ids)
        eligible = set(
            Tournament.objects.filter(id__in=ids, enrichment_skip=False).values_list("id", flat=True)
        )

        inserted = 0
        for tournament_id in ids:
            if tournament_id not in eligible:
                logger.debug(f"Not enqueueing tournament {tournament_id}: unknown or skipped")
                continue

            if EnrichmentJob.objects.filter(
                tournament_id=tournament_id, status__in=ACTIVE_JOB_STATUSES
            ).exists():
                continue

            try:
                with transaction.atomic():
                    EnrichmentJob.objects.create(tournament_id=tournament_id)
            except IntegrityError:
                # Lost a race against a concurrent enqueue
                logger.info(f"Tournament {tournament_id} already has an active enrichment job")
                continue

            inserted += 1

        logger.info(f"Enqueued {inserted} enrichment jobs ({len(ids)} requested)")
        return {"inserted": inserted}

    def skip(self, tournament_id: Any) -> Dict[str, Any]:
        """
        Exclude a tournament from enrichment and drop its active jobs.

        Raises:
            TournamentNotFound: Unknown tournament
        """
        ids = _parse_ids([tournament_id])
        updated = Tournament.objects.filter(id__in=ids).update(enrichment_skip=True)
        if not updated:
            raise TournamentNotFound()

        removed, _ = EnrichmentJob.objects.filter(
            tournament_id__in=ids, status__in=ACTIVE_JOB_STATUSES
        ).delete()
        logger.info(f"Tournament {ids[0]} marked enrichment_skip; removed {removed} active jobs")
        return {"tournament_id": str(ids[0]), "jobs_removed": removed}

    # --------------------------------------------------------
    # Execution
    # --------------------------------------------------------

    def crawl_tournament(self, tournament: Tournament, max_pages: Optional[int] = None) -> ScrapeResult:
        """Run the async crawl for one tournament from synchronous code."""
        return async_to_sync(self.orchestrator.scrape)(tournament.crawl_url, max_pages)

    def run_queued(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Run up to ``limit`` queued jobs, oldest first.

        Jobs claimed by another worker in the meantime are skipped.

        Returns:
            One {"id", "status", "pages"[, "error"]} row per job run
        """
        if limit is None:
            limit = getattr(settings, "ENRICHMENT_BATCH_LIMIT", 10)
        job_ids = list(
            EnrichmentJob.objects.filter(status=EnrichmentJobStatus.QUEUED)
            .order_by("created_at")
            .values_list("id", flat=True)[:limit]
        )

        results = []
        for job_id in job_ids:
            try:
                row = self._run_job(job_id)
            except Exception as e:
                logger.error(f"Enrichment job {job_id} could not be processed: {e}", exc_info=True)
                capture_job_error(e, extra_context={"job_id": str(job_id)})
                EnrichmentJob(id=job_id).fail(str(e))
                row = {
                    "id": str(job_id),
                    "status": EnrichmentJobStatus.ERROR,
                    "pages": 0,
                    "error": str(e) or "unknown_error",
                }
            if row is not None:
                results.append(row)

        logger.info(
            f"Enrichment batch finished: {len(results)} jobs run, "
            f"{sum(1 for r in results if r['status'] == EnrichmentJobStatus.ERROR)} failed"
        )
        return results

    def _claim(self, job_id) -> bool:
        claimed = EnrichmentJob.objects.filter(
            id=job_id, status=EnrichmentJobStatus.QUEUED
        ).update(
            status=EnrichmentJobStatus.RUNNING,
            attempt_count=F("attempt_count") + 1,
            started_at=timezone.now(),
            last_error=None,
        )
        return claimed == 1

    def _run_job(self, job_id) -> Optional[Dict[str, Any]]:
        if not self._claim(job_id):
            logger.info(f"Enrichment job {job_id} was claimed elsewhere, skipping")
            return None

        try:
            job = EnrichmentJob.objects.select_related("tournament").get(id=job_id)
        except EnrichmentJob.DoesNotExist:
            logger.info(f"Enrichment job {job_id} was removed before it started")
            return None

        tournament = job.tournament
        url = tournament.crawl_url
        pages = 0

        add_enrichment_breadcrumb(
            tournament_id=tournament.id,
            url=url,
            message="Enrichment job started",
            extra_data={"job_id": str(job.id), "attempt": job.attempt_count},
        )

        try:
            result = self.crawl_tournament(tournament)
            pages = result.pages_fetched
            # Skipped mid-run: the job row is gone, keep the candidates unattached
            active = EnrichmentJob.objects.filter(id=job.id).exists()
            self.store.add_candidates(tournament, result, job=job if active else None)
        except EnrichmentError as e:
            job.fail(str(e))
            logger.warning(f"Enrichment job {job.id} for {tournament.name} failed: {e}")
            return {"id": str(job.id), "status": job.status, "pages": pages, "error": job.last_error}
        except Exception as e:
            job.fail(str(e))
            logger.error(f"Enrichment job {job.id} for {tournament.name} failed: {e}", exc_info=True)
            capture_job_error(e, job=job, url=url)
            return {"id": str(job.id), "status": job.status, "pages": pages, "error": job.last_error}

        if not job.finish(pages):
            logger.info(f"Enrichment job {job.id} for {tournament.name} was removed while running")
        logger.info(f"Enrichment job {job.id} for {tournament.name} done: {pages} pages")
        return {"id": str(job.id), "status": job.status, "pages": pages}

    def run_for_tournaments(
        self, tournament_ids: Iterable[Any], max_pages: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Crawl the given tournaments immediately, without job rows.

        Used for ad-hoc runs from the command line. Candidates are stored
        with no job reference; one failure does not stop the rest.
        """
        results = []
        for tournament_id in _parse_ids(tournament_ids):
            row: Dict[str, Any] = {"tournament_id": str(tournament_id), "pages": 0}
            try:
                tournament = Tournament.objects.get(id=tournament_id)
                result = self.crawl_tournament(tournament, max_pages=max_pages)
                row["pages"] = result.pages_fetched
                self.store.add_candidates(tournament, result)
            except Tournament.DoesNotExist:
                row.update(status=EnrichmentJobStatus.ERROR, error=TournamentNotFound.code)
            except EnrichmentError as e:
                row.update(status=EnrichmentJobStatus.ERROR, error=str(e))
            except Exception as e:
                logger.error(f"Ad-hoc enrichment of tournament {tournament_id} failed: {e}", exc_info=True)
                capture_job_error(e, url=None, extra_context={"tournament_id": str(tournament_id)})
                row.update(status=EnrichmentJobStatus.ERROR, error=str(e) or "unknown_error")
            else:
                row["status"] = EnrichmentJobStatus.DONE
            results.append(row)
        return results


def get_job_scheduler() -> JobScheduler:
    """Factory function to get JobScheduler instance."""
    return JobScheduler()
