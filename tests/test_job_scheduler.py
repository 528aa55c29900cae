"""
Tests for the job scheduler.

The crawl itself is replaced by a stub orchestrator; these tests cover job
state transitions, idempotent enqueue and batch isolation.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone

from enrichment.exceptions import TournamentNotFound, TournamentUrlMissing
from enrichment.models import (
    EnrichmentJob,
    EnrichmentJobStatus,
    TournamentContactCandidate,
)
from enrichment.services.job_scheduler import JobScheduler
from enrichment.types import ContactCandidate, ScrapeResult


class StubOrchestrator:
    """Returns one contact per crawl; fails for URLs listed in ``failures``."""

    def __init__(self, failures=None):
        self.failures = failures or {}
        self.calls = []

    async def scrape(self, seed_url, max_pages=None):
        self.calls.append((seed_url, max_pages))
        if not seed_url:
            raise TournamentUrlMissing()
        if seed_url in self.failures:
            raise self.failures[seed_url]
        result = ScrapeResult(seed_url=seed_url, pages_fetched=3, fetched_urls=[seed_url])
        result.contacts.append(
            ContactCandidate(
                role="TD",
                name="Jane Smith",
                email="td@example.com",
                source_url=seed_url,
                evidence_text="Tournament Director: Jane Smith",
                confidence=0.9,
            )
        )
        return result


@pytest.fixture
def stub():
    return StubOrchestrator()


@pytest.fixture
def scheduler(stub):
    return JobScheduler(orchestrator=stub)


def space_out(jobs):
    """Give jobs strictly increasing created_at in list order."""
    base = timezone.now() - timedelta(minutes=10)
    for i, job in enumerate(jobs):
        EnrichmentJob.objects.filter(id=job.id).update(created_at=base + timedelta(seconds=i))


class TestEnqueue:
    def test_enqueue_twice_creates_one_job(self, scheduler, tournament):
        first = scheduler.enqueue([tournament.id])
        second = scheduler.enqueue([tournament.id])

        assert first == {"inserted": 1}
        assert second == {"inserted": 0}
        assert EnrichmentJob.objects.filter(tournament=tournament).count() == 1

    def test_string_ids_and_duplicates_in_one_call(self, scheduler, tournament):
        result = scheduler.enqueue([str(tournament.id), str(tournament.id)])

        assert result == {"inserted": 1}

    def test_running_job_blocks_enqueue(self, scheduler, tournament):
        EnrichmentJob.objects.create(tournament=tournament, status=EnrichmentJobStatus.RUNNING)

        assert scheduler.enqueue([tournament.id]) == {"inserted": 0}

    @pytest.mark.parametrize("status", [EnrichmentJobStatus.DONE, EnrichmentJobStatus.ERROR])
    def test_finished_job_allows_new_job(self, scheduler, tournament, status):
        EnrichmentJob.objects.create(tournament=tournament, status=status)

        assert scheduler.enqueue([tournament.id]) == {"inserted": 1}
        assert EnrichmentJob.objects.filter(tournament=tournament).count() == 2

    def test_skipped_unknown_and_invalid_ids_are_ignored(self, scheduler, make_tournament):
        skipped = make_tournament(enrichment_skip=True)

        result = scheduler.enqueue([skipped.id, "not-a-uuid", "6f1b2c3d-0000-4000-8000-000000000000"])

        assert result == {"inserted": 0}
        assert EnrichmentJob.objects.count() == 0

    def test_database_rejects_second_active_job(self, tournament):
        EnrichmentJob.objects.create(tournament=tournament)

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                EnrichmentJob.objects.create(tournament=tournament, status=EnrichmentJobStatus.RUNNING)


class TestRunQueued:
    def test_successful_job_is_done_with_candidates(self, scheduler, tournament):
        scheduler.enqueue([tournament.id])

        results = scheduler.run_queued(limit=5)

        job = EnrichmentJob.objects.get(tournament=tournament)
        assert results == [{"id": str(job.id), "status": "done", "pages": 3}]
        assert job.status == EnrichmentJobStatus.DONE
        assert job.attempt_count == 1
        assert job.pages_fetched_count == 3
        assert job.started_at is not None
        assert job.finished_at is not None
        assert job.last_error is None
        assert TournamentContactCandidate.objects.filter(job=job, tournament=tournament).count() == 1

    def test_batch_isolation(self, scheduler, make_tournament):
        first = make_tournament()
        no_url = make_tournament(official_website_url="", source_url="")
        third = make_tournament()
        scheduler.enqueue([first.id, no_url.id, third.id])
        space_out([EnrichmentJob.objects.get(tournament=t) for t in (first, no_url, third)])

        results = scheduler.run_queued(limit=3)

        statuses = [r["status"] for r in results]
        assert statuses == ["done", "error", "done"]
        assert results[1]["error"] == "tournament_url_missing"
        failed = EnrichmentJob.objects.get(tournament=no_url)
        assert failed.status == EnrichmentJobStatus.ERROR
        assert failed.last_error == "tournament_url_missing"
        assert failed.finished_at is not None
        assert all(job.attempt_count == 1 for job in EnrichmentJob.objects.all())

    def test_oldest_job_runs_first(self, scheduler, stub, make_tournament):
        older = make_tournament()
        newer = make_tournament()
        scheduler.enqueue([newer.id, older.id])
        space_out([EnrichmentJob.objects.get(tournament=older), EnrichmentJob.objects.get(tournament=newer)])

        scheduler.run_queued(limit=1)

        assert stub.calls == [(older.official_website_url, None)]
        assert EnrichmentJob.objects.get(tournament=newer).status == EnrichmentJobStatus.QUEUED

    def test_unexpected_error_is_reported(self, make_tournament):
        tournament = make_tournament()
        stub = StubOrchestrator(failures={tournament.official_website_url: RuntimeError("store exploded")})
        scheduler = JobScheduler(orchestrator=stub)
        scheduler.enqueue([tournament.id])

        with patch("enrichment.services.job_scheduler.capture_job_error") as capture:
            results = scheduler.run_queued()

        assert results[0]["status"] == "error"
        assert results[0]["error"] == "store exploded"
        capture.assert_called_once()

    def test_empty_error_message_becomes_unknown_error(self, make_tournament):
        tournament = make_tournament()
        stub = StubOrchestrator(failures={tournament.official_website_url: RuntimeError()})
        scheduler = JobScheduler(orchestrator=stub)
        scheduler.enqueue([tournament.id])

        results = scheduler.run_queued()

        assert results[0]["error"] == "unknown_error"

    def test_source_url_used_when_no_official_site(self, scheduler, stub, make_tournament):
        tournament = make_tournament(official_website_url="", source_url="https://listing.example.com/t/1")
        scheduler.enqueue([tournament.id])

        scheduler.run_queued()

        assert stub.calls == [("https://listing.example.com/t/1", None)]

    def test_claim_is_compare_and_swap(self, scheduler, tournament):
        scheduler.enqueue([tournament.id])
        job = EnrichmentJob.objects.get(tournament=tournament)

        assert scheduler._claim(job.id) is True
        assert scheduler._claim(job.id) is False

    def test_error_job_can_be_requeued_and_rerun(self, scheduler, make_tournament):
        tournament = make_tournament(official_website_url="", source_url="")
        scheduler.enqueue([tournament.id])
        scheduler.run_queued()

        tournament.official_website_url = "https://fixed.example.com/"
        tournament.save()
        assert scheduler.enqueue([tournament.id]) == {"inserted": 1}
        results = scheduler.run_queued()

        assert results[0]["status"] == "done"

    def test_no_queued_jobs(self, scheduler, db):
        assert scheduler.run_queued() == []

    def test_zero_limit_runs_nothing(self, scheduler, stub, tournament):
        scheduler.enqueue([tournament.id])

        assert scheduler.run_queued(limit=0) == []
        assert stub.calls == []
        assert EnrichmentJob.objects.get(tournament=tournament).status == EnrichmentJobStatus.QUEUED

    def test_skip_while_running_does_not_abort_batch(self, stub, make_tournament):
        skipped = make_tournament()
        other = make_tournament()

        class SkipDuringCrawl(JobScheduler):
            def crawl_tournament(self, tournament, max_pages=None):
                result = super().crawl_tournament(tournament, max_pages)
                if tournament.id == skipped.id:
                    self.skip(tournament.id)
                return result

        scheduler = SkipDuringCrawl(orchestrator=stub)
        scheduler.enqueue([skipped.id, other.id])
        space_out([EnrichmentJob.objects.get(tournament=t) for t in (skipped, other)])

        results = scheduler.run_queued(limit=5)

        assert len(stub.calls) == 2
        assert [r["status"] for r in results] == ["done", "done"]
        assert not EnrichmentJob.objects.filter(tournament=skipped).exists()
        assert EnrichmentJob.objects.get(tournament=other).status == EnrichmentJobStatus.DONE
        orphaned = TournamentContactCandidate.objects.get(tournament=skipped)
        assert orphaned.job is None

    def test_job_removed_after_claim_is_left_out(self, stub, make_tournament):
        removed = make_tournament()
        other = make_tournament()

        class DeleteAfterClaim(JobScheduler):
            def _claim(self, job_id):
                claimed = super()._claim(job_id)
                EnrichmentJob.objects.filter(id=job_id, tournament=removed).delete()
                return claimed

        scheduler = DeleteAfterClaim(orchestrator=stub)
        scheduler.enqueue([removed.id, other.id])
        space_out([EnrichmentJob.objects.get(tournament=t) for t in (removed, other)])

        results = scheduler.run_queued(limit=5)

        assert len(results) == 1
        assert stub.calls == [(other.official_website_url, None)]

    def test_fail_on_deleted_job_is_a_no_op(self, tournament):
        job = EnrichmentJob.objects.create(tournament=tournament)
        EnrichmentJob.objects.filter(id=job.id).delete()

        assert job.fail("boom") is False
        assert job.finish(2) is False
        assert not EnrichmentJob.objects.exists()


class TestSkip:
    def test_skip_removes_active_jobs(self, scheduler, tournament):
        scheduler.enqueue([tournament.id])
        EnrichmentJob.objects.create(tournament=tournament, status=EnrichmentJobStatus.DONE)

        result = scheduler.skip(tournament.id)

        tournament.refresh_from_db()
        assert tournament.enrichment_skip is True
        assert result["jobs_removed"] == 1
        assert list(EnrichmentJob.objects.values_list("status", flat=True)) == ["done"]
        assert scheduler.enqueue([tournament.id]) == {"inserted": 0}

    def test_skip_unknown_tournament(self, scheduler, db):
        with pytest.raises(TournamentNotFound):
            scheduler.skip("6f1b2c3d-0000-4000-8000-000000000000")


class TestRunForTournaments:
    def test_stores_candidates_without_job(self, scheduler, stub, make_tournament):
        ok = make_tournament()
        no_url = make_tournament(official_website_url="", source_url="")

        results = scheduler.run_for_tournaments([ok.id, no_url.id], max_pages=12)

        assert [r["status"] for r in results] == ["done", "error"]
        assert results[1]["error"] == "tournament_url_missing"
        assert stub.calls[0] == (ok.official_website_url, 12)
        candidate = TournamentContactCandidate.objects.get(tournament=ok)
        assert candidate.job is None
        assert EnrichmentJob.objects.count() == 0

    def test_unknown_tournament(self, scheduler, db):
        results = scheduler.run_for_tournaments(["6f1b2c3d-0000-4000-8000-000000000000"])

        assert results[0]["error"] == "tournament_not_found"
