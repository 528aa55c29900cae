"""
Pytest configuration and fixtures for the tournament enrichment test suite.
"""

import pytest


@pytest.fixture(scope="session")
def django_db_setup(django_db_blocker):
    """Configure the test database and run migrations."""
    from django.core.management import call_command

    with django_db_blocker.unblock():
        call_command("migrate", "--run-syncdb", verbosity=0)


@pytest.fixture
def tournament(db):
    """A tournament with an official website."""
    from enrichment.models import Tournament

    return Tournament.objects.create(
        name="Spring Classic",
        slug="spring-classic",
        sport="soccer",
        city="Austin",
        state="TX",
        official_website_url="https://springclassic.example.com/",
    )


@pytest.fixture
def tournament_without_url(db):
    """A tournament with neither a website nor a source URL."""
    from enrichment.models import Tournament

    return Tournament.objects.create(name="No Website Cup", slug="no-website-cup")


@pytest.fixture
def make_tournament(db):
    """Factory for tournaments with a distinct website each."""
    from enrichment.models import Tournament

    counter = {"n": 0}

    def _make(**kwargs):
        counter["n"] += 1
        n = counter["n"]
        defaults = {
            "name": f"Tournament {n}",
            "slug": f"tournament-{n}",
            "city": "Austin",
            "state": "TX",
            "official_website_url": f"https://t{n}.example.com/",
        }
        defaults.update(kwargs)
        return Tournament.objects.create(**defaults)

    return _make


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()
