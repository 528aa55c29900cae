"""
Test settings for the Tournament Enrichment Service.

Uses in-memory SQLite and eager Celery for fast test execution.
"""

from .base import *

# Test mode
DEBUG = False

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "testserver"]

# Test database - in-memory SQLite for speed
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Test Cache - use local memory cache
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "unique-snowflake",
    }
}

# Test Celery - run tasks synchronously
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

# Test logging - minimal output
LOGGING["loggers"]["django"]["level"] = "WARNING"
LOGGING["loggers"]["enrichment"]["level"] = "WARNING"

# Disable Sentry in tests
SENTRY_DSN = ""

# Test enrichment settings - fail fast, no network side trips
ENRICHMENT_FETCH_TIMEOUT = 5
ENRICHMENT_FETCH_MAX_RETRIES = 0
ENRICHMENT_PER_HOST_DELAY = 0
ENRICHMENT_RESPECT_ROBOTS = False
