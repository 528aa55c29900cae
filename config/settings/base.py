"""
Django base settings for the Tournament Enrichment Service.

This module contains settings common to all environments.
For more information on this file, see
https://docs.djangoproject.com/en/4.2/topics/settings/
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv(
    "SECRET_KEY",
    "django-insecure-enrichment-dev-key-change-in-production"
)

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.getenv("DEBUG", "True") == "True"

ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")


# Application definition
# The enrichment service has no HTTP surface of its own; review screens and
# queue endpoints live in the referee site and talk to the shared database.

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    # Local apps
    "enrichment",
]

MIDDLEWARE = []


# Database
# https://docs.djangoproject.com/en/4.2/ref/settings/#databases
# Configured in environment-specific settings (development.py, production.py, test.py)

DATABASES = {
    # Override in environment-specific settings
}


# Internationalization
# https://docs.djangoproject.com/en/4.2/topics/i18n/

LANGUAGE_CODE = "en-us"

TIME_ZONE = "UTC"

USE_I18N = True

USE_TZ = True


# Default primary key field type
# https://docs.djangoproject.com/en/4.2/ref/settings/#default-auto-field

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# Cache Configuration
# Configured in environment-specific settings

CACHES = {
    # Override in environment-specific settings
}


# Celery Configuration
# https://docs.celeryproject.org/en/stable/django/first-steps-with-django.html

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/1")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = 30 * 60  # 30 minutes max for an enrichment batch


# Logging Configuration
# https://docs.djangoproject.com/en/4.2/topics/logging/

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": os.getenv("LOG_LEVEL", "INFO"),
        },
        "enrichment": {
            "handlers": ["console"],
            "level": os.getenv("LOG_LEVEL", "INFO"),
        },
    },
}


# Sentry Configuration
# https://docs.sentry.io/platforms/python/guides/django/

SENTRY_DSN = os.getenv("SENTRY_DSN", "")
SENTRY_ENVIRONMENT = os.getenv("SENTRY_ENVIRONMENT", "development")
SENTRY_TRACES_SAMPLE_RATE = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1"))

# Initialize Sentry
import sentry_sdk

if SENTRY_DSN:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        # Contact emails are scraped data, keep them out of default PII capture
        send_default_pii=False,
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        environment=SENTRY_ENVIRONMENT,
    )


# Enrichment Configuration

# Stable user agent with a contact URL so site owners can reach us
ENRICHMENT_USER_AGENT = os.getenv(
    "ENRICHMENT_USER_AGENT",
    "TournamentEnricher/1.0 (+https://www.refereeinsights.com/about/crawler)",
)

# Whole-request timeout for one page fetch (seconds)
ENRICHMENT_FETCH_TIMEOUT = float(os.getenv("ENRICHMENT_FETCH_TIMEOUT", "10"))

# Minimum spacing between fetches to the same host (seconds)
ENRICHMENT_PER_HOST_DELAY = float(os.getenv("ENRICHMENT_PER_HOST_DELAY", "0.5"))

# Response bodies are truncated after this many bytes
ENRICHMENT_MAX_PAGE_BYTES = int(os.getenv("ENRICHMENT_MAX_PAGE_BYTES", str(1024 * 1024)))

# Retries for connection errors and 5xx responses (timeouts are never retried)
ENRICHMENT_FETCH_MAX_RETRIES = int(os.getenv("ENRICHMENT_FETCH_MAX_RETRIES", "2"))

# Honour robots.txt disallow rules for our user agent
ENRICHMENT_RESPECT_ROBOTS = os.getenv("ENRICHMENT_RESPECT_ROBOTS", "True") == "True"

# Page budget per tournament crawl, and the ceiling for deep crawls
ENRICHMENT_MAX_PAGES = int(os.getenv("ENRICHMENT_MAX_PAGES", "8"))
ENRICHMENT_DEEP_MAX_PAGES = int(os.getenv("ENRICHMENT_DEEP_MAX_PAGES", "16"))

# Jobs processed per scheduled batch
ENRICHMENT_BATCH_LIMIT = int(os.getenv("ENRICHMENT_BATCH_LIMIT", "10"))

# Candidates persisted per kind for one job
ENRICHMENT_CANDIDATE_CAPS = {
    "contact": 20,
    "venue": 10,
    "comp": 5,
    "date": 5,
    "attribute": 10,
}
