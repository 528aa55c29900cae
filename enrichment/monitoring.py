"""
Sentry error tracking for enrichment jobs.

- Adds breadcrumbs for job context (tournament, URL, job id)
- Filters sensitive data (cookies, API keys)
- Captures unexpected job failures with tags

Sentry itself is initialised in settings only when SENTRY_DSN is set; without
a DSN every call here is a no-op inside the SDK.

Usage:
    from enrichment.monitoring import add_enrichment_breadcrumb, capture_job_error

    try:
        result = scheduler.crawl_tournament(tournament)
    except Exception as e:
        capture_job_error(e, job=job, url=tournament.crawl_url)
"""

import logging
from typing import Any, Dict, Optional

import sentry_sdk

logger = logging.getLogger(__name__)

# Sensitive fields to filter from Sentry events
SENSITIVE_FIELDS = {
    "cookies",
    "cookie",
    "api_key",
    "apikey",
    "api-key",
    "authorization",
    "password",
    "secret",
    "token",
}


def filter_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace values whose key names look like credentials.

    Nested dicts are filtered recursively; non-dict input is returned as-is.
    """
    if not isinstance(data, dict):
        return data

    filtered = {}
    for key, value in data.items():
        if any(sensitive in str(key).lower() for sensitive in SENSITIVE_FIELDS):
            filtered[key] = "[Filtered]"
        elif isinstance(value, dict):
            filtered[key] = filter_sensitive_data(value)
        else:
            filtered[key] = value
    return filtered


def add_enrichment_breadcrumb(
    tournament_id: Any,
    url: Optional[str],
    message: str = "Enrichment operation",
    level: str = "info",
    extra_data: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Add a breadcrumb to Sentry for enrichment context.

    Args:
        tournament_id: Tournament being enriched
        url: Crawl seed URL
        message: Description of the operation
        level: Log level (info, warning, error)
        extra_data: Additional context data
    """
    data = {"tournament_id": str(tournament_id), "url": url or ""}
    if extra_data:
        data.update(filter_sensitive_data(extra_data))

    try:
        sentry_sdk.add_breadcrumb(category="enrichment", message=message, level=level, data=data)
    except Exception as e:
        logger.warning(f"Failed to add Sentry breadcrumb: {e}")


def capture_job_error(
    error: Exception,
    job=None,
    url: Optional[str] = None,
    extra_context: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Capture an enrichment job failure to Sentry with job context.

    Args:
        error: The exception that failed the job
        job: EnrichmentJob instance (optional)
        url: Crawl seed URL
        extra_context: Additional context (filtered for sensitive data)
    """
    tournament_id = str(job.tournament_id) if job else None

    add_enrichment_breadcrumb(
        tournament_id=tournament_id,
        url=url,
        message=f"Error: {type(error).__name__}",
        level="error",
        extra_data=extra_context,
    )

    try:
        with sentry_sdk.new_scope() as scope:
            scope.set_tag("enrichment.error", type(error).__name__)
            if job:
                scope.set_tag("enrichment.attempt", job.attempt_count)
                scope.set_extra("job_id", str(job.id))
                scope.set_extra("tournament_id", tournament_id)
            if url:
                scope.set_extra("crawl_url", url)
            if extra_context:
                scope.set_extra("enrichment_context", filter_sensitive_data(extra_context))

            sentry_sdk.capture_exception(error)

    except Exception as e:
        logger.warning(f"Failed to capture exception to Sentry: {e}")
