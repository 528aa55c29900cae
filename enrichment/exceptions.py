"""
Exceptions raised by the enrichment pipeline.

Messages double as the machine-readable ``last_error`` stored on failed jobs,
so they are short snake_case codes.
"""


class EnrichmentError(Exception):
    """Base class for enrichment failures."""

    code = "enrichment_error"

    def __init__(self, message: str = None):
        super().__init__(message or self.code)


class TournamentUrlMissing(EnrichmentError):
    """The tournament has neither an official website nor a source URL."""

    code = "tournament_url_missing"


class TournamentNotFound(EnrichmentError):
    """A job or request referenced a tournament that does not exist."""

    code = "tournament_not_found"


class InvalidReviewItem(EnrichmentError):
    """A review selection named an unknown kind or a candidate of another tournament."""

    code = "invalid_review_item"
