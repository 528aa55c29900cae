"""
Enrichment application configuration.
"""

from django.apps import AppConfig


class EnrichmentConfig(AppConfig):
    """Configuration for the enrichment Django application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "enrichment"
    verbose_name = "Tournament Enrichment"
