"""
Celery configuration for the Tournament Enrichment Service.

Enrichment batches run on their own queue so a slow crawl never blocks
other work on the default queue.
"""

import os
from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("tournament_enrichment")

# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

app.conf.task_queues = {
    "enrichment": {
        "exchange": "enrichment",
        "routing_key": "enrichment",
    },
    "default": {
        "exchange": "default",
        "routing_key": "default",
    },
}

# Default task routing
app.conf.task_default_queue = "default"
app.conf.task_default_exchange = "default"
app.conf.task_default_routing_key = "default"

app.conf.task_routes = {
    "enrichment.tasks.run_queued_enrichment": {"queue": "enrichment"},
    "enrichment.tasks.enqueue_enrichment": {"queue": "default"},
}

app.conf.beat_schedule = {
    "run-queued-enrichment-every-10-minutes": {
        "task": "enrichment.tasks.run_queued_enrichment",
        "schedule": crontab(minute="*/10"),  # Every 10 minutes
    },
}
