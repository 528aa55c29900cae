"""
Settings selector for the Tournament Enrichment Service.

DJANGO_ENV picks the environment module (production, test, development).
Development is the default so a bare checkout runs against SQLite.
"""

import os

env = os.getenv("DJANGO_ENV", "development")

if env == "production":
    from .production import *
elif env == "test":
    from .test import *
else:
    from .development import *
