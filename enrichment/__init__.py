"""
Tournament enrichment Django application.

Crawls a tournament's own website, extracts referee-relevant facts
(contacts, venues, pay rates, dates, on-site attributes) and stages them
as candidates for human review before they reach canonical records.
"""
