"""
Enrichment services: link ranking, crawl orchestration, job scheduling and
the candidate store.
"""
