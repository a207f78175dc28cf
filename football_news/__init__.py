"""Top-level package for the football news ingestion pipeline.

This package contains the entry points and all supporting modules for
collecting football news from RSS feeds and search APIs under call quotas,
scoring it, de-duplicating it and persisting the survivors.
"""

__all__ = []
