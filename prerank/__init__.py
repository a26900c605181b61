"""Top-level package for the prerank candidate pipeline.

This package contains the application entrypoint and all supporting modules
for harvesting items from many sources, merging and deduplicating them, and
pre-ranking them into a bounded, diverse shortlist.
"""

__all__ = []
