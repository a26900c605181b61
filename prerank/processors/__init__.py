"""Processing stages: normalization, merge & dedup, recency filter, projection."""

from .normalize import (
    clean_html_to_text,
    fold_dashes,
    normalize_plain_text,
    normalize_title_key,
    parse_timestamp,
)
from .dedup import (
    DedupSettings,
    DedupStats,
    Deduplicator,
    dedup_exact,
    deduplicate,
    merge_similar,
    merge_sources,
    title_similarity,
    to_candidate,
)
from .recency import filter_recent
from .projection import project, project_all

__all__ = [
    "clean_html_to_text",
    "fold_dashes",
    "normalize_plain_text",
    "normalize_title_key",
    "parse_timestamp",
    "DedupSettings",
    "DedupStats",
    "Deduplicator",
    "dedup_exact",
    "deduplicate",
    "merge_similar",
    "merge_sources",
    "title_similarity",
    "to_candidate",
    "filter_recent",
    "project",
    "project_all",
]
