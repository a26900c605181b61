"""Source adapters. Each turns one configured source into a list of RawItems."""

from __future__ import annotations

from typing import Callable, Dict, List

from ..models import RawItem, Source
from .github import fetch_github_items
from .hackernews import fetch_hackernews_items
from .http import DEFAULT_TIMEOUT
from .reddit import fetch_reddit_items
from .rss import fetch_rss_items

Fetcher = Callable[..., List[RawItem]]

FETCHERS: Dict[str, Fetcher] = {
    "rss": fetch_rss_items,
    "hackernews": fetch_hackernews_items,
    "reddit": fetch_reddit_items,
    "github": fetch_github_items,
}


def fetch_source(source: Source, *, timeout: float = DEFAULT_TIMEOUT) -> List[RawItem]:
    fetcher = FETCHERS.get(source.type)
    if fetcher is None:
        raise ValueError(f"Unknown source type: {source.type}")
    return fetcher(source, timeout=timeout)


__all__ = [
    "FETCHERS",
    "Fetcher",
    "fetch_source",
    "fetch_rss_items",
    "fetch_hackernews_items",
    "fetch_reddit_items",
    "fetch_github_items",
]
