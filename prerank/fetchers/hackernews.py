from __future__ import annotations

from typing import Any, List

from ..models import RawItem, Source
from ..processors.normalize import parse_timestamp
from ..utils.logging import get_logger
from .http import DEFAULT_TIMEOUT, get_json

logger = get_logger("prerank.fetchers.hackernews")

ALGOLIA_SEARCH_URL = "https://hn.algolia.com/api/v1/search"
ITEM_URL = "https://news.ycombinator.com/item?id={id}"


def _parse_hits(payload: Any, source: Source) -> List[RawItem]:
    if not isinstance(payload, dict) or not isinstance(payload.get("hits"), list):
        raise ValueError("Unexpected Hacker News payload shape: expected {'hits': [...]}")

    items: List[RawItem] = []
    for rank, hit in enumerate(payload["hits"], start=1):
        if not isinstance(hit, dict):
            continue
        story_id = str(hit.get("objectID") or "").strip()
        title = (hit.get("title") or hit.get("story_title") or "").strip()
        if not story_id or not title:
            continue
        discussion = ITEM_URL.format(id=story_id)
        items.append(
            RawItem(
                id=story_id,
                title=title,
                # Ask HN and similar posts have no external URL
                url=(hit.get("url") or discussion).strip(),
                source=source.name,
                category=source.category,
                score=float(hit.get("points") or 0),
                comments=int(hit.get("num_comments") or 0),
                published_at=parse_timestamp(hit.get("created_at_i") or hit.get("created_at")),
                extras={"rank": rank, "author": hit.get("author"), "discussion_url": discussion},
            )
        )
    return items


def fetch_hackernews_items(source: Source, *, timeout: float = DEFAULT_TIMEOUT) -> List[RawItem]:
    """Front-page stories from the Algolia Hacker News search API."""
    if source.type != "hackernews":
        raise ValueError("fetch_hackernews_items requires a source of type 'hackernews'")

    limit = source.limit or 30
    params = {"tags": source.params.get("tags", "front_page"), "hitsPerPage": limit}
    payload = get_json(source.url or ALGOLIA_SEARCH_URL, params=params, headers=source.headers, timeout=timeout)
    items = _parse_hits(payload, source)[:limit]
    logger.info("Fetched %d Hacker News stories from %s", len(items), source.name)
    return items
