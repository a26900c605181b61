from __future__ import annotations

from typing import Any, List

from ..models import RawItem, Source
from ..processors.normalize import normalize_plain_text, parse_timestamp, truncate_words
from ..utils.logging import get_logger
from .http import DEFAULT_TIMEOUT, get_json

logger = get_logger("prerank.fetchers.reddit")

BASE_URL = "https://www.reddit.com"
SUMMARY_MAX_WORDS = 60


def _parse_listing(payload: Any, source: Source) -> List[RawItem]:
    data = payload.get("data") if isinstance(payload, dict) else None
    children = data.get("children") if isinstance(data, dict) else None
    if not isinstance(children, list):
        raise ValueError("Unexpected Reddit payload shape: expected a listing")

    items: List[RawItem] = []
    for rank, child in enumerate(children, start=1):
        post = child.get("data") if isinstance(child, dict) else None
        if not isinstance(post, dict) or post.get("stickied"):
            continue
        post_id = str(post.get("id") or "").strip()
        title = (post.get("title") or "").strip()
        if not post_id or not title:
            continue
        permalink = BASE_URL + (post.get("permalink") or f"/comments/{post_id}")
        url = permalink if post.get("is_self") else (post.get("url") or permalink)
        items.append(
            RawItem(
                id=post_id,
                title=title,
                url=url.strip(),
                source=source.name,
                category=source.category,
                score=float(post.get("ups") or post.get("score") or 0),
                comments=int(post.get("num_comments") or 0),
                published_at=parse_timestamp(post.get("created_utc")),
                extras={
                    "rank": rank,
                    "subreddit": post.get("subreddit"),
                    "summary": truncate_words(normalize_plain_text(post.get("selftext")), SUMMARY_MAX_WORDS),
                    "discussion_url": permalink,
                },
            )
        )
    return items


def fetch_reddit_items(source: Source, *, timeout: float = DEFAULT_TIMEOUT) -> List[RawItem]:
    """Hot posts of one subreddit (``params.subreddit``) via the public JSON listing."""
    if source.type != "reddit":
        raise ValueError("fetch_reddit_items requires a source of type 'reddit'")

    subreddit = str(source.params.get("subreddit") or "").strip()
    if not source.url and not subreddit:
        raise ValueError(f"Reddit source '{source.name}' needs params.subreddit or url")
    url = source.url or f"{BASE_URL}/r/{subreddit}/hot.json"
    limit = source.limit or 25
    payload = get_json(url, params={"limit": limit}, headers=source.headers, timeout=timeout)
    items = _parse_listing(payload, source)[:limit]
    logger.info("Fetched %d Reddit posts from %s", len(items), source.name)
    return items
