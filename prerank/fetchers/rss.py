from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import urlparse

import feedparser

from ..models import RawItem, Source
from ..processors.normalize import clean_html_to_text, truncate_words
from ..utils.logging import get_logger
from .http import DEFAULT_TIMEOUT, get_response

logger = get_logger("prerank.fetchers.rss")

SUMMARY_MAX_WORDS = 80


def _parse_datetime(entry: dict) -> Optional[datetime]:
    # feedparser may provide 'published_parsed' or 'updated_parsed' (UTC struct_time)
    for key in ("published_parsed", "updated_parsed"):
        tm = entry.get(key)
        if tm:
            try:
                return datetime(*tm[:6], tzinfo=timezone.utc)
            except (TypeError, ValueError):
                return None
    return None


def _is_http_url(link: str) -> bool:
    parsed = urlparse(link)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _entry_category(entry: dict) -> Optional[str]:
    tags = entry.get("tags") or []
    for tag in tags:
        term = (tag.get("term") or "").strip()
        if term:
            return term.lower()
    return None


def fetch_rss_items(source: Source, *, timeout: float = DEFAULT_TIMEOUT) -> List[RawItem]:
    """Fetch and parse RSS/Atom feed entries.

    The request goes through ``requests`` for consistent timeouts and
    headers; the body is parsed by ``feedparser`` which handles the various
    feed dialects. Entries without an absolute http(s) link are skipped;
    feedparser falls back to a non-URL <guid> when <link> is missing.
    """
    if source.type != "rss":
        raise ValueError("fetch_rss_items requires a source of type 'rss'")

    resp = get_response(source.url, headers=source.headers, timeout=timeout)
    parsed = feedparser.parse(resp.content)
    if getattr(parsed, "bozo", False):
        # bozo is set on feed errors even when entries were still parsed
        logger.debug("Feed 'bozo' flagged for %s: %s", source.url, getattr(parsed, "bozo_exception", None))

    items: List[RawItem] = []
    for entry in getattr(parsed, "entries", []) or []:
        link = (entry.get("link") or "").strip()
        if not _is_http_url(link):
            logger.debug("Skipping entry without http(s) link from %s: %r", source.name, link)
            continue
        description = entry.get("summary")
        contents = entry.get("content")
        if not description and contents and isinstance(contents, list):
            description = contents[0].get("value")
        summary = truncate_words(clean_html_to_text(description), SUMMARY_MAX_WORDS)

        extras = {"summary": summary}
        if entry.get("author"):
            extras["author"] = entry.get("author")

        items.append(
            RawItem(
                id=str(entry.get("id") or link),
                title=(entry.get("title") or "").strip(),
                url=link,
                source=source.name,
                category=source.category or _entry_category(entry),
                published_at=_parse_datetime(entry),
                extras=extras,
            )
        )
        if source.limit is not None and len(items) >= source.limit:
            break

    logger.info("Fetched %d RSS entries from %s", len(items), source.name)
    return items
