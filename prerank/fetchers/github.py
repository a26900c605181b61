from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from ..models import RawItem, Source
from ..processors.normalize import normalize_plain_text, parse_timestamp
from ..utils.logging import get_logger
from .http import DEFAULT_TIMEOUT, get_json

logger = get_logger("prerank.fetchers.github")

SEARCH_URL = "https://api.github.com/search/repositories"


def _parse_search(payload: Any, source: Source) -> List[RawItem]:
    if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
        raise ValueError("Unexpected GitHub payload shape: expected {'items': [...]}")

    items: List[RawItem] = []
    for rank, repo in enumerate(payload["items"], start=1):
        if not isinstance(repo, dict):
            continue
        full_name = (repo.get("full_name") or "").strip()
        url = (repo.get("html_url") or "").strip()
        if not full_name or not url:
            continue
        description = normalize_plain_text(repo.get("description"))
        title = f"{full_name}: {description}" if description else full_name
        items.append(
            RawItem(
                id=str(repo.get("id") or full_name),
                title=title,
                url=url,
                source=source.name,
                category=source.category,
                score=float(repo.get("stargazers_count") or 0),
                published_at=parse_timestamp(repo.get("created_at")),
                extras={
                    "rank": rank,
                    "summary": description,
                    "language": repo.get("language"),
                    "forks": repo.get("forks_count"),
                },
            )
        )
    return items


def fetch_github_items(source: Source, *, timeout: float = DEFAULT_TIMEOUT) -> List[RawItem]:
    """Most-starred repositories created within ``params.since_days`` (default 7)."""
    if source.type != "github":
        raise ValueError("fetch_github_items requires a source of type 'github'")

    since_days = int(source.params.get("since_days", 7))
    since = (datetime.now(timezone.utc) - timedelta(days=since_days)).date().isoformat()
    query = f"created:>{since}"
    if source.params.get("query"):
        query = f"{source.params['query']} {query}"
    limit = source.limit or 30

    headers: Dict[str, str] = {"Accept": "application/vnd.github+json", **source.headers}
    token = os.getenv("GITHUB_TOKEN")
    if token:
        headers["Authorization"] = f"Bearer {token}"

    payload = get_json(
        source.url or SEARCH_URL,
        params={"q": query, "sort": "stars", "order": "desc", "per_page": limit},
        headers=headers,
        timeout=timeout,
    )
    items = _parse_search(payload, source)[:limit]
    logger.info("Fetched %d GitHub repositories from %s", len(items), source.name)
    return items
