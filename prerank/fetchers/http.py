from __future__ import annotations

from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

import requests

from ..utils.logging import get_logger

logger = get_logger("prerank.fetchers.http")

DEFAULT_TIMEOUT = 15

DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/127.0.0.0 Safari/537.36"
    )
}


def validated_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid URL for HTTP fetch: {url}")
    return url


def get_response(
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> requests.Response:
    """GET with default headers and a hard timeout; raises on HTTP errors."""
    merged = {**DEFAULT_HEADERS, **(headers or {})}
    logger.debug("GET %s params=%s", url, dict(params or {}))
    resp = requests.get(validated_url(url), params=params, headers=merged, timeout=timeout)
    if resp.status_code >= 400:
        logger.warning("HTTP fetch failed (%s): %s", resp.status_code, url)
        resp.raise_for_status()
    return resp


def get_json(
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    resp = get_response(url, params=params, headers=headers, timeout=timeout)
    try:
        return resp.json()
    except ValueError as exc:
        raise ValueError(f"Response from {url} is not valid JSON") from exc
