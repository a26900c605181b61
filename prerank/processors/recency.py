from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from ..models import Candidate
from ..utils.logging import get_logger

logger = get_logger("prerank.processors.recency")


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def filter_recent(
    candidates: Iterable[Candidate],
    *,
    max_age_hours: float,
    now: Optional[datetime] = None,
) -> List[Candidate]:
    """Drop candidates published before ``now - max_age_hours``.

    Undated candidates are kept; scoring gives them a low timeliness value.
    """
    now = _as_utc(now or datetime.now(timezone.utc))
    cutoff = now - timedelta(hours=max_age_hours)
    kept: List[Candidate] = []
    dropped = 0
    for cand in candidates:
        if cand.published_at is not None and _as_utc(cand.published_at) < cutoff:
            dropped += 1
            logger.debug("Too old (%s): %s", cand.published_at.isoformat(), cand.title)
            continue
        kept.append(cand)
    logger.info("Recency filter: kept=%d dropped=%d (max_age_hours=%s)", len(kept), dropped, max_age_hours)
    return kept
