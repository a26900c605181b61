from __future__ import annotations

from typing import Any, Dict, Iterable, List

from ..models import ScoredCandidate


def project(item: ScoredCandidate) -> Dict[str, Any]:
    """Trim a scored candidate to the fields the curation stage reads."""
    c = item.candidate
    return {
        "id": c.id,
        "title": c.title,
        "url": c.url,
        "source": c.source,
        "source_type": c.source_type,
        "category": c.category,
        "summary": c.summary,
        "published_at": c.published_at.isoformat() if c.published_at else None,
        "cross_platform_count": c.cross_platform_count,
        "related_sources": sorted(c.related_sources),
        "merged_titles": list(c.merged_titles),
        "prerank_score": item.prerank_score,
        "breakdown": item.breakdown.to_dict(),
    }


def project_all(items: Iterable[ScoredCandidate]) -> List[Dict[str, Any]]:
    return [project(it) for it in items]
