from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Set

DEFAULT_CATEGORY = "general"


@dataclass(frozen=True, slots=True)
class RawItem:
    """A single harvested record as emitted by a source adapter."""

    id: str
    title: str
    url: str
    source: str
    category: Optional[str] = None
    score: Optional[float] = None
    comments: Optional[int] = None
    published_at: Optional[datetime] = None
    extras: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Candidate:
    """Deduplicated story carried through one pipeline run.

    The cross-platform fields are only touched by the fuzzy merge pass; for
    a single-source story they stay at their defaults.
    """

    id: str
    title: str
    url: str
    source: str
    source_type: str
    category: str = DEFAULT_CATEGORY
    score: Optional[float] = None
    comments: Optional[int] = None
    published_at: Optional[datetime] = None
    summary: str = ""
    key_quotes: List[str] = field(default_factory=list)
    fetched_at: Optional[datetime] = None
    raw_score: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    cross_platform_count: int = 1
    related_sources: Set[str] = field(default_factory=set)
    merged_titles: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.related_sources.add(self.source)
        self.cross_platform_count = len(self.related_sources)

    @property
    def key(self) -> str:
        return f"{self.source}:{self.id}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "source": self.source,
            "source_type": self.source_type,
            "category": self.category,
            "score": self.score,
            "comments": self.comments,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "summary": self.summary,
            "key_quotes": list(self.key_quotes),
            "fetched_at": self.fetched_at.isoformat() if self.fetched_at else None,
            "raw_score": self.raw_score,
            "metadata": dict(self.metadata),
            "cross_platform_count": self.cross_platform_count,
            "related_sources": sorted(self.related_sources),
            "merged_titles": list(self.merged_titles),
        }


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    timeliness: float
    source_heat: float
    keywords: float
    credibility: float

    @property
    def total(self) -> float:
        return round(self.timeliness + self.source_heat + self.keywords + self.credibility, 2)

    def to_dict(self) -> Dict[str, float]:
        return {
            "timeliness": self.timeliness,
            "source_heat": self.source_heat,
            "keywords": self.keywords,
            "credibility": self.credibility,
        }


@dataclass(frozen=True, slots=True)
class ScoredCandidate:
    candidate: Candidate
    prerank_score: float
    breakdown: ScoreBreakdown


@dataclass(frozen=True, slots=True)
class SourceError:
    """Diagnostic record for a source that failed during harvesting."""

    source: str
    kind: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"source": self.source, "kind": self.kind, "message": self.message}
