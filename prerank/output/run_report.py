from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..models import SourceError


@dataclass(slots=True)
class RunReport:
    date: str
    sources_attempted: int = 0
    sources_failed: int = 0
    fetched: int = 0
    deduplicated: int = 0
    url_duplicates: int = 0
    fuzzy_merged: int = 0
    after_recency: int = 0
    scored: int = 0
    selected: int = 0
    errors: List[SourceError] = field(default_factory=list)

    def record_error(self, error: SourceError) -> None:
        self.errors.append(error)
        self.sources_failed = len(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sources_attempted": self.sources_attempted,
            "sources_failed": self.sources_failed,
            "fetched": self.fetched,
            "deduplicated": self.deduplicated,
            "url_duplicates": self.url_duplicates,
            "fuzzy_merged": self.fuzzy_merged,
            "after_recency": self.after_recency,
            "scored": self.scored,
            "selected": self.selected,
        }

    def summary(self) -> str:
        return (
            f"date={self.date} sources={self.sources_attempted} failed={self.sources_failed} "
            f"fetched={self.fetched} deduplicated={self.deduplicated} "
            f"after_recency={self.after_recency} scored={self.scored} selected={self.selected}"
        )

    @classmethod
    def from_artifact(cls, date: str, stats: Dict[str, Any], errors: List[SourceError]) -> "RunReport":
        known = {k: int(v) for k, v in stats.items() if k in cls.__dataclass_fields__ and k not in ("date", "errors")}
        report = cls(date=date, **known)
        report.errors = list(errors)
        return report
