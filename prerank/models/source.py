from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal

SourceType = Literal["rss", "hackernews", "reddit", "github"]


@dataclass(slots=True)
class Source:
    """Configuration for one harvested source."""

    name: str
    type: SourceType
    url: str = ""
    enabled: bool = True
    category: str | None = None
    credibility: float | None = None
    heat: Dict[str, Any] = field(default_factory=dict)
    params: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def limit(self) -> int | None:
        value = self.params.get("limit")
        return int(value) if value is not None else None
