"""Source heat: per-source normalization of raw popularity signals.

Sources report popularity on incompatible scales (stars, points, upvotes,
board positions, or nothing at all). Each source is mapped to a strategy
that turns its raw metrics into a 0-25 value.
"""

from __future__ import annotations

import math
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from ..models import Candidate

MAX_HEAT = 25.0

HeatFn = Callable[[Candidate], float]


def clamp_heat(value: float) -> float:
    return round(max(0.0, min(MAX_HEAT, float(value))), 2)


def log_heat(*, weight: float = 6.0, comment_weight: float = 0.0) -> HeatFn:
    """Dampened engagement for high-variance sources (points, upvotes)."""

    def _heat(cand: Candidate) -> float:
        engagement = max(0.0, cand.raw_score) + comment_weight * max(0, cand.comments or 0)
        return clamp_heat(weight * math.log10(1.0 + engagement))

    return _heat


def banded_heat(bands: Sequence[Tuple[float, float]], *, below: float = 0.0) -> HeatFn:
    """Threshold lookup for fixed-scale metrics such as repository stars.

    ``bands`` is a list of ``(min_raw_score, heat)`` pairs; the highest
    threshold reached wins.
    """
    ordered = tuple(sorted(((float(t), float(h)) for t, h in bands), reverse=True))

    def _heat(cand: Candidate) -> float:
        for threshold, heat in ordered:
            if cand.raw_score >= threshold:
                return clamp_heat(heat)
        return clamp_heat(below)

    return _heat


def rank_heat(*, top: float = MAX_HEAT, step: float = 1.0, missing: float = 5.0) -> HeatFn:
    """Position on a trending board (``metadata['rank']``, 1-based)."""

    def _heat(cand: Candidate) -> float:
        rank = cand.metadata.get("rank")
        try:
            position = int(rank)
        except (TypeError, ValueError):
            return clamp_heat(missing)
        return clamp_heat(top - (max(position, 1) - 1) * step)

    return _heat


def flat_heat(value: float = 8.0) -> HeatFn:
    """Constant heat for sources without a popularity signal."""
    fixed = clamp_heat(value)

    def _heat(cand: Candidate) -> float:
        return fixed

    return _heat


def _from_log(cfg: Mapping[str, Any]) -> HeatFn:
    return log_heat(weight=float(cfg.get("weight", 6.0)), comment_weight=float(cfg.get("comment_weight", 0.0)))


def _from_bands(cfg: Mapping[str, Any]) -> HeatFn:
    bands = cfg.get("bands")
    if not isinstance(bands, list) or not bands:
        raise ValueError("'bands' strategy requires a non-empty 'bands' list of [threshold, heat] pairs")
    pairs = []
    for entry in bands:
        if not isinstance(entry, (list, tuple)) or len(entry) != 2:
            raise ValueError(f"Invalid band entry: {entry!r}")
        pairs.append((float(entry[0]), float(entry[1])))
    return banded_heat(pairs, below=float(cfg.get("below", 0.0)))


def _from_rank(cfg: Mapping[str, Any]) -> HeatFn:
    return rank_heat(
        top=float(cfg.get("top", MAX_HEAT)),
        step=float(cfg.get("step", 1.0)),
        missing=float(cfg.get("missing", 5.0)),
    )


def _from_flat(cfg: Mapping[str, Any]) -> HeatFn:
    return flat_heat(float(cfg.get("value", 8.0)))


STRATEGIES: Mapping[str, Callable[[Mapping[str, Any]], HeatFn]] = MappingProxyType(
    {
        "log": _from_log,
        "bands": _from_bands,
        "rank": _from_rank,
        "flat": _from_flat,
    }
)


def heat_from_config(cfg: Mapping[str, Any]) -> HeatFn:
    """Build a heat function from a YAML mapping such as ``{strategy: log, weight: 7}``."""
    name = str(cfg.get("strategy", "")).strip()
    factory = STRATEGIES.get(name)
    if factory is None:
        raise ValueError(f"Unknown heat strategy '{name}'. Allowed: {sorted(STRATEGIES)}")
    return factory(cfg)


GITHUB_STAR_BANDS = ((5000, 25), (2000, 20), (1000, 16), (500, 12), (200, 8), (50, 4))

DEFAULT_TYPE_HEAT: Mapping[str, HeatFn] = MappingProxyType(
    {
        "hackernews": log_heat(weight=7.0, comment_weight=0.3),
        "reddit": log_heat(weight=5.5, comment_weight=0.2),
        "github": banded_heat(GITHUB_STAR_BANDS, below=2.0),
        "rss": flat_heat(8.0),
    }
)


class HeatRegistry:
    """Resolve a candidate to its heat strategy: source name first, then type."""

    def __init__(
        self,
        by_source: Optional[Mapping[str, HeatFn]] = None,
        *,
        by_type: Optional[Mapping[str, HeatFn]] = None,
        default: Optional[HeatFn] = None,
    ) -> None:
        self._by_source: Mapping[str, HeatFn] = MappingProxyType(dict(by_source or {}))
        self._by_type: Mapping[str, HeatFn] = MappingProxyType(
            dict(DEFAULT_TYPE_HEAT if by_type is None else by_type)
        )
        self._default = default or flat_heat(5.0)

    def with_source(self, name: str, fn: HeatFn) -> "HeatRegistry":
        by_source: Dict[str, HeatFn] = dict(self._by_source)
        by_source[name] = fn
        return HeatRegistry(by_source, by_type=self._by_type, default=self._default)

    def resolve(self, cand: Candidate) -> HeatFn:
        return self._by_source.get(cand.source) or self._by_type.get(cand.source_type) or self._default

    def score(self, cand: Candidate) -> float:
        return clamp_heat(self.resolve(cand)(cand))
