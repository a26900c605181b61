from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from ..models import ScoredCandidate
from ..utils.logging import get_logger

logger = get_logger("prerank.analysis.selector")


@dataclass(frozen=True, slots=True)
class SelectionConfig:
    cap: int = 40
    per_source: int = 3
    per_category: int = 2
    score_floor: float = 50.0


@dataclass(frozen=True, slots=True)
class SelectionResult:
    items: Tuple[ScoredCandidate, ...]
    guaranteed: int
    fill: int
    cap: int

    def to_dict(self) -> Dict[str, int]:
        return {"guaranteed": self.guaranteed, "fill": self.fill, "cap": self.cap, "selected": len(self.items)}


def rank_by_score(items: Iterable[ScoredCandidate]) -> Tuple[ScoredCandidate, ...]:
    """Total score desc, then source heat desc; input order breaks ties."""
    return tuple(sorted(items, key=lambda it: (-it.prerank_score, -it.breakdown.source_heat)))


def _group(items: Iterable[ScoredCandidate], attr: str) -> Dict[str, List[ScoredCandidate]]:
    groups: Dict[str, List[ScoredCandidate]] = {}
    for it in items:
        groups.setdefault(getattr(it.candidate, attr), []).append(it)
    return groups


def guaranteed_by_source(pool: Sequence[ScoredCandidate], per_source: int) -> Tuple[ScoredCandidate, ...]:
    """Top ``per_source`` of every source by source heat, then total score."""
    picked: List[ScoredCandidate] = []
    for members in _group(pool, "source").values():
        ranked = sorted(members, key=lambda it: (-it.breakdown.source_heat, -it.prerank_score))
        picked.extend(ranked[:per_source])
    return tuple(picked)


def guaranteed_by_category(pool: Sequence[ScoredCandidate], per_category: int) -> Tuple[ScoredCandidate, ...]:
    """Top ``per_category`` of every category by total score."""
    picked: List[ScoredCandidate] = []
    for members in _group(pool, "category").values():
        ranked = sorted(members, key=lambda it: -it.prerank_score)
        picked.extend(ranked[:per_category])
    return tuple(picked)


def union_unique(*groups: Sequence[ScoredCandidate]) -> Tuple[ScoredCandidate, ...]:
    seen = set()
    out: List[ScoredCandidate] = []
    for group in groups:
        for it in group:
            if it.candidate.key in seen:
                continue
            seen.add(it.candidate.key)
            out.append(it)
    return tuple(out)


def threshold_fill(
    remaining: Sequence[ScoredCandidate], *, score_floor: float, budget: int
) -> Tuple[ScoredCandidate, ...]:
    if budget <= 0:
        return ()
    eligible = [it for it in remaining if it.prerank_score >= score_floor]
    return rank_by_score(eligible)[:budget]


def select_shortlist(pool: Sequence[ScoredCandidate], config: SelectionConfig | None = None) -> SelectionResult:
    """Two-phase selection: diversity quotas first, then score-ordered fill.

    A pool no larger than the cap is returned whole. When the guaranteed set
    alone reaches the cap nothing is added, and it is kept intact even if it
    overshoots.
    """
    config = config or SelectionConfig()
    pool = tuple(pool)

    guaranteed = union_unique(
        guaranteed_by_source(pool, config.per_source),
        guaranteed_by_category(pool, config.per_category),
    )

    if len(pool) <= config.cap:
        logger.info("Pool (%d) within cap (%d); keeping all candidates", len(pool), config.cap)
        return SelectionResult(
            items=rank_by_score(pool),
            guaranteed=len(guaranteed),
            fill=len(pool) - len(guaranteed),
            cap=config.cap,
        )

    if len(guaranteed) > config.cap:
        logger.warning(
            "Guaranteed set (%d) exceeds cap (%d); quotas take precedence", len(guaranteed), config.cap
        )

    taken = {it.candidate.key for it in guaranteed}
    remaining = tuple(it for it in pool if it.candidate.key not in taken)
    fill = threshold_fill(remaining, score_floor=config.score_floor, budget=config.cap - len(guaranteed))

    items = rank_by_score(guaranteed + fill)
    logger.info(
        "Selection: pool=%d guaranteed=%d fill=%d selected=%d (cap=%d, floor=%.1f)",
        len(pool),
        len(guaranteed),
        len(fill),
        len(items),
        config.cap,
        config.score_floor,
    )
    return SelectionResult(items=items, guaranteed=len(guaranteed), fill=len(fill), cap=config.cap)
