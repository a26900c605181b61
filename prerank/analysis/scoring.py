from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from ..models import Candidate, ScoreBreakdown, ScoredCandidate, Source
from ..processors.normalize import fold_dashes
from ..utils.logging import get_logger
from .heat import HeatRegistry, heat_from_config

logger = get_logger("prerank.analysis.scoring")

MAX_SUB_SCORE = 25.0

# (max age in hours, points); anything older scores 0
TIMELINESS_STEPS: Tuple[Tuple[float, float], ...] = ((6, 25), (12, 20), (24, 15), (36, 10), (48, 5))
UNKNOWN_AGE_SCORE = 5.0

TIER_POINTS: Tuple[Tuple[str, float], ...] = (("high", 15.0), ("medium", 10.0), ("low", 5.0))
ACTIONABILITY_POINTS = 5.0
DOMAIN_POINTS = 5.0

DEFAULT_ACTIONABILITY_TERMS: Tuple[str, ...] = (
    "release",
    "launch",
    "announce",
    "introducing",
    "now available",
    "open-source",
    "open source",
    "发布",
    "开源",
    "上线",
)

DEFAULT_DOMAIN_TERMS: Tuple[str, ...] = (
    "llm",
    "gpt",
    "openai",
    "anthropic",
    "claude",
    "gemini",
    "agent",
    "transformer",
    "diffusion",
    "大模型",
)

DEFAULT_CREDIBILITY = 10.0


@dataclass(frozen=True, slots=True)
class ScoringConfig:
    """Immutable lookup tables used by the scoring engine."""

    high: Tuple[str, ...] = ()
    medium: Tuple[str, ...] = ()
    low: Tuple[str, ...] = ()
    actionability_terms: Tuple[str, ...] = DEFAULT_ACTIONABILITY_TERMS
    domain_terms: Tuple[str, ...] = DEFAULT_DOMAIN_TERMS
    credibility: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    default_credibility: float = DEFAULT_CREDIBILITY
    heat: HeatRegistry = field(default_factory=HeatRegistry)

    @classmethod
    def build(
        cls,
        *,
        keywords: Mapping[str, Sequence[str]],
        sources: Iterable[Source] = (),
        actionability_terms: Optional[Sequence[str]] = None,
        domain_terms: Optional[Sequence[str]] = None,
    ) -> "ScoringConfig":
        credibility = {}
        heat = HeatRegistry()
        for src in sources:
            if src.credibility is not None:
                credibility[src.name] = float(src.credibility)
            if src.heat:
                heat = heat.with_source(src.name, heat_from_config(src.heat))
        return cls(
            high=tuple(keywords.get("high") or ()),
            medium=tuple(keywords.get("medium") or ()),
            low=tuple(keywords.get("low") or ()),
            actionability_terms=tuple(actionability_terms) if actionability_terms is not None else DEFAULT_ACTIONABILITY_TERMS,
            domain_terms=tuple(domain_terms) if domain_terms is not None else DEFAULT_DOMAIN_TERMS,
            credibility=MappingProxyType(credibility),
            heat=heat,
        )

    def tier(self, name: str) -> Tuple[str, ...]:
        return {"high": self.high, "medium": self.medium, "low": self.low}[name]


def _age_hours(published_at: datetime | None, now: datetime) -> float | None:
    if published_at is None:
        return None
    if published_at.tzinfo is None:
        published_at = published_at.replace(tzinfo=timezone.utc)
    return max(0.0, (now - published_at).total_seconds() / 3600.0)


def timeliness_score(published_at: datetime | None, *, now: datetime) -> float:
    age = _age_hours(published_at, now)
    if age is None:
        return UNKNOWN_AGE_SCORE
    for limit, points in TIMELINESS_STEPS:
        if age <= limit:
            return points
    return 0.0


def _contains_any(text: str, terms: Iterable[str]) -> bool:
    for term in terms:
        needle = fold_dashes(term)
        if needle and needle in text:
            return True
    return False


def keyword_score(title: str, summary: str, config: ScoringConfig) -> float:
    text = fold_dashes(f"{title} {summary}")
    points = 0.0
    for tier, tier_points in TIER_POINTS:
        if _contains_any(text, config.tier(tier)):
            points += tier_points
    if _contains_any(text, config.actionability_terms):
        points += ACTIONABILITY_POINTS
    if _contains_any(text, config.domain_terms):
        points += DOMAIN_POINTS
    return min(MAX_SUB_SCORE, points)


def credibility_score(cand: Candidate, config: ScoringConfig) -> float:
    value = config.credibility.get(cand.source)
    if value is None:
        value = config.credibility.get(cand.source_type, config.default_credibility)
    return max(0.0, min(MAX_SUB_SCORE, float(value)))


def score_candidate(cand: Candidate, config: ScoringConfig, *, now: Optional[datetime] = None) -> ScoredCandidate:
    now = now or datetime.now(timezone.utc)
    breakdown = ScoreBreakdown(
        timeliness=timeliness_score(cand.published_at, now=now),
        source_heat=config.heat.score(cand),
        keywords=keyword_score(cand.title, cand.summary, config),
        credibility=credibility_score(cand, config),
    )
    return ScoredCandidate(candidate=cand, prerank_score=breakdown.total, breakdown=breakdown)


def score_candidates(
    candidates: Iterable[Candidate], config: ScoringConfig, *, now: Optional[datetime] = None
) -> List[ScoredCandidate]:
    """Score every candidate against one fixed ``now`` so a run is reproducible."""
    now = now or datetime.now(timezone.utc)
    scored = [score_candidate(c, config, now=now) for c in candidates]
    logger.info("Scored %d candidates", len(scored))
    for it in scored:
        logger.debug(
            "%.2f %s (%s) %s",
            it.prerank_score,
            it.candidate.title,
            it.candidate.source,
            it.breakdown.to_dict(),
        )
    return scored
