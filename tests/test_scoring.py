from datetime import datetime, timedelta, timezone
from types import MappingProxyType

import pytest

from prerank.analysis.scoring import (
    ScoringConfig,
    credibility_score,
    keyword_score,
    score_candidate,
    score_candidates,
    timeliness_score,
)
from prerank.models import Candidate, Source

NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


def _cand(
    title: str = "Plain title",
    *,
    summary: str = "",
    source: str = "feed",
    source_type: str = "rss",
    raw_score: float = 0.0,
    hours_old: float | None = 1.0,
) -> Candidate:
    return Candidate(
        id=title,
        title=title,
        url="https://example.com/" + title.replace(" ", "-"),
        source=source,
        source_type=source_type,
        summary=summary,
        raw_score=raw_score,
        published_at=NOW - timedelta(hours=hours_old) if hours_old is not None else None,
    )


@pytest.mark.parametrize(
    "hours, expected",
    [
        (0, 25),
        (6, 25),
        (6.5, 20),
        (12, 20),
        (24, 15),
        (30, 10),
        (36, 10),
        (47, 5),
        (48, 5),
        (49, 0),
        (500, 0),
        (-3, 25),
    ],
)
def test_timeliness_steps(hours: float, expected: float) -> None:
    assert timeliness_score(NOW - timedelta(hours=hours), now=NOW) == expected


def test_unknown_age_scores_five() -> None:
    assert timeliness_score(None, now=NOW) == 5


def _keywords(**overrides) -> ScoringConfig:
    base = dict(high=("gpt-5",), medium=("benchmark", "open-weight"), low=("tutorial",))
    base.update(overrides)
    return ScoringConfig(**base)


def test_all_signals_are_capped_at_25() -> None:
    cfg = _keywords()
    assert keyword_score("gpt-5 benchmark tutorial release llm", "", cfg) == 25


def test_high_tier_with_actionability_and_domain_terms() -> None:
    # U+2011 non-breaking hyphen in the title
    assert keyword_score("OpenAI releases GPT\u20115", "", _keywords()) == 25


def test_only_first_match_counts_within_a_tier() -> None:
    cfg = _keywords(high=("gpt-5", "claude"), actionability_terms=(), domain_terms=())
    assert keyword_score("gpt-5 vs claude", "", cfg) == 15


def test_low_tier_alone() -> None:
    assert keyword_score("A tutorial", "", _keywords()) == 5


def test_summary_is_searched() -> None:
    assert keyword_score("Weekly notes", "we released a tutorial", _keywords()) == 10


def test_dash_variants_match_ascii_hyphen_terms() -> None:
    assert keyword_score("New open\u2013weight model", "", _keywords()) == 10


def test_matching_is_case_insensitive() -> None:
    assert keyword_score("BENCHMARK results", "", _keywords(actionability_terms=(), domain_terms=())) == 10


def test_no_keywords_scores_zero() -> None:
    assert keyword_score("Gardening tips", "", _keywords()) == 0


def test_credibility_lookup_and_default() -> None:
    cfg = ScoringConfig(credibility=MappingProxyType({"hn": 18.0, "github": 16.0}))
    assert credibility_score(_cand(source="hn"), cfg) == 18.0
    assert credibility_score(_cand(source="gh-trending", source_type="github"), cfg) == 16.0
    assert credibility_score(_cand(source="unknown"), cfg) == 10.0


def test_build_reads_source_credibility_and_heat() -> None:
    sources = [
        Source(name="hn", type="hackernews", credibility=18, heat={"strategy": "flat", "value": 21}),
        Source(name="blog", type="rss", url="https://blog.example/feed"),
    ]
    cfg = ScoringConfig.build(keywords={"high": ["gpt-5"]}, sources=sources)
    assert cfg.credibility == {"hn": 18.0}
    assert cfg.high == ("gpt-5",)
    assert cfg.heat.score(_cand(source="hn", source_type="hackernews")) == 21.0


def test_config_is_immutable() -> None:
    cfg = ScoringConfig.build(keywords={}, sources=[Source(name="hn", type="hackernews", credibility=18)])
    with pytest.raises(TypeError):
        cfg.credibility["hn"] = 1.0  # type: ignore[index]
    with pytest.raises(AttributeError):
        cfg.high = ("x",)  # type: ignore[misc]


def test_undated_candidate_gets_timeliness_five() -> None:
    scored = score_candidate(_cand(hours_old=None), ScoringConfig(), now=NOW)
    assert scored.breakdown.timeliness == 5


def test_total_is_sum_of_breakdown() -> None:
    cfg = _keywords(credibility=MappingProxyType({"feed": 20.0}))
    scored = score_candidate(_cand("OpenAI releases GPT-5", hours_old=3), cfg, now=NOW)
    b = scored.breakdown
    assert (b.timeliness, b.source_heat, b.keywords, b.credibility) == (25, 8.0, 25, 20.0)
    assert scored.prerank_score == 78.0


@pytest.mark.parametrize(
    "cand",
    [
        _cand("x", hours_old=None, source_type="mystery"),
        _cand("gpt-5 benchmark tutorial release llm", hours_old=0, source_type="hackernews", raw_score=10**9),
        _cand("old news", hours_old=10_000, source_type="github", raw_score=0),
        _cand("reddit thing", source_type="reddit", raw_score=-50),
    ],
)
def test_scores_stay_in_range(cand: Candidate) -> None:
    cfg = _keywords(credibility=MappingProxyType({"feed": 99.0}))
    scored = score_candidate(cand, cfg, now=NOW)
    for value in scored.breakdown.to_dict().values():
        assert 0.0 <= value <= 25.0
    assert 0.0 <= scored.prerank_score <= 100.0


def test_score_candidates_is_deterministic() -> None:
    cands = [_cand(f"story {i}", hours_old=i * 5, raw_score=i) for i in range(6)]
    first = [s.prerank_score for s in score_candidates(cands, _keywords(), now=NOW)]
    second = [s.prerank_score for s in score_candidates(cands, _keywords(), now=NOW)]
    assert first == second
