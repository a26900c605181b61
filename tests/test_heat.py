import pytest

from prerank.analysis.heat import (
    HeatRegistry,
    banded_heat,
    flat_heat,
    heat_from_config,
    log_heat,
    rank_heat,
)
from prerank.models import Candidate


def _cand(source: str = "s", source_type: str = "rss", raw_score: float = 0.0, comments: int | None = None, **metadata) -> Candidate:
    return Candidate(
        id="1",
        title="t",
        url="https://example.com/1",
        source=source,
        source_type=source_type,
        raw_score=raw_score,
        comments=comments,
        metadata=dict(metadata),
    )


def test_log_heat_dampens_engagement() -> None:
    heat = log_heat(weight=7.0)
    assert heat(_cand(raw_score=99)) == pytest.approx(14.0)
    assert heat(_cand(raw_score=0)) == 0.0


def test_log_heat_counts_weighted_comments() -> None:
    heat = log_heat(weight=5.0, comment_weight=0.5)
    # 80 points + 0.5 * 38 comments = 99
    assert heat(_cand(raw_score=80, comments=38)) == pytest.approx(10.0)


def test_log_heat_is_capped() -> None:
    assert log_heat(weight=10.0)(_cand(raw_score=10**9)) == 25.0


@pytest.mark.parametrize("stars, expected", [(12000, 25.0), (2000, 20.0), (600, 12.0), (10, 2.0)])
def test_banded_heat(stars: int, expected: float) -> None:
    heat = banded_heat([(5000, 25), (2000, 20), (1000, 16), (500, 12)], below=2.0)
    assert heat(_cand(raw_score=stars)) == expected


def test_rank_heat_uses_board_position() -> None:
    heat = rank_heat(top=25, step=2)
    assert heat(_cand(rank=1)) == 25.0
    assert heat(_cand(rank=4)) == 19.0
    assert heat(_cand(rank=40)) == 0.0
    assert heat(_cand()) == 5.0


def test_flat_heat() -> None:
    assert flat_heat(12)(_cand(raw_score=10**6)) == 12.0


def test_registry_prefers_source_name_over_type() -> None:
    registry = HeatRegistry().with_source("special", flat_heat(20))
    assert registry.score(_cand(source="special", source_type="rss")) == 20.0
    assert registry.score(_cand(source="other", source_type="rss")) == 8.0


def test_registry_falls_back_for_unknown_types() -> None:
    registry = HeatRegistry(by_type={}, default=flat_heat(3))
    assert registry.score(_cand(source_type="mystery")) == 3.0


def test_with_source_returns_new_registry() -> None:
    base = HeatRegistry()
    base.with_source("x", flat_heat(20))
    assert base.score(_cand(source="x", source_type="rss")) == 8.0


@pytest.mark.parametrize(
    "cfg",
    [
        {"strategy": "log", "weight": 6},
        {"strategy": "bands", "bands": [[100, 10], [10, 5]]},
        {"strategy": "rank", "step": 0.5},
        {"strategy": "flat", "value": 4},
    ],
)
def test_heat_from_config_builds_every_strategy(cfg: dict) -> None:
    value = heat_from_config(cfg)(_cand(raw_score=50, rank=3))
    assert 0.0 <= value <= 25.0


@pytest.mark.parametrize(
    "cfg",
    [{"strategy": "magic"}, {}, {"strategy": "bands"}, {"strategy": "bands", "bands": [[1, 2, 3]]}],
)
def test_heat_from_config_rejects_bad_input(cfg: dict) -> None:
    with pytest.raises(ValueError):
        heat_from_config(cfg)
