"""Pre-rank scoring and shortlist selection."""

from .heat import (
    HeatRegistry,
    banded_heat,
    flat_heat,
    heat_from_config,
    log_heat,
    rank_heat,
)
from .scoring import (
    ScoringConfig,
    credibility_score,
    keyword_score,
    score_candidate,
    score_candidates,
    timeliness_score,
)
from .selector import (
    SelectionConfig,
    SelectionResult,
    guaranteed_by_category,
    guaranteed_by_source,
    select_shortlist,
    threshold_fill,
)

__all__ = [
    "HeatRegistry",
    "banded_heat",
    "flat_heat",
    "heat_from_config",
    "log_heat",
    "rank_heat",
    "ScoringConfig",
    "credibility_score",
    "keyword_score",
    "score_candidate",
    "score_candidates",
    "timeliness_score",
    "SelectionConfig",
    "SelectionResult",
    "guaranteed_by_category",
    "guaranteed_by_source",
    "select_shortlist",
    "threshold_fill",
]
