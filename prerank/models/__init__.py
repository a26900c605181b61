"""Typed models used across the application."""

from .source import Source, SourceType
from .item import (
    DEFAULT_CATEGORY,
    Candidate,
    RawItem,
    ScoreBreakdown,
    ScoredCandidate,
    SourceError,
)

__all__ = [
    "Source",
    "SourceType",
    "DEFAULT_CATEGORY",
    "RawItem",
    "Candidate",
    "ScoreBreakdown",
    "ScoredCandidate",
    "SourceError",
]
