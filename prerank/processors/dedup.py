from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..models import DEFAULT_CATEGORY, Candidate, RawItem, Source
from ..utils.logging import get_logger
from .normalize import normalize_plain_text, normalize_title_key

logger = get_logger("prerank.processors.dedup")

FUZZY_THRESHOLD = 0.5
CONTAINMENT_SIMILARITY = 0.9


@dataclass(slots=True)
class DedupSettings:
    exact_url: bool = True
    fuzzy_title: bool = True
    fuzzy_threshold: float = FUZZY_THRESHOLD
    # Empty means every source type takes part in fuzzy matching
    fuzzy_source_types: Tuple[str, ...] = ()


@dataclass(slots=True)
class DedupStats:
    total: int = 0
    kept: int = 0
    skipped_invalid: int = 0
    url_duplicates: int = 0
    fuzzy_merged: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "kept": self.kept,
            "skipped_invalid": self.skipped_invalid,
            "url_duplicates": self.url_duplicates,
            "fuzzy_merged": self.fuzzy_merged,
        }


# ---------------- Title similarity -----------------
def _bigrams(key: str) -> Set[str]:
    return {key[i : i + 2] for i in range(len(key) - 1)}


def _key_similarity(a: str, b: str) -> float:
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    if a in b or b in a:
        return CONTAINMENT_SIMILARITY
    grams_a, grams_b = _bigrams(a), _bigrams(b)
    if not grams_a or not grams_b:
        return 0.0
    return 2.0 * len(grams_a & grams_b) / (len(grams_a) + len(grams_b))


def title_similarity(a: str | None, b: str | None) -> float:
    """Lexical similarity of two short titles in [0, 1].

    1.0 for identical normalized titles, 0.9 when one contains the other,
    otherwise the Dice coefficient over character bigrams.
    """
    return _key_similarity(normalize_title_key(a), normalize_title_key(b))


# ---------------- Candidate construction -----------------
def to_candidate(
    raw: RawItem,
    *,
    source_type: str,
    fetched_at: datetime,
    default_category: Optional[str] = None,
) -> Candidate:
    extras = dict(raw.extras or {})
    summary = normalize_plain_text(str(extras.pop("summary", "") or ""))
    key_quotes = [str(q) for q in (extras.pop("key_quotes", None) or [])]
    return Candidate(
        id=str(raw.id),
        title=normalize_plain_text(raw.title),
        url=raw.url.strip(),
        source=raw.source,
        source_type=source_type,
        category=raw.category or default_category or DEFAULT_CATEGORY,
        score=raw.score,
        comments=raw.comments,
        published_at=raw.published_at,
        summary=summary,
        key_quotes=key_quotes,
        fetched_at=fetched_at,
        raw_score=float(raw.score or 0.0),
        metadata=extras,
    )


def merge_sources(
    batches: Iterable[Tuple[Source, Sequence[RawItem]]],
    *,
    fetched_at: Optional[datetime] = None,
    stats: Optional[DedupStats] = None,
) -> List[Candidate]:
    """Flatten per-source outputs into candidates, in source order.

    Records without a title or URL cannot be deduplicated or shown and are
    skipped.
    """
    fetched_at = fetched_at or datetime.now(timezone.utc)
    merged: List[Candidate] = []
    for source, items in batches:
        for raw in items:
            if stats is not None:
                stats.total += 1
            if not (raw.url or "").strip() or not (raw.title or "").strip():
                logger.warning("Skipping item without url/title from %s: id=%s", source.name, raw.id)
                if stats is not None:
                    stats.skipped_invalid += 1
                continue
            merged.append(
                to_candidate(
                    raw,
                    source_type=source.type,
                    fetched_at=fetched_at,
                    default_category=source.category,
                )
            )
    return merged


# ---------------- Dedup passes -----------------
def dedup_exact(candidates: Iterable[Candidate]) -> List[Candidate]:
    """Drop every candidate whose URL was already seen. First one wins."""
    seen: Set[str] = set()
    unique: List[Candidate] = []
    for cand in candidates:
        if cand.url in seen:
            logger.debug("URL duplicate dropped (%s): %s", cand.source, cand.url)
            continue
        seen.add(cand.url)
        unique.append(cand)
    return unique


def _find(parent: List[int], i: int) -> int:
    while parent[i] != i:
        parent[i] = parent[parent[i]]
        i = parent[i]
    return i


def _union(parent: List[int], i: int, j: int) -> None:
    ri, rj = _find(parent, i), _find(parent, j)
    if ri != rj:
        # Lowest index stays root so clusters come out in first-seen order
        parent[max(ri, rj)] = min(ri, rj)


def merge_similar(
    candidates: Sequence[Candidate],
    *,
    threshold: float = FUZZY_THRESHOLD,
    source_types: Sequence[str] = (),
) -> List[Candidate]:
    """Merge near-duplicate titles reported by different sources.

    All cross-source pairs at or above ``threshold`` are clustered with a
    union-find, so the clusters do not depend on input order. Each cluster
    collapses onto the member with the highest raw score (earliest wins a
    tie); the others contribute their titles and sources.
    """
    items = list(candidates)
    n = len(items)
    parent = list(range(n))
    keys = [normalize_title_key(c.title) for c in items]
    eligible = [not source_types or c.source_type in source_types for c in items]

    for i in range(n):
        if not eligible[i]:
            continue
        for j in range(i + 1, n):
            if not eligible[j] or items[i].source == items[j].source:
                continue
            sim = _key_similarity(keys[i], keys[j])
            if sim >= threshold:
                logger.debug("Fuzzy match %.2f: %r ~ %r", sim, items[i].title, items[j].title)
                _union(parent, i, j)

    clusters: Dict[int, List[int]] = {}
    for i in range(n):
        clusters.setdefault(_find(parent, i), []).append(i)

    merged: List[Candidate] = []
    for members in clusters.values():
        rep_idx = max(members, key=lambda k: (items[k].raw_score, -k))
        rep = items[rep_idx]
        for k in members:
            if k == rep_idx:
                continue
            other = items[k]
            rep.merged_titles.append(other.title)
            rep.merged_titles.extend(other.merged_titles)
            rep.related_sources.update(other.related_sources)
        rep.cross_platform_count = len(rep.related_sources)
        merged.append(rep)
    return merged


class Deduplicator:
    """Exact URL and fuzzy cross-source title deduplication for one run.

    Thresholds may be tuned through the environment without touching the
    YAML configuration: ``DEDUP_TITLE_THRESHOLD``.
    """

    def __init__(self, settings: Optional[DedupSettings] = None) -> None:
        self.settings = settings or DedupSettings()
        env_title_thr = os.getenv("DEDUP_TITLE_THRESHOLD")
        self.threshold = float(env_title_thr) if env_title_thr else self.settings.fuzzy_threshold

    def run(
        self,
        batches: Iterable[Tuple[Source, Sequence[RawItem]]],
        *,
        fetched_at: Optional[datetime] = None,
    ) -> Tuple[List[Candidate], DedupStats]:
        stats = DedupStats()
        candidates = merge_sources(batches, fetched_at=fetched_at, stats=stats)

        if self.settings.exact_url:
            before = len(candidates)
            candidates = dedup_exact(candidates)
            stats.url_duplicates = before - len(candidates)

        if self.settings.fuzzy_title:
            before = len(candidates)
            candidates = merge_similar(
                candidates,
                threshold=self.threshold,
                source_types=self.settings.fuzzy_source_types,
            )
            stats.fuzzy_merged = before - len(candidates)

        stats.kept = len(candidates)
        logger.info(
            "Deduplication: %d -> %d candidates (invalid=%d, url=%d, fuzzy=%d)",
            stats.total,
            stats.kept,
            stats.skipped_invalid,
            stats.url_duplicates,
            stats.fuzzy_merged,
        )
        return candidates, stats


def deduplicate(
    batches: Iterable[Tuple[Source, Sequence[RawItem]]],
    settings: Optional[DedupSettings] = None,
    *,
    fetched_at: Optional[datetime] = None,
) -> Tuple[List[Candidate], DedupStats]:
    return Deduplicator(settings).run(batches, fetched_at=fetched_at)
