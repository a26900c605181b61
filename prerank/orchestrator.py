from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import requests

from .analysis import ScoringConfig, SelectionResult, score_candidates, select_shortlist
from .fetchers import fetch_source
from .models import Candidate, RawItem, Source, SourceError
from .output.artifacts import read_candidates, write_candidates, write_shortlist
from .output.run_report import RunReport
from .processors import deduplicate, filter_recent
from .utils.config_loader import AppConfig
from .utils.logging import get_logger
from .utils.pipeline_config import PipelineConfig

logger = get_logger("prerank.orchestrator")

Batch = Tuple[Source, List[RawItem]]


def _error_kind(exc: BaseException) -> str:
    if isinstance(exc, requests.Timeout):
        return "timeout"
    if isinstance(exc, requests.HTTPError):
        return "http"
    if isinstance(exc, requests.RequestException):
        return "network"
    if isinstance(exc, ValueError):
        return "parse"
    return "error"


class Orchestrator:
    """Runs the collect (fetch, dedup, recency) and select (score, select) stages."""

    def __init__(
        self,
        config: AppConfig,
        *,
        pipeline: Optional[PipelineConfig] = None,
        output_dir: Path | str | None = None,
    ) -> None:
        self.config = config
        self.pipeline = pipeline or PipelineConfig()
        self.output_dir = Path(output_dir or self.pipeline.output_dir)
        self.scoring = ScoringConfig.build(
            keywords=config.settings.keywords,
            sources=config.sources,
            actionability_terms=config.settings.actionability_terms,
            domain_terms=config.settings.domain_terms,
        )

    def _fetch_source(self, source: Source) -> List[RawItem]:
        return fetch_source(source, timeout=self.pipeline.fetch_timeout)

    def fetch_all(self, sources: Iterable[Source]) -> Tuple[List[Batch], List[SourceError]]:
        """Fetch all sources concurrently.

        Results come back in configuration order regardless of completion
        order. A source that raises contributes no items and one error.
        """
        src_list = list(sources)
        if not src_list:
            return [], []

        fetched: Dict[str, List[RawItem]] = {}
        errors: Dict[str, SourceError] = {}
        max_workers = max(1, min(self.pipeline.max_workers, len(src_list)))
        logger.debug("Starting concurrent fetch for %d sources (workers=%d)", len(src_list), max_workers)
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_map = {executor.submit(self._fetch_source, s): s for s in src_list}
            for fut in as_completed(future_map):
                s = future_map[fut]
                try:
                    fetched[s.name] = list(fut.result() or [])
                except Exception as exc:  # noqa: BLE001 - one source must not halt the run
                    kind = _error_kind(exc)
                    logger.warning("Fetch failed for %s (%s): %s", s.name, kind, exc)
                    errors[s.name] = SourceError(source=s.name, kind=kind, message=str(exc) or type(exc).__name__)

        batches = [(s, fetched[s.name]) for s in src_list if s.name in fetched]
        ordered_errors = [errors[s.name] for s in src_list if s.name in errors]
        logger.info(
            "Concurrent fetch complete: items=%d ok=%d failed=%d",
            sum(len(items) for _, items in batches),
            len(batches),
            len(ordered_errors),
        )
        return batches, ordered_errors

    def build_candidates(
        self,
        batches: Sequence[Batch],
        report: RunReport,
        *,
        now: datetime,
    ) -> List[Candidate]:
        settings = self.config.settings
        candidates, stats = deduplicate(batches, settings.dedup, fetched_at=now)
        report.fetched = stats.total
        report.deduplicated = stats.kept
        report.url_duplicates = stats.url_duplicates
        report.fuzzy_merged = stats.fuzzy_merged

        candidates = filter_recent(candidates, max_age_hours=settings.max_age_hours, now=now)
        report.after_recency = len(candidates)
        return candidates

    def rank(self, candidates: Sequence[Candidate], report: RunReport, *, now: datetime) -> SelectionResult:
        scored = score_candidates(candidates, self.scoring, now=now)
        report.scored = len(scored)
        result = select_shortlist(scored, self.config.settings.selection)
        report.selected = len(result.items)
        return result

    def collect(self, date: str, *, now: Optional[datetime] = None) -> Path:
        """Fetch, merge, deduplicate and age-filter; persist the candidate set."""
        now = now or datetime.now(timezone.utc)
        sources = self.config.enabled_sources
        report = RunReport(date=date, sources_attempted=len(sources))

        batches, errors = self.fetch_all(sources)
        for err in errors:
            report.record_error(err)

        candidates = self.build_candidates(batches, report, now=now)
        path = write_candidates(self.output_dir, date, candidates, report, generated_at=now)
        logger.info("Collect finished: %s", report.summary())
        return path

    def select(self, date: str) -> Path:
        """Score and select from the persisted candidate set for ``date``.

        Scoring is anchored at the time the candidates were collected, so
        re-running on the same artifact gives the same shortlist.
        """
        artifact = read_candidates(self.output_dir, date)
        now = artifact.generated_at or datetime.now(timezone.utc)
        report = artifact.report
        result = self.rank(artifact.candidates, report, now=now)
        path = write_shortlist(self.output_dir, date, result, report)
        logger.info("Select finished: %s", report.summary())
        return path

    def run(self, date: str, *, now: Optional[datetime] = None) -> Path:
        self.collect(date, now=now)
        return self.select(date)
