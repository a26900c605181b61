"""On-disk run artifacts: the full candidate set and the shortlist.

Both files are written to a temporary sibling and moved into place, so a
reader never sees a half-written artifact.
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..models import DEFAULT_CATEGORY, Candidate, SourceError
from ..processors.normalize import parse_timestamp
from ..processors.projection import project_all
from ..analysis.selector import SelectionResult
from ..utils.logging import get_logger
from .run_report import RunReport

logger = get_logger("prerank.output.artifacts")

CANDIDATES_FILE = "candidates.json"
SHORTLIST_FILE = "shortlist.json"

_REQUIRED_CANDIDATE_FIELDS = ("id", "title", "url", "source", "source_type")


class ArtifactError(Exception):
    """Raised when an input artifact is missing or does not match its schema."""


@dataclass(slots=True)
class CandidateArtifact:
    date: str
    generated_at: Optional[datetime]
    candidates: List[Candidate]
    errors: List[SourceError]
    report: RunReport


def run_dir(output_dir: Path | str, date: str) -> Path:
    return Path(output_dir) / date


def candidates_path(output_dir: Path | str, date: str) -> Path:
    return run_dir(output_dir, date) / CANDIDATES_FILE


def shortlist_path(output_dir: Path | str, date: str) -> Path:
    return run_dir(output_dir, date) / SHORTLIST_FILE


def atomic_write_json(path: Path | str, payload: Any) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return target


def _generated_at(now: Optional[datetime] = None) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def write_candidates(
    output_dir: Path | str,
    date: str,
    candidates: Sequence[Candidate],
    report: RunReport,
    *,
    generated_at: Optional[datetime] = None,
) -> Path:
    payload = {
        "date": date,
        "generated_at": _generated_at(generated_at),
        "stats": report.to_dict(),
        "errors": [e.to_dict() for e in report.errors],
        "candidates": [c.to_dict() for c in candidates],
    }
    path = atomic_write_json(candidates_path(output_dir, date), payload)
    logger.info("Wrote %d candidates to %s", len(candidates), path)
    return path


def write_shortlist(
    output_dir: Path | str,
    date: str,
    selection: SelectionResult,
    report: RunReport,
) -> Path:
    payload = {
        "date": date,
        "generated_at": _generated_at(),
        "stats": report.to_dict(),
        "errors": [e.to_dict() for e in report.errors],
        "selection": selection.to_dict(),
        "items": project_all(selection.items),
    }
    path = atomic_write_json(shortlist_path(output_dir, date), payload)
    logger.info("Wrote shortlist of %d items to %s", len(selection.items), path)
    return path


def candidate_from_dict(row: Dict[str, Any]) -> Candidate:
    if not isinstance(row, dict):
        raise ArtifactError(f"Candidate record must be an object, got {type(row).__name__}")
    missing = [k for k in _REQUIRED_CANDIDATE_FIELDS if not row.get(k)]
    if missing:
        raise ArtifactError(f"Candidate record missing fields {missing}: {row.get('id')!r}")
    try:
        return Candidate(
            id=str(row["id"]),
            title=str(row["title"]),
            url=str(row["url"]),
            source=str(row["source"]),
            source_type=str(row["source_type"]),
            category=str(row.get("category") or DEFAULT_CATEGORY),
            score=float(row["score"]) if row.get("score") is not None else None,
            comments=int(row["comments"]) if row.get("comments") is not None else None,
            published_at=parse_timestamp(row.get("published_at")),
            summary=str(row.get("summary") or ""),
            key_quotes=[str(q) for q in row.get("key_quotes") or []],
            fetched_at=parse_timestamp(row.get("fetched_at")),
            raw_score=float(row.get("raw_score") or 0.0),
            metadata=dict(row.get("metadata") or {}),
            cross_platform_count=int(row.get("cross_platform_count") or 1),
            related_sources=set(row.get("related_sources") or []),
            merged_titles=[str(t) for t in row.get("merged_titles") or []],
        )
    except (TypeError, ValueError) as exc:
        raise ArtifactError(f"Malformed candidate record {row.get('id')!r}: {exc}") from exc


def _error_from_dict(row: Any) -> SourceError:
    if not isinstance(row, dict) or "source" not in row:
        raise ArtifactError(f"Malformed error record: {row!r}")
    return SourceError(
        source=str(row["source"]),
        kind=str(row.get("kind") or "error"),
        message=str(row.get("message") or ""),
    )


def read_candidates(output_dir: Path | str, date: str) -> CandidateArtifact:
    """Load the candidate set written by the collect stage for ``date``."""
    path = candidates_path(output_dir, date)
    if not path.exists():
        raise ArtifactError(f"Candidate artifact not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ArtifactError(f"Cannot parse candidate artifact {path}: {exc}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("candidates"), list):
        raise ArtifactError(f"Candidate artifact {path} has no 'candidates' list")

    candidates = [candidate_from_dict(row) for row in data["candidates"]]
    errors = [_error_from_dict(row) for row in data.get("errors") or []]
    stats = data.get("stats") or {}
    if not isinstance(stats, dict):
        raise ArtifactError(f"Candidate artifact {path} has malformed 'stats'")
    try:
        report = RunReport.from_artifact(str(data.get("date") or date), stats, errors)
    except (TypeError, ValueError) as exc:
        raise ArtifactError(f"Candidate artifact {path} has malformed 'stats': {exc}") from exc

    logger.info("Loaded %d candidates from %s", len(candidates), path)
    return CandidateArtifact(
        date=str(data.get("date") or date),
        generated_at=parse_timestamp(data.get("generated_at")),
        candidates=candidates,
        errors=errors,
        report=report,
    )
