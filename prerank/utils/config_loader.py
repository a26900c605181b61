from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from ..models import Source
from ..processors.dedup import DedupSettings
from ..analysis.heat import heat_from_config
from ..analysis.selector import SelectionConfig


class ConfigError(Exception):
    """Raised when the configuration file is invalid or missing required fields."""


REQUIRED_FIELDS = {"name", "type"}

ALLOWED_TYPES = {"rss", "hackernews", "reddit", "github"}

# Types whose adapter cannot guess an endpoint and therefore need ``url``
URL_REQUIRED_TYPES = {"rss"}

KEYWORD_TIERS = ("high", "medium", "low")


@dataclass(slots=True)
class Settings:
    timezone: str = "UTC"
    max_age_hours: float = 48.0
    dedup: DedupSettings = field(default_factory=DedupSettings)
    keywords: Dict[str, List[str]] = field(default_factory=lambda: {t: [] for t in KEYWORD_TIERS})
    actionability_terms: Optional[List[str]] = None
    domain_terms: Optional[List[str]] = None
    selection: SelectionConfig = field(default_factory=SelectionConfig)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@dataclass(slots=True)
class AppConfig:
    settings: Settings
    sources: List[Source]

    @property
    def enabled_sources(self) -> List[Source]:
        return [s for s in self.sources if s.enabled]


def _string_list(value: Any, name: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{name}' must be a list of strings if provided")
    return [v.strip() for v in value if v.strip()]


def _mapping(value: Any, name: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping if provided")
    return value


def _validate_source_dict(entry: dict) -> None:
    """Validate a single source mapping from YAML.

    Required fields: name (str), type (one of ALLOWED_TYPES).
    Optional fields:
      - url: absolute http(s) URL (required for rss)
      - enabled: bool
      - category: str
      - credibility: number in [0, 25]
      - heat: mapping with a ``strategy`` key
      - params: mapping passed to the adapter
      - headers: mapping[str, str]
    """
    missing = REQUIRED_FIELDS - set(entry)
    if missing:
        raise ConfigError(f"Missing required fields: {sorted(missing)} in {entry}")

    if entry["type"] not in ALLOWED_TYPES:
        raise ConfigError(f"Invalid type '{entry['type']}'. Must be one of {sorted(ALLOWED_TYPES)}.")

    url_str = str(entry.get("url") or "").strip()
    if url_str or entry["type"] in URL_REQUIRED_TYPES:
        parsed = urlparse(url_str)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"Invalid URL '{url_str}' for source '{entry['name']}'. Must be absolute http(s) URL.")

    if "enabled" in entry and not isinstance(entry["enabled"], bool):
        raise ConfigError(f"'enabled' must be a boolean for source '{entry['name']}'")

    if entry.get("credibility") is not None:
        cred = entry["credibility"]
        if isinstance(cred, bool) or not isinstance(cred, (int, float)) or not 0 <= cred <= 25:
            raise ConfigError(f"'credibility' must be a number in [0, 25] for source '{entry['name']}'")

    heat = _mapping(entry.get("heat"), "heat")
    if heat:
        try:
            heat_from_config(heat)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid heat config for source '{entry['name']}': {exc}") from exc

    _mapping(entry.get("params"), "params")

    headers = _mapping(entry.get("headers"), "headers")
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in headers.items()):
        raise ConfigError("'headers' must be a mapping of string keys to string values if provided")


def _coerce_source(entry: dict) -> Source:
    return Source(
        name=str(entry["name"]).strip(),
        type=str(entry["type"]).strip(),
        url=str(entry.get("url") or "").strip(),
        enabled=bool(entry.get("enabled", True)),
        category=(str(entry["category"]).strip() or None) if entry.get("category") else None,
        credibility=float(entry["credibility"]) if entry.get("credibility") is not None else None,
        heat=dict(entry.get("heat") or {}),
        params=dict(entry.get("params") or {}),
        headers={str(k): str(v) for k, v in (entry.get("headers") or {}).items()},
    )


def _parse_settings(raw: Any) -> Settings:
    data = _mapping(raw, "settings")
    settings = Settings()

    if "timezone" in data:
        settings.timezone = str(data["timezone"]).strip()
    try:
        ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown timezone '{settings.timezone}'") from exc

    if "max_age_hours" in data:
        try:
            settings.max_age_hours = float(data["max_age_hours"])
        except (TypeError, ValueError) as exc:
            raise ConfigError("'max_age_hours' must be a number") from exc
        if settings.max_age_hours <= 0:
            raise ConfigError("'max_age_hours' must be positive")

    dedup = _mapping(data.get("dedup"), "dedup")
    try:
        settings.dedup = DedupSettings(
            exact_url=bool(dedup.get("exact_url", True)),
            fuzzy_title=bool(dedup.get("fuzzy_title", True)),
            fuzzy_threshold=float(dedup.get("fuzzy_threshold", DedupSettings().fuzzy_threshold)),
            fuzzy_source_types=tuple(_string_list(dedup.get("fuzzy_source_types"), "dedup.fuzzy_source_types")),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid dedup settings: {exc}") from exc
    if not 0.0 < settings.dedup.fuzzy_threshold <= 1.0:
        raise ConfigError("'dedup.fuzzy_threshold' must be in (0, 1]")

    keywords = _mapping(data.get("keywords"), "keywords")
    unknown = set(keywords) - set(KEYWORD_TIERS)
    if unknown:
        raise ConfigError(f"Unknown keyword tiers: {sorted(unknown)}. Allowed: {list(KEYWORD_TIERS)}")
    settings.keywords = {t: _string_list(keywords.get(t), f"keywords.{t}") for t in KEYWORD_TIERS}

    if data.get("actionability_terms") is not None:
        settings.actionability_terms = _string_list(data["actionability_terms"], "actionability_terms")
    if data.get("domain_terms") is not None:
        settings.domain_terms = _string_list(data["domain_terms"], "domain_terms")

    selection = _mapping(data.get("selection"), "selection")
    defaults = SelectionConfig()
    try:
        settings.selection = SelectionConfig(
            cap=int(selection.get("cap", defaults.cap)),
            per_source=int(selection.get("per_source", defaults.per_source)),
            per_category=int(selection.get("per_category", defaults.per_category)),
            score_floor=float(selection.get("score_floor", defaults.score_floor)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid selection settings: {exc}") from exc
    if settings.selection.cap <= 0 or settings.selection.per_source < 0 or settings.selection.per_category < 0:
        raise ConfigError("'selection' requires cap > 0 and non-negative quotas")

    return settings


def load_config(path: Path | str) -> AppConfig:
    """Load ``sources.yaml`` into typed settings and ``Source`` instances.

    YAML structure:
      - Top-level mapping
      - Key ``settings``: global settings (timezone, max_age_hours, dedup,
        keywords, actionability_terms, domain_terms, selection)
      - Key ``sources``: list of source mappings (see ``_validate_source_dict``)

    Unknown top-level keys are ignored for forward compatibility.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file is not valid YAML: {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Top-level configuration must be a mapping")

    settings = _parse_settings(data.get("settings"))

    sources_raw: Iterable[dict] = data.get("sources") or []
    if not isinstance(sources_raw, list):
        raise ConfigError("'sources' must be a list in the YAML configuration")

    sources: List[Source] = []
    names: set[str] = set()
    for item in sources_raw:
        if not isinstance(item, dict):
            raise ConfigError(f"Each source must be a mapping, got: {type(item)}")
        _validate_source_dict(item)
        source = _coerce_source(item)
        if source.name in names:
            raise ConfigError(f"Duplicate source name '{source.name}'")
        names.add(source.name)
        sources.append(source)
    return AppConfig(settings=settings, sources=sources)
