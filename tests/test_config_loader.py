from pathlib import Path

import pytest

from prerank.utils.config_loader import ConfigError, load_config

REPO_CONFIG = Path(__file__).resolve().parents[1] / "config" / "sources.yaml"


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "sources.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_repository_config_loads() -> None:
    config = load_config(REPO_CONFIG)
    names = [s.name for s in config.sources]
    assert "hackernews" in names
    assert "the-verge-ai" not in [s.name for s in config.enabled_sources]
    assert config.settings.selection.cap == 40


def test_minimal_config_uses_defaults(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
sources:
  - name: hn
    type: hackernews
""",
    )
    config = load_config(path)
    assert config.settings.timezone == "UTC"
    assert config.settings.max_age_hours == 48.0
    assert config.settings.dedup.fuzzy_threshold == 0.5
    assert config.settings.keywords == {"high": [], "medium": [], "low": []}
    src = config.sources[0]
    assert src.enabled is True
    assert src.category is None
    assert src.url == ""


def test_full_source_entry_is_coerced(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
settings:
  timezone: Europe/Berlin
  keywords:
    high: [gpt-5, " claude "]
  selection: {cap: 10, per_source: 1, per_category: 1, score_floor: 40}
sources:
  - name: blog
    type: rss
    url: https://blog.example/feed.xml
    category: industry
    credibility: 21
    heat: {strategy: flat, value: 9}
    params: {limit: 5}
    headers: {X-Token: abc}
""",
    )
    config = load_config(path)
    src = config.sources[0]
    assert src.credibility == 21.0
    assert src.limit == 5
    assert src.headers == {"X-Token": "abc"}
    assert config.settings.keywords["high"] == ["gpt-5", "claude"]
    assert config.settings.selection.cap == 10
    assert str(config.settings.tzinfo) == "Europe/Berlin"


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.yaml")


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not valid YAML"):
        load_config(_write(tmp_path, "sources: [unclosed"))


@pytest.mark.parametrize(
    "body, message",
    [
        ("- just a list", "mapping"),
        ("sources: {name: x}", "must be a list"),
        ("sources:\n  - type: rss\n    url: https://a.example", "Missing required"),
        ("sources:\n  - name: a\n    type: telegram", "Invalid type"),
        ("sources:\n  - name: a\n    type: rss", "Invalid URL"),
        ("sources:\n  - name: a\n    type: rss\n    url: ftp://a.example/feed", "Invalid URL"),
        ("sources:\n  - name: a\n    type: hackernews\n    enabled: 'yes'", "boolean"),
        ("sources:\n  - name: a\n    type: hackernews\n    credibility: 40", "credibility"),
        ("sources:\n  - name: a\n    type: hackernews\n    heat: {strategy: magic}", "heat"),
        ("sources:\n  - name: a\n    type: hackernews\n    headers: {X: 1}", "headers"),
        ("sources:\n  - name: a\n    type: hackernews\n  - name: a\n    type: reddit", "Duplicate"),
        ("settings: {timezone: Mars/Olympus}", "timezone"),
        ("settings: {max_age_hours: -1}", "positive"),
        ("settings: {keywords: {urgent: [x]}}", "keyword tiers"),
        ("settings: {dedup: {fuzzy_threshold: 2}}", "fuzzy_threshold"),
        ("settings: {selection: {cap: 0}}", "cap"),
    ],
)
def test_invalid_configs_are_rejected(tmp_path: Path, body: str, message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        load_config(_write(tmp_path, body))


def test_empty_file_is_an_empty_config(tmp_path: Path) -> None:
    config = load_config(_write(tmp_path, ""))
    assert config.sources == []
    assert config.enabled_sources == []
