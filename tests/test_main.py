from pathlib import Path

import pytest

from prerank.main import main, parse_args
from prerank.models import RawItem

CONFIG = """
settings:
  timezone: UTC
sources:
  - name: hn
    type: hackernews
    category: tech
"""


def _config(tmp_path: Path) -> Path:
    path = tmp_path / "sources.yaml"
    path.write_text(CONFIG, encoding="utf-8")
    return path


def test_defaults() -> None:
    args = parse_args([])
    assert args.stage == "run"
    assert args.date is None
    assert args.config == "config/sources.yaml"


def test_bad_date_is_a_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        parse_args(["collect", "--date", "10/01/2026"])
    assert excinfo.value.code == 2


def test_missing_config_exits_with_one(tmp_path: Path) -> None:
    assert main(["run", "--config", str(tmp_path / "missing.yaml")]) == 1


def test_select_without_candidates_exits_with_one(tmp_path: Path) -> None:
    code = main(
        ["select", "--config", str(_config(tmp_path)), "--output-dir", str(tmp_path / "out"), "--date", "2026-01-10"]
    )
    assert code == 1


def test_run_writes_shortlist(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_fetch(source, *, timeout):
        return [RawItem(id="1", title="A story", url="https://a.example/1", source=source.name, score=10)]

    monkeypatch.setattr("prerank.orchestrator.fetch_source", fake_fetch)
    out = tmp_path / "out"

    code = main(["run", "--config", str(_config(tmp_path)), "--output-dir", str(out), "--date", "2026-01-10"])

    assert code == 0
    assert (out / "2026-01-10" / "candidates.json").exists()
    assert (out / "2026-01-10" / "shortlist.json").exists()


def test_dotenv_in_working_directory_sets_output_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # set then delete so the value loaded from .env is removed again after the test
    monkeypatch.setenv("PRERANK_OUTPUT_DIR", "unused")
    monkeypatch.delenv("PRERANK_OUTPUT_DIR")
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text("PRERANK_OUTPUT_DIR=from_dotenv\n", encoding="utf-8")
    monkeypatch.setattr("prerank.orchestrator.fetch_source", lambda source, *, timeout: [])

    code = main(["collect", "--config", str(_config(tmp_path)), "--date", "2026-01-10"])

    assert code == 0
    assert (tmp_path / "from_dotenv" / "2026-01-10" / "candidates.json").exists()
