import pytest

from prerank.utils.pipeline_config import PipelineConfig


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PRERANK_OUTPUT_DIR", "PRERANK_FETCH_TIMEOUT", "PRERANK_MAX_WORKERS"):
        monkeypatch.delenv(name, raising=False)
    cfg = PipelineConfig()
    assert (cfg.output_dir, cfg.fetch_timeout, cfg.max_workers) == ("data", 15.0, 8)


def test_environment_is_read_per_instance(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRERANK_OUTPUT_DIR", "/tmp/prerank-out")
    monkeypatch.setenv("PRERANK_FETCH_TIMEOUT", "2.5")
    monkeypatch.setenv("PRERANK_MAX_WORKERS", "3")
    cfg = PipelineConfig()
    assert (cfg.output_dir, cfg.fetch_timeout, cfg.max_workers) == ("/tmp/prerank-out", 2.5, 3)


def test_explicit_values_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRERANK_MAX_WORKERS", "3")
    assert PipelineConfig(max_workers=1).max_workers == 1
