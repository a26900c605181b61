"""Application entrypoint for the prerank pipeline.

This script orchestrates the high-level flow:
1) load configuration
2) collect: fetch sources, deduplicate, age-filter, persist candidates
3) select: score persisted candidates and write the shortlist
"""

from __future__ import annotations

import argparse
from datetime import date as date_cls
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from .orchestrator import Orchestrator
from .output.artifacts import ArtifactError
from .utils.config_loader import ConfigError, load_config
from .utils.logging import configure_logging, get_logger

STAGES = ("collect", "select", "run")


def _iso_date(value: str) -> str:
    try:
        return date_cls.fromisoformat(value).isoformat()
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD") from exc


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Collect candidates from configured sources and pre-rank them into a shortlist"
    )
    parser.add_argument(
        "stage",
        nargs="?",
        default="run",
        choices=STAGES,
        help="collect: fetch and persist candidates; select: score and shortlist; run: both (default)",
    )
    parser.add_argument(
        "--date",
        type=_iso_date,
        default=None,
        help="Target date (YYYY-MM-DD); defaults to today in the configured timezone",
    )
    parser.add_argument(
        "--config",
        default="config/sources.yaml",
        help="Path to sources configuration file (YAML)",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory for run artifacts (overrides PRERANK_OUTPUT_DIR)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity (overrides LOG_LEVEL)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    # .env is looked up from the working directory, not the installed package
    load_dotenv(find_dotenv(usecwd=True), override=False)
    args = parse_args(argv)
    configure_logging(level=args.log_level)
    logger = get_logger("prerank.main")

    config_path = Path(args.config)
    logger.info("Loading configuration from %s", config_path)
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    target_date = args.date or datetime.now(config.settings.tzinfo).date().isoformat()
    logger.info(
        "Stage=%s date=%s sources=%d (enabled=%d)",
        args.stage,
        target_date,
        len(config.sources),
        len(config.enabled_sources),
    )

    orch = Orchestrator(config, output_dir=args.output_dir)
    try:
        if args.stage == "collect":
            path = orch.collect(target_date)
        elif args.stage == "select":
            path = orch.select(target_date)
        else:
            path = orch.run(target_date)
    except ArtifactError as exc:
        logger.error("Cannot read input artifact: %s", exc)
        return 1

    logger.info("Done: %s", path)
    return 0


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    raise SystemExit(main())
