#!/usr/bin/env python3
"""
Batch driver: run the analyzer once per smart-contract-fiesta contract.

Each contract gets its own analyzer process under a deadline; each run is
classified from its output and recorded as one CSV row.

Usage:
  python fiesta_cli.py /data/smart-contract-fiesta
  python fiesta_cli.py /data/smart-contract-fiesta -j 16 -t 5 -m 0
  python fiesta_cli.py /data/smart-contract-fiesta --config run.yaml -o data/full_run.csv
"""

from __future__ import annotations

import argparse
from typing import Any, Dict, List, Optional

from cli.args.base import add_base_args
from cli.args.execution import add_execution_args
from pipeline.config import ConfigError, RunConfig, build_run_config
from pipeline.core import AnalyzerNotFoundError
from pipeline.corpus import validate_corpus_root
from pipeline.execution.monitor import AnalyzerSpawnError
from pipeline.wiring import configure_logging, load_environment, run


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the analyzer over a smart-contract-fiesta corpus and record one result per contract."
    )
    add_base_args(parser)
    add_execution_args(parser)
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def config_from_args(args: argparse.Namespace) -> RunConfig:
    cli_values: Dict[str, Any] = {
        "corpus_root": args.path,
        "output_path": args.output_path,
        "data_dir": args.data_dir,
        "log_level": args.log_level,
        "jobs": args.jobs,
        "deadline_seconds": args.deadline_seconds,
        "max_tasks": args.max_tasks,
        "skip": args.skip,
        "analyzer_bin": args.analyzer_bin,
        "keep_noninterpreted": args.keep_noninterpreted,
    }
    try:
        return build_run_config(cli_values, config_file=args.config_file)
    except (ConfigError, FileNotFoundError) as e:
        raise SystemExit(f"Invalid configuration: {e}")


def main(argv: Optional[List[str]] = None) -> None:
    # Always load .env from repo root so terminal runs behave like IDE runs
    load_environment()

    args = parse_args(argv)
    config = config_from_args(args)
    configure_logging(config.log_level)

    try:
        validate_corpus_root(config.corpus_root)
    except NotADirectoryError as e:
        raise SystemExit(str(e))

    try:
        run(config)
    except AnalyzerNotFoundError as e:
        raise SystemExit(f"Analyzer not available: {e}")
    except AnalyzerSpawnError as e:
        raise SystemExit(f"Run aborted: {e}")
    except OSError as e:
        raise SystemExit(f"Run aborted (could not write results): {e}")


if __name__ == "__main__":
    main()
