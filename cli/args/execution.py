from __future__ import annotations

import argparse


def add_execution_args(parser: argparse.ArgumentParser) -> None:
    """Register scheduling knobs: concurrency, deadline, corpus slicing, analyzer."""

    parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        help="Maximum analyzer processes running at once (default: number of cores).",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        dest="deadline_seconds",
        type=float,
        help="Per-contract deadline in seconds, fractions allowed; 0 = no limit (default: 2).",
    )
    parser.add_argument(
        "-m",
        "--max-contracts",
        dest="max_tasks",
        type=int,
        help="Maximum number of contracts to analyze; 0 = all (default: 3000).",
    )
    parser.add_argument(
        "--skip",
        type=int,
        help="Skip this many leading supported contracts (resume/debug; default: 0).",
    )
    parser.add_argument(
        "--analyzer",
        dest="analyzer_bin",
        help="Analyzer executable name or path (default: pyrometer, env: FIESTA_ANALYZER_BIN).",
    )
    parser.add_argument(
        "--no-keep-noninterpreted",
        dest="keep_noninterpreted",
        action="store_const",
        const=False,
        help="Do not save raw stdout/stderr of runs whose output could not be interpreted.",
    )
