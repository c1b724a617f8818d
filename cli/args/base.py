from __future__ import annotations

import argparse


def add_base_args(parser: argparse.ArgumentParser) -> None:
    """Register the corpus location, output and configuration flags."""

    parser.add_argument(
        "path",
        metavar="PATH",
        help="Path to the smart-contract-fiesta root directory (contains organized_contracts/).",
    )
    parser.add_argument(
        "-o",
        "--output",
        dest="output_path",
        help="Results CSV path (default: data/fiesta_results_<timestamp>.csv under the repo root).",
    )
    parser.add_argument(
        "--data-dir",
        dest="data_dir",
        help="Directory for timestamped default outputs (env: FIESTA_DATA_DIR).",
    )
    parser.add_argument(
        "--config",
        dest="config_file",
        help="Optional YAML run config. Command-line flags override its values.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Diagnostic log level on stderr (default: INFO, env: FIESTA_LOG_LEVEL).",
    )
