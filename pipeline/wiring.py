"""pipeline.wiring

This module is the **composition root** for the Python runtime.

"Composition root" means: the single place where we *assemble* the running
application from its building blocks:

- load environment variables (``.env`` at the repo root)
- configure logging
- load the task queue and hand it to the batch runner

Keeping this wiring in one place prevents configuration and logging setup
from being duplicated across entrypoints (CLI, scripts, notebooks, CI).
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable

from dotenv import load_dotenv

from fiesta_bench.io.layout import ROOT_DIR

from pipeline.config import RunConfig
from pipeline.corpus import load_tasks
from pipeline.execution.batch import BatchSummary, execute_batch

ENV_PATH: Path = ROOT_DIR / ".env"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def load_environment(dotenv_path: Path = ENV_PATH) -> bool:
    """Load ``.env`` into ``os.environ`` without overriding variables already set."""
    if not dotenv_path.exists():
        return False
    return load_dotenv(dotenv_path, override=False)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def run(config: RunConfig, *, echo: Callable[[str], None] = print) -> BatchSummary:
    """Load the corpus and run the whole batch."""

    tasks = load_tasks(config.corpus_root, max_tasks=config.max_tasks, skip=config.skip)
    echo(f"Beginning analysis of {len(tasks)} contracts")

    summary = execute_batch(tasks, config, echo=echo)

    echo(summary.parsed_line)
    if summary.unresolved:
        echo(f"  {summary.unresolved} contracts not dispatched (no file declares the contract)")
    if summary.delivery_failures:
        echo(f"  {summary.delivery_failures} outcomes lost before recording")
    echo(f"  Results : {summary.output_path}")
    return summary
