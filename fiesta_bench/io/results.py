"""fiesta_bench.io.results

Append-only CSV sink for result records.

Header::

    bytecode_hash,result,time (sec),source_type

The destination is opened in append mode for every record and closed again,
so the file is never held open across the run. Only the collector writes, so
no locking is needed.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Optional, Sequence

from fiesta_bench.domain.outcome import NonInterpreted, ResultRecord
from fiesta_bench.domain.task import BYTECODE_HASH_RE

logger = logging.getLogger(__name__)

RESULT_HEADER: Sequence[str] = ("bytecode_hash", "result", "time (sec)", "source_type")


class ResultSink:
    def __init__(self, path: Path, *, noninterpreted_dir: Optional[Path] = None) -> None:
        self.path = Path(path)
        self.noninterpreted_dir = Path(noninterpreted_dir) if noninterpreted_dir else None
        self.rows_written = 0
        self._reset()

    def _reset(self) -> None:
        # Errors here are fatal to the run; let them propagate.
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8", newline="") as f:
            csv.writer(f).writerow(RESULT_HEADER)
        if self.noninterpreted_dir is not None:
            self.noninterpreted_dir.mkdir(parents=True, exist_ok=True)

    def append(self, record: ResultRecord) -> None:
        with self.path.open("a", encoding="utf-8", newline="") as f:
            csv.writer(f).writerow(record.to_row())
        self.rows_written += 1

        kind = record.exit_kind
        if self.noninterpreted_dir is not None and isinstance(kind, NonInterpreted):
            self._write_streams(self.noninterpreted_dir, record.bytecode_hash, kind)

    def _write_streams(self, directory: Path, bytecode_hash: str, kind: NonInterpreted) -> None:
        if not BYTECODE_HASH_RE.fullmatch(bytecode_hash):
            logger.warning("Not keeping raw streams for %r: not a hex digest", bytecode_hash)
            return
        try:
            (directory / f"{bytecode_hash}.stdout.txt").write_text(kind.stdout, encoding="utf-8", newline="")
            (directory / f"{bytecode_hash}.stderr.txt").write_text(kind.stderr, encoding="utf-8", newline="")
        except OSError as e:
            # The CSV row is already written; losing the triage copy is not fatal.
            logger.warning("Failed to keep raw streams for %s: %s", bytecode_hash, e)


def read_result_rows(path: Path) -> list[dict[str, str]]:
    """Read a results CSV back as dicts (header keys)."""
    with Path(path).open("r", encoding="utf-8", newline="") as f:
        return list(csv.DictReader(f))
