"""fiesta_bench.io.layout

Output location rules.

Relative paths are anchored under the repository root so results always land
in ``<repo>/data/...`` no matter where the driver is launched from.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

# Project root = two levels up from fiesta_bench/io/
ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_DATA_DIR = ROOT_DIR / "data"


def anchor(path: Path | str) -> Path:
    """Resolve *path*, anchoring relative paths under ROOT_DIR."""
    p = Path(path).expanduser()
    if not p.is_absolute():
        p = ROOT_DIR / p
    return p


def default_output_path(data_dir: Path | str = DEFAULT_DATA_DIR, *, now: Optional[datetime] = None) -> Path:
    """Return ``<data_dir>/fiesta_results_YYYYmmdd_HHMMSS.csv``."""
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return anchor(data_dir) / f"fiesta_results_{stamp}.csv"


def noninterpreted_dir_for(output_path: Path) -> Path:
    """Sidecar directory holding raw streams of uninterpreted runs."""
    p = Path(output_path)
    return p.parent / f"{p.stem}_noninterpreted"
