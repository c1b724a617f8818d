# pipeline/core.py
"""Analyzer executable resolution and command building.

Only the process monitor launches the analyzer; this module only decides
*what* to launch.
"""
from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

DEFAULT_ANALYZER_BIN = "pyrometer"
DEFAULT_DEBUG_FLAG = "--debug"

ANALYZER_FALLBACKS = [
    str(Path.home() / ".cargo" / "bin" / "pyrometer"),
    "/usr/local/bin/pyrometer",
    "/opt/homebrew/bin/pyrometer",
]


class AnalyzerNotFoundError(FileNotFoundError):
    pass


def which_or_raise(bin_name: str, fallbacks: Optional[List[str]] = None) -> str:
    """Locate an executable and return its absolute path.

    Accepts either a bare name (looked up on PATH) or a path to a file.
    """
    candidate = Path(bin_name).expanduser()
    if candidate.parent != Path(".") and candidate.is_file() and os.access(str(candidate), os.X_OK):
        return str(candidate.resolve())

    found = shutil.which(bin_name)
    if found:
        return found

    for fb in fallbacks or []:
        p = Path(fb)
        if p.exists() and os.access(str(p), os.X_OK):
            return str(p)

    raise AnalyzerNotFoundError(
        f"Executable '{bin_name}' not found on PATH.\n"
        f"Install it (or set FIESTA_ANALYZER_BIN) and ensure it's available to this Python process.\n"
        f"Tried fallbacks: {fallbacks or []}"
    )


@dataclass(frozen=True)
class AnalyzerCommand:
    """The analyzer invocation: ``<executable> <source path> <debug flag>``."""

    executable: str
    debug_flag: str = DEFAULT_DEBUG_FLAG

    @classmethod
    def resolve(cls, bin_name: str = DEFAULT_ANALYZER_BIN, debug_flag: str = DEFAULT_DEBUG_FLAG) -> "AnalyzerCommand":
        fallbacks = ANALYZER_FALLBACKS if Path(bin_name).name == DEFAULT_ANALYZER_BIN else None
        return cls(executable=which_or_raise(bin_name, fallbacks), debug_flag=debug_flag)

    def argv(self, source_path: Path) -> List[str]:
        cmd = [self.executable, str(source_path)]
        if self.debug_flag:
            cmd.append(self.debug_flag)
        return cmd

    def command_str(self, source_path: Path) -> str:
        return " ".join(self.argv(source_path))


__all__ = [
    "ANALYZER_FALLBACKS",
    "AnalyzerCommand",
    "AnalyzerNotFoundError",
    "DEFAULT_ANALYZER_BIN",
    "DEFAULT_DEBUG_FLAG",
    "which_or_raise",
]
