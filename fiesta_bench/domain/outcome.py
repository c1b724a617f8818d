"""fiesta_bench.domain.outcome

How a task ended, in two steps:

* :data:`ProcessOutcome` - what the process monitor observed
  (``Completed`` with captured streams, or ``TimedOut``).
* :data:`ExitKind` - what the classifier made of it.

A :class:`ResultRecord` pairs the exit kind with the task identity and is the
only thing that reaches disk.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Union

_LINE_BREAKS = re.compile(r"[\r\n]+")


@dataclass(frozen=True)
class Completed:
    stdout: str
    stderr: str
    elapsed: float


@dataclass(frozen=True)
class TimedOut:
    elapsed: float


ProcessOutcome = Union[Completed, TimedOut]


# ---------------------------------------------------------------------------
# Exit kinds
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Success:
    @property
    def display(self) -> str:
        return "Success"


@dataclass(frozen=True)
class PerformanceTimeout:
    @property
    def display(self) -> str:
        return "PerformanceTimeout"


@dataclass(frozen=True)
class AnalysisError:
    detail: str

    @property
    def display(self) -> str:
        return f"Error: {self.detail}"


@dataclass(frozen=True)
class ThreadPanic:
    detail: str

    @property
    def display(self) -> str:
        return f"ThreadPanic: {self.detail}"


@dataclass(frozen=True)
class NonInterpreted:
    """Output matched no known pattern. Both streams are kept verbatim."""

    stdout: str
    stderr: str

    @property
    def display(self) -> str:
        return "NonInterpreted Error"


ExitKind = Union[Success, PerformanceTimeout, AnalysisError, ThreadPanic, NonInterpreted]

# Stable label per variant, used for summary breakdowns.
EXIT_KIND_NAMES: Dict[type, str] = {
    Success: "Success",
    PerformanceTimeout: "PerformanceTimeout",
    AnalysisError: "AnalysisError",
    ThreadPanic: "ThreadPanic",
    NonInterpreted: "NonInterpreted",
}


def exit_kind_name(kind: ExitKind) -> str:
    try:
        return EXIT_KIND_NAMES[type(kind)]
    except KeyError:
        raise TypeError(f"Unknown exit kind: {type(kind).__name__}") from None


@dataclass(frozen=True)
class ResultRecord:
    bytecode_hash: str
    exit_kind: ExitKind
    elapsed: float
    source_kind: str

    def to_row(self) -> List[str]:
        """Render as ``[hash, result, time (sec), source_type]``.

        Line breaks inside the result text are collapsed to single spaces so a
        record always occupies one physical line; delimiter quoting is left to
        the CSV writer.
        """

        return [
            self.bytecode_hash,
            _LINE_BREAKS.sub(" ", self.exit_kind.display).strip(),
            f"{self.elapsed:.3f}",
            self.source_kind,
        ]


@dataclass
class RunStats:
    """Running totals maintained by the collector."""

    successes: int = 0
    total: int = 0
    by_kind: Dict[str, int] = field(default_factory=dict)

    def record(self, kind: ExitKind) -> None:
        name = exit_kind_name(kind)
        self.total += 1
        if isinstance(kind, Success):
            self.successes += 1
        self.by_kind[name] = self.by_kind.get(name, 0) + 1

    @property
    def success_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return 100.0 * self.successes / self.total

    def progress_line(self) -> str:
        return f"{self.successes}/{self.total} ({self.success_rate:.2f}%)"
