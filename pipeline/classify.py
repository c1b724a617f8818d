"""pipeline.classify

Map captured analyzer output to an :data:`~fiesta_bench.domain.outcome.ExitKind`.

Rules, first match wins:

1. stderr carries a panic line ``thread '<name>' panicked at <where>``
   -> ``ThreadPanic(<where>)``
2. stdout carries an ANSI-highlighted ``Error:`` block
   -> ``AnalysisError(<message>)``
3. stdout ends with ``DONE ANALYZING IN: <n>ms. Writing to cli...``
   -> ``Success``
4. anything else -> ``NonInterpreted(stdout, stderr)``

A panic wins over everything because earlier output can look successful right
up to the crash; an error block wins over the completion marker because some
failures still print the marker.

Only completed runs are classified. Timeouts never reach this module.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from fiesta_bench.domain.outcome import (
    AnalysisError,
    ExitKind,
    NonInterpreted,
    Success,
    ThreadPanic,
)

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")


@dataclass(frozen=True)
class ClassifierPatterns:
    panic: re.Pattern[str]
    error_block: re.Pattern[str]
    success: re.Pattern[str]

    @classmethod
    def default(cls) -> "ClassifierPatterns":
        return cls(
            panic=re.compile(r"thread '(?P<thread>[^']*)' panicked at (?P<detail>[^\n]*)"),
            # e.g. "\x1b[31mError:\x1b[0m Could not find function" (ariadne report header)
            error_block=re.compile(
                r"\x1b\[[0-9;]*m\s*Error:\s*(?:\x1b\[[0-9;]*m)?(?P<detail>[^\n]*)"
            ),
            success=re.compile(r"DONE ANALYZING IN: \d+ms\. Writing to cli\.\.\.\s*\Z"),
        )


# Built once at import; shared read-only by every classification.
DEFAULT_PATTERNS = ClassifierPatterns.default()


def _clean_detail(raw: str) -> str:
    return ANSI_ESCAPE.sub("", raw).strip()


def classify(stdout: str, stderr: str, patterns: ClassifierPatterns = DEFAULT_PATTERNS) -> ExitKind:
    m = patterns.panic.search(stderr)
    if m:
        return ThreadPanic(_clean_detail(m.group("detail")).rstrip(":"))

    m = patterns.error_block.search(stdout)
    if m:
        return AnalysisError(_clean_detail(m.group("detail")))

    if patterns.success.search(stdout):
        return Success()

    return NonInterpreted(stdout=stdout, stderr=stderr)
