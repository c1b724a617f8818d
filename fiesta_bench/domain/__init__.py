"""fiesta_bench.domain

Data contracts shared by the corpus loader, the execution layer and the
result sink.
"""

from __future__ import annotations

from .outcome import (
    AnalysisError,
    Completed,
    ExitKind,
    NonInterpreted,
    PerformanceTimeout,
    ProcessOutcome,
    ResultRecord,
    RunStats,
    Success,
    ThreadPanic,
    TimedOut,
)
from .task import (
    ContractTask,
    FiestaMetadata,
    MultiFile,
    OpaqueMetadata,
    SingleFile,
    SourceBundle,
    TargetNotFoundError,
)

__all__ = [
    "AnalysisError",
    "Completed",
    "ContractTask",
    "ExitKind",
    "FiestaMetadata",
    "MultiFile",
    "NonInterpreted",
    "OpaqueMetadata",
    "PerformanceTimeout",
    "ProcessOutcome",
    "ResultRecord",
    "RunStats",
    "SingleFile",
    "SourceBundle",
    "Success",
    "TargetNotFoundError",
    "ThreadPanic",
    "TimedOut",
]
