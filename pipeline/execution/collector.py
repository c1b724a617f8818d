"""pipeline.execution.collector

Single consumer of the outcome channel.

For each outcome: classify (timeouts skip the classifier), append one row to
the sink, update the running totals and print them.

Shutdown
--------
* after the stop signal, keep draining until the channel has been quiet for
  ``drain_grace`` seconds
* without a stop signal, give up once the channel has been quiet for
  ``idle_timeout`` seconds (longer than any task may run), so a stalled
  dispatcher can never hang the collector
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from fiesta_bench.domain.outcome import (
    Completed,
    ExitKind,
    PerformanceTimeout,
    ResultRecord,
    RunStats,
    TimedOut,
)
from fiesta_bench.io.results import ResultSink

from pipeline.classify import DEFAULT_PATTERNS, ClassifierPatterns, classify

from .channel import STOP, OutcomeChannel, TaskOutcome

logger = logging.getLogger(__name__)


class Collector:
    def __init__(
        self,
        channel: OutcomeChannel,
        sink: ResultSink,
        *,
        drain_grace: float,
        idle_timeout: float,
        patterns: ClassifierPatterns = DEFAULT_PATTERNS,
        echo: Callable[[str], None] = print,
    ) -> None:
        self.channel = channel
        self.sink = sink
        self.drain_grace = drain_grace
        self.idle_timeout = idle_timeout
        self.patterns = patterns
        self.echo = echo
        self.stats = RunStats()
        self.stop_seen = False
        self.idle_shutdown = False

    async def run(self) -> RunStats:
        try:
            while True:
                timeout = self.drain_grace if self.stop_seen else self.idle_timeout
                try:
                    msg = await self.channel.receive(timeout)
                except asyncio.TimeoutError:
                    if not self.stop_seen:
                        self.idle_shutdown = True
                        logger.warning(
                            "No outcome for %.1fs and no stop signal; collector shutting down", timeout
                        )
                    break

                if msg is STOP:
                    self.stop_seen = True
                    continue
                if not isinstance(msg, TaskOutcome):
                    raise TypeError(f"Unexpected channel message: {type(msg).__name__}")
                self.handle(msg)
        finally:
            self.channel.close()
        return self.stats

    def handle(self, item: TaskOutcome) -> ResultRecord:
        record = self.to_record(item)
        self.sink.append(record)
        self.stats.record(record.exit_kind)
        self.echo(self.stats.progress_line())
        return record

    def to_record(self, item: TaskOutcome) -> ResultRecord:
        outcome = item.outcome
        kind: ExitKind
        if isinstance(outcome, TimedOut):
            kind = PerformanceTimeout()
        elif isinstance(outcome, Completed):
            kind = classify(outcome.stdout, outcome.stderr, self.patterns)
        else:
            raise TypeError(f"Unknown process outcome: {type(outcome).__name__}")

        return ResultRecord(
            bytecode_hash=item.task.bytecode_hash,
            exit_kind=kind,
            elapsed=outcome.elapsed,
            source_kind=item.task.source_kind,
        )
