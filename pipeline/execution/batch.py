"""pipeline.execution.batch

One whole run: dispatcher and collector on a single event loop.

The run ends cleanly once the dispatcher has seen every monitor return and
the collector has drained the channel. A background timeout on the collector
guards against a stalled channel. If the collector fails (the results file
can no longer be written), dispatch is cancelled and the failure propagates.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence

from fiesta_bench.domain.task import ContractTask
from fiesta_bench.io.layout import noninterpreted_dir_for
from fiesta_bench.io.results import ResultSink

from pipeline.config import RunConfig
from pipeline.core import AnalyzerCommand

from .channel import OutcomeChannel
from .collector import Collector
from .dispatch import Dispatcher

logger = logging.getLogger(__name__)


@dataclass
class BatchSummary:
    queued: int = 0
    dispatched: int = 0
    unresolved: int = 0
    recorded: int = 0
    successes: int = 0
    delivery_failures: int = 0
    by_kind: Dict[str, int] = field(default_factory=dict)
    collector_timed_out: bool = False
    output_path: Optional[Path] = None

    @property
    def parsed_line(self) -> str:
        return f"Parsed {self.successes} out of {self.recorded} contracts"


async def run_batch(
    tasks: Sequence[ContractTask],
    *,
    analyzer: AnalyzerCommand,
    sink: ResultSink,
    config: RunConfig,
    echo: Callable[[str], None] = print,
) -> BatchSummary:
    channel = OutcomeChannel()
    dispatcher = Dispatcher(
        channel,
        analyzer=analyzer,
        deadline=config.effective_deadline,
        jobs=config.jobs,
        poll_interval=config.poll_interval,
    )
    collector = Collector(
        channel,
        sink,
        drain_grace=config.drain_grace,
        idle_timeout=config.idle_timeout,
        echo=echo,
    )

    collector_task = asyncio.create_task(collector.run())
    dispatch_task = asyncio.create_task(dispatcher.run(tasks))
    try:
        await asyncio.wait({dispatch_task, collector_task}, return_when=asyncio.FIRST_COMPLETED)
        if not dispatch_task.done() and not collector_task.cancelled():
            failure = collector_task.exception()
            if failure is not None:
                # Nothing can be recorded any more; stop launching analyzers.
                logger.error("Collector failed, aborting dispatch: %s", failure)
                raise failure
        dispatched = await dispatch_task
    except BaseException:
        for t in (dispatch_task, collector_task):
            t.cancel()
        await asyncio.gather(dispatch_task, collector_task, return_exceptions=True)
        raise

    collector_timed_out = False
    try:
        await asyncio.wait_for(collector_task, timeout=config.drain_grace + config.shutdown_timeout)
    except asyncio.TimeoutError:
        collector_timed_out = True
        logger.error(
            "Collector did not finish within %.1fs of the last dispatch; results may be incomplete",
            config.drain_grace + config.shutdown_timeout,
        )

    stats = collector.stats
    if not collector_timed_out and stats.total != dispatched.dispatched - dispatched.delivery_failures:
        logger.error(
            "Recorded %d outcomes for %d dispatched tasks (%d delivery failures)",
            stats.total,
            dispatched.dispatched,
            dispatched.delivery_failures,
        )

    return BatchSummary(
        queued=dispatched.queued,
        dispatched=dispatched.dispatched,
        unresolved=dispatched.unresolved,
        recorded=stats.total,
        successes=stats.successes,
        delivery_failures=dispatched.delivery_failures,
        by_kind=dict(stats.by_kind),
        collector_timed_out=collector_timed_out,
        output_path=sink.path,
    )


def open_sink(config: RunConfig) -> ResultSink:
    output_path = config.resolved_output_path()
    triage_dir = noninterpreted_dir_for(output_path) if config.keep_noninterpreted else None
    return ResultSink(output_path, noninterpreted_dir=triage_dir)


def execute_batch(
    tasks: Sequence[ContractTask],
    config: RunConfig,
    *,
    echo: Callable[[str], None] = print,
) -> BatchSummary:
    """Resolve the analyzer, create the sink and run the batch to completion."""

    analyzer = AnalyzerCommand.resolve(config.analyzer_bin, config.debug_flag)
    sink = open_sink(config)
    return asyncio.run(run_batch(tasks, analyzer=analyzer, sink=sink, config=config, echo=echo))
