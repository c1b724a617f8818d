"""pipeline.execution.dispatch

Fan tasks out to process monitors behind a fixed-size permit pool and fan
their outcomes back in to the outcome channel.

The dispatcher never looks inside an outcome. It only guarantees that:

* at most ``jobs`` analyzer processes run at any instant
* every monitor that returns has its outcome forwarded exactly once
* a single stop signal is sent once every dispatched monitor has returned
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence, Set

from fiesta_bench.domain.outcome import ProcessOutcome
from fiesta_bench.domain.task import ContractTask, TargetNotFoundError

from pipeline.core import AnalyzerCommand

from .channel import ChannelClosedError, OutcomeChannel, TaskOutcome
from .monitor import DEFAULT_POLL_INTERVAL, AnalyzerSpawnError, monitor_task

logger = logging.getLogger(__name__)

MonitorFn = Callable[..., Awaitable[ProcessOutcome]]


@dataclass
class DispatchSummary:
    queued: int = 0
    dispatched: int = 0
    unresolved: int = 0
    delivery_failures: int = 0
    peak_running: int = 0


class Dispatcher:
    def __init__(
        self,
        channel: OutcomeChannel,
        *,
        analyzer: AnalyzerCommand,
        deadline: float,
        jobs: int,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        monitor: MonitorFn = monitor_task,
    ) -> None:
        if jobs < 1:
            raise ValueError(f"jobs must be >= 1 (got {jobs})")
        self._channel = channel
        self._analyzer = analyzer
        self._deadline = deadline
        self._poll_interval = poll_interval
        self._monitor = monitor
        self._permits = asyncio.Semaphore(jobs)
        self._fatal: Optional[BaseException] = None
        self._running = 0
        self.summary = DispatchSummary()

    async def run(self, tasks: Sequence[ContractTask]) -> DispatchSummary:
        self.summary = DispatchSummary(queued=len(tasks))
        in_flight: Set["asyncio.Task[None]"] = set()
        try:
            for task in tasks:
                try:
                    target = task.target_path()
                except TargetNotFoundError as e:
                    self.summary.unresolved += 1
                    logger.error("Not dispatching %s: %s", task.bytecode_hash, e)
                    continue

                await self._permits.acquire()
                if self._fatal is not None:
                    self._permits.release()
                    break

                t = asyncio.create_task(self._run_one(task, target), name=task.bytecode_hash)
                in_flight.add(t)
                t.add_done_callback(in_flight.discard)
                self.summary.dispatched += 1

            # Wake on every completion so a fatal error cancels the rest at once.
            while in_flight and self._fatal is None:
                done, _ = await asyncio.wait(set(in_flight), return_when=asyncio.FIRST_COMPLETED)
                for t in done:
                    t.result()
            if self._fatal is not None:
                raise self._fatal
        except BaseException:
            pending = [t for t in in_flight if not t.done()]
            for t in pending:
                t.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            raise
        finally:
            self._channel.send_stop()

        return self.summary

    async def _run_one(self, task: ContractTask, target: Path) -> None:
        self._running += 1
        self.summary.peak_running = max(self.summary.peak_running, self._running)
        try:
            outcome = await self._monitor(
                task,
                target,
                analyzer=self._analyzer,
                deadline=self._deadline,
                poll_interval=self._poll_interval,
            )
        except AnalyzerSpawnError as e:
            if self._fatal is None:
                logger.error("Aborting run: %s", e)
                self._fatal = e
            return
        finally:
            self._running -= 1
            self._permits.release()

        try:
            self._channel.send(TaskOutcome(task=task, outcome=outcome))
        except ChannelClosedError as e:
            self.summary.delivery_failures += 1
            logger.error("Delivery failure for %s: %s", task.bytecode_hash, e)
