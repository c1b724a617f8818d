"""pipeline.execution.channel

The outcome stream between the dispatcher (many senders) and the collector
(one receiver), plus the dispatcher's stop signal.

Once the collector has exited it closes the channel; any later send raises
:class:`ChannelClosedError` so the sender can log the lost outcome.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional, Union

from fiesta_bench.domain.outcome import ProcessOutcome
from fiesta_bench.domain.task import ContractTask


class ChannelClosedError(RuntimeError):
    pass


@dataclass(frozen=True)
class TaskOutcome:
    task: ContractTask
    outcome: ProcessOutcome


class _Stop:
    def __repr__(self) -> str:
        return "STOP"


STOP = _Stop()

Message = Union[TaskOutcome, _Stop]


class OutcomeChannel:
    def __init__(self) -> None:
        self._queue: "asyncio.Queue[Message]" = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, item: TaskOutcome) -> None:
        if self._closed:
            raise ChannelClosedError(f"outcome channel closed; dropping {item.task.bytecode_hash}")
        self._queue.put_nowait(item)

    def send_stop(self) -> None:
        if not self._closed:
            self._queue.put_nowait(STOP)

    async def receive(self, timeout: Optional[float]) -> Message:
        """Wait for the next message; raises ``asyncio.TimeoutError`` when idle."""
        return await asyncio.wait_for(self._queue.get(), timeout=timeout)

    def close(self) -> None:
        self._closed = True
