"""pipeline.execution.monitor

Run the analyzer for one task under a deadline.

Rule
----
Only this module should launch analyzer processes.

The process is polled every ``poll_interval`` seconds instead of awaited
outright, so a deadline is enforced to within one poll. On expiry the whole
process group is killed and the partial output is thrown away.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import time
from pathlib import Path

from fiesta_bench.domain.outcome import Completed, ProcessOutcome, TimedOut
from fiesta_bench.domain.task import ContractTask

from pipeline.core import AnalyzerCommand

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.002
# How long to wait for a killed process to be reaped and its pipes to close.
REAP_TIMEOUT = 5.0

_POSIX = os.name == "posix"


class AnalyzerSpawnError(RuntimeError):
    """The analyzer could not be launched at all (environment problem)."""


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace")


async def _terminate(proc: asyncio.subprocess.Process, io: "asyncio.Future[tuple[bytes, bytes]]") -> None:
    if io.done():
        # Already reaped; the pid may have been reused.
        return
    try:
        if _POSIX:
            # The analyzer runs in its own session, so its pid is the group id.
            os.killpg(proc.pid, signal.SIGKILL)
        elif proc.returncode is None:
            proc.kill()
    except ProcessLookupError:
        pass

    try:
        await asyncio.wait_for(io, timeout=REAP_TIMEOUT)
    except asyncio.TimeoutError:
        logger.warning("Analyzer pid %s did not release its pipes within %.1fs after kill", proc.pid, REAP_TIMEOUT)


async def monitor_task(
    task: ContractTask,
    target: Path,
    *,
    analyzer: AnalyzerCommand,
    deadline: float,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> ProcessOutcome:
    """Launch ``analyzer`` on ``target`` and wait for it, at most ``deadline`` seconds."""

    argv = analyzer.argv(target)
    command = analyzer.command_str(target)
    started = time.monotonic()
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(task.dir_path),
            start_new_session=_POSIX,
        )
    except OSError as e:
        raise AnalyzerSpawnError(f"Failed to launch analyzer ({command}): {e}") from e

    logger.debug("Started pid %s for %s: %s", proc.pid, task.bytecode_hash, command)

    # Drain both pipes concurrently so a chatty analyzer never blocks on a full pipe.
    io = asyncio.ensure_future(proc.communicate())
    try:
        while not io.done():
            elapsed = time.monotonic() - started
            if elapsed >= deadline:
                await _terminate(proc, io)
                logger.debug("Killed pid %s for %s after %.3fs", proc.pid, task.bytecode_hash, elapsed)
                return TimedOut(elapsed=elapsed)
            await asyncio.sleep(min(poll_interval, deadline - elapsed))
    except asyncio.CancelledError:
        await _terminate(proc, io)
        raise

    stdout, stderr = io.result()
    return Completed(stdout=_decode(stdout), stderr=_decode(stderr), elapsed=time.monotonic() - started)
