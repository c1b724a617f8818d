import asyncio
import tempfile
import time
import unittest
from pathlib import Path
from unittest import mock

from fiesta_bench.domain.outcome import Completed, TimedOut
from fiesta_bench.domain.task import ContractTask, SingleFile
from pipeline.classify import classify
from pipeline.core import AnalyzerCommand
from pipeline.execution.monitor import AnalyzerSpawnError, _terminate, monitor_task

from fake_analyzer_support import POSIX_ONLY, install_fake_analyzer


@unittest.skipIf(POSIX_ONLY, "process tests need a POSIX shebang")
class TestProcessMonitor(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)
        self.analyzer = AnalyzerCommand(executable=str(install_fake_analyzer(self.root)))

    def tearDown(self) -> None:
        self._td.cleanup()

    def _task(self, text: str) -> ContractTask:
        item = self.root / "item"
        item.mkdir(exist_ok=True)
        (item / "main.sol").write_text(text, encoding="utf-8")
        return ContractTask("feed", "Token", "v0.8.17", item, SingleFile("main.sol", text))

    async def _monitor(self, task: ContractTask, deadline: float):
        return await monitor_task(task, task.target_path(), analyzer=self.analyzer, deadline=deadline)

    async def test_completed_run_captures_both_streams(self) -> None:
        outcome = await self._monitor(self._task("PANIC"), deadline=30)
        self.assertIsInstance(outcome, Completed)
        self.assertTrue(outcome.stdout.endswith("Writing to cli...\n"))
        self.assertIn("panicked at src/foo.rs:10:5", outcome.stderr)
        self.assertGreater(outcome.elapsed, 0)

    async def test_non_zero_exit_is_still_completed(self) -> None:
        outcome = await self._monitor(self._task("ERROR"), deadline=30)
        self.assertIsInstance(outcome, Completed)
        self.assertEqual("Error: Could not resolve import, at src/lib.rs", classify(outcome.stdout, outcome.stderr).display)

    async def test_hanging_process_is_killed_at_deadline(self) -> None:
        t0 = time.monotonic()
        outcome = await self._monitor(self._task("HANG"), deadline=0.5)
        wall = time.monotonic() - t0

        self.assertIsInstance(outcome, TimedOut)
        self.assertGreaterEqual(outcome.elapsed, 0.5)
        self.assertLess(outcome.elapsed, 0.75)
        self.assertLess(wall, 5.0)

    async def test_missing_executable_is_a_spawn_error(self) -> None:
        missing = AnalyzerCommand(executable=str(self.root / "does-not-exist"))
        task = self._task("anything")
        with self.assertRaises(AnalyzerSpawnError):
            await monitor_task(task, task.target_path(), analyzer=missing, deadline=5)

    async def test_analyzer_receives_path_and_debug_flag(self) -> None:
        # The fake analyzer exits 2 with a usage message on any other argv shape.
        outcome = await self._monitor(self._task("plain"), deadline=30)
        self.assertIsInstance(outcome, Completed)
        self.assertEqual("", outcome.stderr)

        bare = AnalyzerCommand(executable=self.analyzer.executable, debug_flag="")
        task = self._task("plain")
        outcome = await monitor_task(task, task.target_path(), analyzer=bare, deadline=30)
        self.assertIn("usage", outcome.stderr)


class TestTerminate(unittest.IsolatedAsyncioTestCase):
    async def test_reaped_process_is_not_signalled(self) -> None:
        io = asyncio.get_running_loop().create_future()
        io.set_result((b"", b""))
        proc = mock.Mock(pid=4242, returncode=0)

        with mock.patch("pipeline.execution.monitor.os.killpg", create=True) as killpg:
            await _terminate(proc, io)

        killpg.assert_not_called()
        proc.kill.assert_not_called()


if __name__ == "__main__":
    unittest.main()
