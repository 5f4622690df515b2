"""Tests for ProcessRunner against real child processes."""

from __future__ import annotations

import asyncio
import os
import sys

import pytest

from livequery.process.result import Cancelled, ProcessResult
from livequery.process.runner import ProcessHandle, ProcessRunner

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses sh")


class Collector:
    """Completion callback that records every event."""

    def __init__(self) -> None:
        self.events: list[tuple[ProcessHandle, ProcessResult]] = []
        self.done = asyncio.Event()

    def __call__(self, handle: ProcessHandle, result: ProcessResult) -> None:
        self.events.append((handle, result))
        self.done.set()

    async def wait(self, timeout: float = 5.0) -> ProcessResult:
        await asyncio.wait_for(self.done.wait(), timeout)
        return self.events[-1][1]


@pytest.fixture
def runner() -> ProcessRunner:
    return ProcessRunner()


@pytest.mark.asyncio
class TestProcessRunner:
    """Tests for starting processes and collecting their output."""

    async def test_captures_stdout(self, runner: ProcessRunner) -> None:
        collector = Collector()
        runner.start(["sh", "-c", "printf 'a\\nb\\n'"], collector)
        result = await collector.wait()

        assert result.success
        assert result.exit_code == 0
        assert result.output == b"a\nb\n"
        assert not result.truncated

    async def test_stderr_is_merged(self, runner: ProcessRunner) -> None:
        collector = Collector()
        runner.start(["sh", "-c", "printf oops >&2; exit 3"], collector)
        result = await collector.wait()

        assert not result.success
        assert result.exit_code == 3
        assert result.output == b"oops"
        assert result.launch_error is None

    async def test_empty_output(self, runner: ProcessRunner) -> None:
        collector = Collector()
        runner.start(["sh", "-c", "true"], collector)
        result = await collector.wait()

        assert result.success
        assert result.empty

    async def test_missing_program(self, runner: ProcessRunner) -> None:
        collector = Collector()
        runner.start(["no-such-filter-xyz", ".a"], collector)
        result = await collector.wait()

        assert not result.success
        assert result.exit_code == 127
        assert "no-such-filter-xyz" in (result.launch_error or "")

    async def test_argv_passed_verbatim(self, runner: ProcessRunner) -> None:
        collector = Collector()
        runner.start(["sh", "-c", 'printf "%s" "$1"', "sh", ".a | select(.b)"], collector)
        result = await collector.wait()

        assert result.output == b".a | select(.b)"

    async def test_stdin_is_empty(self, runner: ProcessRunner) -> None:
        collector = Collector()
        runner.start(["sh", "-c", "cat"], collector)
        result = await collector.wait()

        assert result.success
        assert result.output == b""

    async def test_output_limit(self) -> None:
        runner = ProcessRunner(output_limit=10)
        collector = Collector()
        runner.start(["sh", "-c", "printf 0123456789abcdef"], collector)
        result = await collector.wait()

        assert result.success
        assert result.output == b"0123456789"
        assert result.truncated

    async def test_env_and_cwd(self, tmp_path) -> None:
        runner = ProcessRunner(cwd=str(tmp_path), env={"LQ_TEST": "yes"})
        collector = Collector()
        runner.start(["sh", "-c", 'printf "%s %s" "$LQ_TEST" "$(pwd)"'], collector)
        result = await collector.wait()

        value, cwd = result.text.split(" ", 1)
        assert value == "yes"
        assert cwd.endswith(tmp_path.name)

    async def test_wait_returns_result(self, runner: ProcessRunner) -> None:
        handle = runner.start(["sh", "-c", "printf x"], lambda h, r: None)
        outcome = await asyncio.wait_for(handle.wait(), 5.0)

        assert isinstance(outcome, ProcessResult)
        assert outcome.output == b"x"
        assert handle.output is None

    async def test_read_failure_kills_child(
        self, runner: ProcessRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        async def broken_read(self: asyncio.StreamReader, n: int = -1) -> bytes:
            raise OSError("pipe broke")

        monkeypatch.setattr(asyncio.StreamReader, "read", broken_read)
        collector = Collector()
        handle = runner.start(["sleep", "30"], collector)
        result = await collector.wait()

        assert result.exit_code is None
        assert result.launch_error == "Error: pipe broke"
        assert handle.pid is not None
        with pytest.raises(ProcessLookupError):
            os.kill(handle.pid, 0)


@pytest.mark.asyncio
class TestCancel:
    """Tests for cancelling processes."""

    async def test_cancel_long_running(self, runner: ProcessRunner) -> None:
        collector = Collector()
        handle = runner.start(["sleep", "30"], collector)
        await asyncio.sleep(0.1)

        assert handle.cancel() is True
        outcome = await asyncio.wait_for(handle.wait(), 5.0)

        assert isinstance(outcome, Cancelled)
        await asyncio.sleep(0.1)
        assert collector.events == []

    async def test_cancel_is_idempotent(self, runner: ProcessRunner) -> None:
        handle = runner.start(["sleep", "30"], lambda h, r: None)

        assert handle.cancel() is True
        assert handle.cancel() is False
        assert handle.cancelled

    async def test_cancel_before_spawn_completes(self, runner: ProcessRunner) -> None:
        collector = Collector()
        handle = runner.start(["sleep", "30"], collector)
        handle.cancel()

        outcome = await asyncio.wait_for(handle.wait(), 5.0)
        await asyncio.sleep(0.1)

        assert isinstance(outcome, Cancelled)
        assert collector.events == []

    async def test_cancel_during_spawn_reaps_child(
        self, runner: ProcessRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        waited: list[int] = []
        original_wait = asyncio.subprocess.Process.wait

        async def recording_wait(self: asyncio.subprocess.Process) -> int:
            waited.append(self.pid)
            return await original_wait(self)

        monkeypatch.setattr(asyncio.subprocess.Process, "wait", recording_wait)
        collector = Collector()
        handle = runner.start(["sleep", "30"], collector)
        # One loop turn: the runner task is now waiting on the spawn
        await asyncio.sleep(0)
        handle.cancel()
        await asyncio.sleep(0.5)

        assert collector.events == []
        assert len(waited) == 1
        with pytest.raises(ProcessLookupError):
            os.kill(waited[0], 0)

    async def test_no_callback_after_exit_when_cancelled(self, runner: ProcessRunner) -> None:
        collector = Collector()
        handle = runner.start(["sh", "-c", "printf done"], collector)
        # Let the process exit, then cancel before the loop delivers the result
        await asyncio.sleep(0)
        handle.cancel()
        await asyncio.sleep(0.3)

        assert collector.events == []

    async def test_cancel_after_completion_is_noop(self, runner: ProcessRunner) -> None:
        collector = Collector()
        handle = runner.start(["sh", "-c", "printf x"], collector)
        await collector.wait()

        assert handle.cancel() is False
        assert len(collector.events) == 1

    async def test_callback_error_does_not_escape(self, runner: ProcessRunner) -> None:
        def broken(handle: ProcessHandle, result: ProcessResult) -> None:
            raise RuntimeError("boom")

        handle = runner.start(["sh", "-c", "printf x"], broken)
        outcome = await asyncio.wait_for(handle.wait(), 5.0)

        assert isinstance(outcome, ProcessResult)
        assert outcome.output == b"x"
