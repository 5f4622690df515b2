"""Asyncio subprocess runner for filter commands."""

from __future__ import annotations

import asyncio
import contextlib
import os
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from livequery.logging import TRACE, get_logger
from livequery.process.result import Cancelled, ProcessOutcome, ProcessResult

if TYPE_CHECKING:
    from livequery.process.protocol import DoneCallback

log = get_logger("process")

DEFAULT_OUTPUT_LIMIT = 4 * 1024 * 1024
_CHUNK_SIZE = 64 * 1024


def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            process.kill()


class ProcessHandle:
    """Owns one running filter process.

    The handle reports exactly one terminal event. After cancel() the
    completion callback is never invoked, even if the process had already
    exited and its result was waiting to be delivered.
    """

    def __init__(self, argv: list[str]) -> None:
        self.argv = argv
        # Capture buffer, released once the terminal event is consumed
        self.output: bytearray | None = bytearray()
        self.truncated = False
        self._process: asyncio.subprocess.Process | None = None
        self._task: asyncio.Task[ProcessResult] | None = None
        self._cancelled = False
        self._reported = False
        self._outcome: asyncio.Future[ProcessOutcome] = (
            asyncio.get_running_loop().create_future()
        )

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._outcome.done()

    def cancel(self) -> bool:
        """Cancel the process without waiting for it to exit.

        Idempotent: returns False if the handle already finished or was
        already cancelled.
        """
        if self._cancelled or self._reported:
            return False
        self._cancelled = True
        if self._process is not None:
            _kill(self._process)
        if self._task is not None and not self._task.done():
            # The task reaps the killed process in the background
            self._task.cancel()
        self._settle(Cancelled(self.argv))
        log.log(TRACE, "Cancelled %s", self.argv)
        return True

    async def wait(self) -> ProcessOutcome:
        """Wait for the terminal event (result or Cancelled)."""
        return await asyncio.shield(self._outcome)

    def _settle(self, outcome: ProcessOutcome) -> None:
        if not self._outcome.done():
            self._outcome.set_result(outcome)
        self.output = None

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "done" if self.done else "running"
        return f"<ProcessHandle {self.argv[0] if self.argv else '?'} {state}>"


class ProcessRunner:
    """Start filter processes with combined stdout/stderr capture.

    Each started process runs in its own asyncio task on the current loop.
    """

    def __init__(
        self,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        output_limit: int = DEFAULT_OUTPUT_LIMIT,
    ) -> None:
        """Initialize the runner.

        Args:
            cwd: Working directory for processes. None inherits ours.
            env: Additional environment variables.
            output_limit: Maximum bytes of output to keep per process.
        """
        self._cwd = cwd
        self._env = env
        self._output_limit = output_limit
        # Reaper tasks for children whose spawn finished after a cancel
        self._reaping: set[asyncio.Future[int]] = set()

    def start(self, argv: Sequence[str], on_done: DoneCallback) -> ProcessHandle:
        """Start a process in the background.

        Must be called from within a running event loop.
        """
        handle = ProcessHandle(list(argv))
        task = asyncio.get_running_loop().create_task(self._run(handle))
        handle._task = task
        task.add_done_callback(lambda t: self._finish(handle, t, on_done))
        log.debug("Started %s", handle.argv)
        return handle

    def _environment(self) -> dict[str, str] | None:
        if not self._env:
            return None
        process_env = os.environ.copy()
        process_env.update(self._env)
        return process_env

    async def _spawn(self, handle: ProcessHandle) -> asyncio.subprocess.Process:
        spawn = asyncio.ensure_future(
            asyncio.create_subprocess_exec(
                *handle.argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,  # Merge stderr into stdout
                cwd=self._cwd,
                env=self._environment(),
            )
        )
        try:
            return await asyncio.shield(spawn)
        except asyncio.CancelledError:
            # Cancelled mid-spawn: kill the child as soon as it exists
            def kill_spawned(fut: asyncio.Future[asyncio.subprocess.Process]) -> None:
                if not fut.cancelled() and fut.exception() is None:
                    process = fut.result()
                    _kill(process)
                    # Reap it so the transport is closed
                    reaper = asyncio.ensure_future(process.wait())
                    self._reaping.add(reaper)
                    reaper.add_done_callback(self._reaping.discard)

            spawn.add_done_callback(kill_spawned)
            raise

    def _launch_failure(self, handle: ProcessHandle, code: int, message: str) -> ProcessResult:
        log.debug("Launch failed for %s: %s", handle.argv, message)
        return ProcessResult(argv=handle.argv, exit_code=code, launch_error=message)

    async def _run(self, handle: ProcessHandle) -> ProcessResult:
        start_time = time.perf_counter()
        program = handle.argv[0] if handle.argv else ""

        try:
            process = await self._spawn(handle)
        except FileNotFoundError:
            return self._launch_failure(handle, 127, f"Command not found: {program}")
        except PermissionError:
            return self._launch_failure(handle, 126, f"Permission denied: {program}")
        except OSError as e:
            return self._launch_failure(handle, 1, f"OS error: {e}")

        handle._process = process
        assert process.stdout is not None

        try:
            while True:
                chunk = await process.stdout.read(_CHUNK_SIZE)
                if not chunk:
                    break
                buffer = handle.output
                if buffer is None:
                    continue
                room = self._output_limit - len(buffer)
                if room <= 0:
                    # Keep draining so the process is not blocked on a full pipe
                    handle.truncated = True
                    continue
                if len(chunk) > room:
                    handle.truncated = True
                    chunk = chunk[:room]
                buffer.extend(chunk)
            exit_code = await process.wait()
        except BaseException:
            # Cancelled or failed mid-read: never leave the child running
            _kill(process)
            with contextlib.suppress(ProcessLookupError):
                await process.wait()
            raise

        return ProcessResult(
            argv=handle.argv,
            exit_code=exit_code,
            output=bytes(handle.output or b""),
            truncated=handle.truncated,
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )

    def _finish(
        self,
        handle: ProcessHandle,
        task: asyncio.Task[ProcessResult],
        on_done: DoneCallback,
    ) -> None:
        if handle.cancelled or task.cancelled():
            # Completion raced with cancel(): the cancel wins
            handle._settle(Cancelled(handle.argv))
            return

        exc = task.exception()
        if exc is not None:
            log.warning("Process %s failed: %s", handle.argv, exc)
            result = ProcessResult(
                argv=handle.argv, exit_code=None, launch_error=f"Error: {exc}"
            )
        else:
            result = task.result()

        handle._reported = True
        log.debug("Finished %r in %.1fms", result, result.duration_ms)
        try:
            on_done(handle, result)
        except Exception:
            log.exception("Completion callback failed for %s", handle.argv)
        finally:
            handle._settle(result)
