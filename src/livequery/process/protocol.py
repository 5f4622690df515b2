"""Runner protocol for starting filter processes."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol

from livequery.process.result import ProcessResult


class Handle(Protocol):
    """Ownership handle for one started process."""

    argv: list[str]

    @property
    def cancelled(self) -> bool: ...

    def cancel(self) -> bool:
        """Cancel the process. Returns False if already finished or cancelled."""
        ...


DoneCallback = Callable[[Handle, ProcessResult], None]


class Runner(Protocol):
    """Protocol for starting filter processes.

    Implementations:
    - ProcessRunner: local asyncio subprocess
    - test fakes that complete on demand
    """

    def start(self, argv: Sequence[str], on_done: DoneCallback) -> Handle:
        """Start a process.

        Args:
            argv: Argument vector; argv[0] is the program.
            on_done: Called once with the result unless the handle is
                cancelled first, in which case it is never called.

        Returns:
            The handle owning the process.
        """
        ...
