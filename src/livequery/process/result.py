"""Terminal events reported by the process runner."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ProcessResult:
    """Result of one filter process.

    Attributes:
        argv: The argument vector that was executed.
        exit_code: Process exit code (0 = success), or None if it never ran
            or died from a runtime error.
        output: Combined stdout/stderr bytes (may be truncated).
        truncated: True if output was cut at the runner's output limit.
        duration_ms: Wall time from spawn to exit in milliseconds.
        launch_error: Why the process could not be started or awaited.
    """

    argv: list[str]
    exit_code: int | None
    output: bytes = b""
    truncated: bool = False
    duration_ms: float = 0.0
    launch_error: str | None = None

    @property
    def success(self) -> bool:
        """True if the process ran and exited with code 0."""
        return self.exit_code == 0 and self.launch_error is None

    @property
    def empty(self) -> bool:
        return not self.output

    @property
    def text(self) -> str:
        return self.output.decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        if self.success:
            return f"<ProcessResult ok, {len(self.output)} bytes>"
        if self.launch_error:
            return f"<ProcessResult launch error: {self.launch_error}>"
        return f"<ProcessResult error, exit={self.exit_code}>"


@dataclass(frozen=True)
class Cancelled:
    """Terminal event of a process that was cancelled."""

    argv: list[str] = field(default_factory=list)

    def __repr__(self) -> str:
        return "<Cancelled>"


ProcessOutcome = ProcessResult | Cancelled
