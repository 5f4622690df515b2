"""Exception types raised by livequery."""

from __future__ import annotations


class LiveQueryError(Exception):
    """Base class for livequery errors."""


class TemplateError(LiveQueryError):
    """A command template could not be rendered or parsed.

    Raised when the template references a placeholder that has no value,
    or names a placeholder livequery does not know.
    """

    def __init__(self, message: str, placeholder: str | None = None) -> None:
        super().__init__(message)
        self.placeholder = placeholder


class ProcessLaunchError(LiveQueryError):
    """The filter executable cannot be run.

    Checked when a session is opened, never per query.
    """

    def __init__(self, executable: str, reason: str = "not found") -> None:
        super().__init__(f"Cannot run {executable!r}: {reason}")
        self.executable = executable
        self.reason = reason


class ProcessExitError(LiveQueryError):
    """A filter process exited with a non-zero status."""

    def __init__(self, exit_code: int | None, output: str = "") -> None:
        first_line = output.strip().splitlines()[0] if output.strip() else ""
        message = f"exit {exit_code}"
        if first_line:
            message = f"{message}: {first_line}"
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output


class UnknownCommandError(LiveQueryError):
    """No command with the requested name is configured."""

    def __init__(self, name: str, known: list[str] | None = None) -> None:
        message = f"Unknown command: {name}"
        if known:
            message = f"{message} (available: {', '.join(sorted(known))})"
        super().__init__(message)
        self.name = name
