"""Shared test doubles for livequery tests."""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Any

from livequery.command.template import CommandTemplate
from livequery.config.schema import ResizeStyle, SessionOptions
from livequery.process.result import ProcessResult
from livequery.session.controller import SessionController
from livequery.session.state import InputSource, Session, Status


class FakeHandle:
    """Process handle completed on demand by the test."""

    def __init__(self, argv: list[str], on_done: Any) -> None:
        self.argv = argv
        self._on_done = on_done
        self._cancelled = False
        self.finished = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def live(self) -> bool:
        return not self._cancelled and not self.finished

    @property
    def query(self) -> str:
        return self.argv[1] if len(self.argv) > 1 else ""

    def cancel(self) -> bool:
        if self._cancelled or self.finished:
            return False
        self._cancelled = True
        return True

    def complete(self, output: bytes = b"", exit_code: int = 0) -> bool:
        """Deliver a result the way ProcessRunner does: never after cancel."""
        if not self.live:
            return False
        self.finished = True
        self._on_done(self, ProcessResult(argv=self.argv, exit_code=exit_code, output=output))
        return True

    def deliver_stale(self, output: bytes = b"", exit_code: int = 0) -> None:
        """Deliver a result even though the handle was cancelled."""
        self.finished = True
        self._on_done(self, ProcessResult(argv=self.argv, exit_code=exit_code, output=output))


class FakeRunner:
    """Runner that records starts and never spawns anything."""

    def __init__(self) -> None:
        self.handles: list[FakeHandle] = []
        self.start_times: list[float] = []
        self.max_live = 0

    def start(self, argv: Sequence[str], on_done: Any) -> FakeHandle:
        handle = FakeHandle(list(argv), on_done)
        self.handles.append(handle)
        self.start_times.append(time.monotonic())
        self.max_live = max(self.max_live, len(self.live()))
        return handle

    def live(self) -> list[FakeHandle]:
        return [h for h in self.handles if h.live]

    @property
    def last(self) -> FakeHandle:
        return self.handles[-1]

    @property
    def queries(self) -> list[str]:
        return [h.query for h in self.handles]


class RecordingHost:
    """Host that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.statuses: list[Status] = []
        self.headers: list[str] = []
        self.messages: list[str | None] = []

    def render_output(self, output: bytes, ansi: bool, mode_hint: str | None) -> None:
        self.calls.append(("render_output", output, ansi, mode_hint))

    def show_surface(self, height: int) -> None:
        self.calls.append(("show_surface", height))

    def hide_surface(self) -> None:
        self.calls.append(("hide_surface",))

    def resize_surface(self, height: int) -> None:
        self.calls.append(("resize_surface", height))

    def show_status(self, status: Status, header: str, message: str | None) -> None:
        self.statuses.append(status)
        self.headers.append(header)
        self.messages.append(message)

    def named(self, name: str) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == name]

    @property
    def renders(self) -> list[bytes]:
        return [c[1] for c in self.named("render_output")]

    @property
    def resizes(self) -> list[int]:
        return [c[1] for c in self.named("resize_surface")]


def make_session(
    *,
    text: str = "echo {query}",
    delay: float = 0.05,
    style: ResizeStyle = ResizeStyle.FIT,
    min_height: int = 2,
    max_height: int = 10,
    input_source: InputSource | None = None,
    history: list[str] | None = None,
    write_formats: list[str] | None = None,
    write_format: str | None = None,
) -> Session:
    """Build a session whose rendered argv is [program, query, ...]."""
    return Session(
        command_name="test",
        template=CommandTemplate.parse(text),
        options=SessionOptions(
            delay=delay,
            resize_style=style,
            min_height=min_height,
            max_height=max_height,
        ),
        input_source=input_source or InputSource.none(),
        history=history if history is not None else [],
        write_formats=write_formats or [],
        write_format=write_format,
    )


def make_controller(
    runner: FakeRunner,
    host: RecordingHost,
    **kwargs: Any,
) -> SessionController:
    controller = SessionController(make_session(**kwargs), runner=runner, host=host)
    controller.start()
    return controller
