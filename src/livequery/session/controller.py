"""Session state machine.

Turns query edits into an ordered sequence of filter processes:

    waiting -> running -> {succeed | error | null} -> running ...

At most one debounce timer and one process are alive per session. Starting
a new one cancels the previous one first, and a completion from any process
other than the session's current one is discarded.

All methods must be called on the event loop that owns the session.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from livequery.errors import ProcessExitError, TemplateError
from livequery.logging import TRACE, get_logger
from livequery.session.debounce import DebounceKind, decide
from livequery.session.display import DisplayController
from livequery.session.host import Detectors
from livequery.session.state import Session, Status

if TYPE_CHECKING:
    from livequery.process.protocol import Handle, Runner
    from livequery.process.result import ProcessResult
    from livequery.session.host import Host

log = get_logger("session")


class SessionController:
    """Drives one Session in response to edits, completions and actions."""

    def __init__(
        self,
        session: Session,
        *,
        runner: Runner,
        host: Host,
        display: DisplayController | None = None,
        detectors: Detectors | None = None,
        on_closed: Callable[[SessionController], None] | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            session: The session to drive. Owned by this controller.
            runner: Starts filter processes.
            host: Render surface.
            display: Resize policy; derived from the session options if None.
            detectors: Used to refresh the mode hint after a format change.
            on_closed: Called once after teardown.
        """
        self.session = session
        self._runner = runner
        self._host = host
        self._display = display or DisplayController.from_options(session.options)
        self._detectors = detectors or Detectors()
        self._on_closed = on_closed
        self._started = False

    @property
    def status(self) -> Status:
        return self.session.status

    @property
    def closed(self) -> bool:
        return self.session.closed

    # -------------------------------------------------------------------------
    # Host calls
    # -------------------------------------------------------------------------

    def _call_host(self, method: str, *args: Any) -> None:
        try:
            getattr(self._host, method)(*args)
        except Exception:
            log.exception("Host %s failed", method)

    def _set_status(self, status: Status) -> None:
        s = self.session
        s.status = status
        log.log(TRACE, "[%s] status=%s", s.session_id, status.value)
        self._call_host("show_status", status, s.header(), s.error_message)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Show the surface and process the initial query, if any."""
        if self._started or self.session.closed:
            return
        self._started = True
        s = self.session
        s.cached_height = self._display.initial_height()
        self._call_host("show_surface", s.cached_height)
        self._set_status(Status.WAITING)
        log.info("[%s] Session started: %s", s.session_id, s.template.text)
        if s.query.strip():
            # An initial query is known, not typed: no need to debounce it
            self._run(s.query.strip())

    def end_session(self) -> bytes | None:
        """Tear the session down. Safe to call any number of times.

        Returns:
            The last successfully rendered result, if any.
        """
        s = self.session
        if s.closed:
            return s.cached_result
        s.closed = True

        self._cancel_timer()
        self._cancel_process()
        s.input_source.release()
        if s.cached_query:
            s.history.append(s.cached_query)
        self._call_host("hide_surface")
        log.info("[%s] Session ended (last query: %r)", s.session_id, s.cached_query)

        if self._on_closed is not None:
            try:
                self._on_closed(self)
            except Exception:
                log.exception("Session close callback failed")
        return s.cached_result

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def on_query_changed(self, query: str) -> None:
        """Feed one edit of the query."""
        s = self.session
        if s.closed:
            return
        s.query = query

        action = decide(
            query,
            last_processed=s.last_processed,
            history=s.history,
            delay=s.options.delay,
            seen=s.seen,
        )

        if not action.query:
            # Cleared: nothing runs, the last good output stays on screen
            self._cancel_timer()
            self._cancel_process()
            s.last_processed = ""
            s.error_message = None
            self._set_status(Status.WAITING)
            return

        if action.kind is DebounceKind.IGNORE:
            # Back to the query already processed; a timer for a newer edit is stale
            self._cancel_timer()
            return

        if action.kind is DebounceKind.FIRE_NOW:
            self._cancel_timer()
            self._run(action.query)
            return

        self._schedule(action.delay)

    def modify_command(self, text: str) -> bool:
        """Replace the command text and rerun the current query.

        Returns:
            False if the new text is not a valid template; the old template
            stays in place, pending work is cancelled and the status
            becomes ERROR.
        """
        s = self.session
        if s.closed:
            return False
        try:
            s.template = s.template.with_text(text)
        except TemplateError as e:
            log.info("[%s] Rejected command %r: %s", s.session_id, text, e)
            self._cancel_timer()
            self._cancel_process()
            s.error_message = str(e)
            self._set_status(Status.ERROR)
            return False
        log.debug("[%s] Command changed to %r", s.session_id, text)
        self._rerun()
        return True

    def cycle_write_format(self) -> str | None:
        """Switch to the next output format and rerun the current query.

        Returns:
            The new format, or None if the command has no format choices.
        """
        s = self.session
        if s.closed or not s.write_formats:
            return None
        try:
            index = s.write_formats.index(s.write_format)
        except ValueError:
            index = -1
        s.write_format = s.write_formats[(index + 1) % len(s.write_formats)]
        s.mode_hint = self._detectors.mode(s.snapshot())
        log.debug("[%s] Write format: %s", s.session_id, s.write_format)
        self._rerun()
        return s.write_format

    # -------------------------------------------------------------------------
    # Timer and process slots
    # -------------------------------------------------------------------------

    def _cancel_timer(self) -> None:
        timer = self.session.pending_timer
        if timer is not None:
            timer.cancel()
            self.session.pending_timer = None

    def _cancel_process(self) -> None:
        handle = self.session.active_process
        if handle is not None:
            self.session.active_process = None
            handle.cancel()

    def _schedule(self, delay: float) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self.session.pending_timer = loop.call_later(delay, self._on_timer)

    def _on_timer(self) -> None:
        s = self.session
        s.pending_timer = None
        if s.closed:
            return
        # Decide again from the latest query: it may have changed since scheduling
        action = decide(
            s.query,
            last_processed=s.last_processed,
            history=s.history,
            delay=s.options.delay,
            seen=s.seen,
        )
        if action.ignored:
            return
        self._run(action.query)

    def _rerun(self) -> None:
        self._cancel_timer()
        query = self.session.query.strip()
        if query:
            self._run(query)
        else:
            self._set_status(self.session.status)

    def _run(self, query: str) -> None:
        s = self.session
        self._cancel_process()
        s.last_processed = query

        try:
            argv = s.template.render(s.placeholders(query))
        except TemplateError as e:
            log.info("[%s] Cannot render command: %s", s.session_id, e)
            s.error_message = str(e)
            self._set_status(Status.ERROR)
            return

        try:
            s.active_process = self._runner.start(argv, self._on_process_done)
        except Exception as e:
            log.exception("[%s] Cannot start %s", s.session_id, argv)
            s.error_message = str(e)
            self._set_status(Status.ERROR)
            return

        s.active_query = query
        s.error_message = None
        log.debug("[%s] Running %r", s.session_id, query)
        self._set_status(Status.RUNNING)

    def _on_process_done(self, handle: Handle, result: ProcessResult) -> None:
        s = self.session
        if s.closed or handle is not s.active_process:
            log.log(TRACE, "[%s] Discarding stale %r", s.session_id, result)
            return
        s.active_process = None
        query = s.active_query

        if not result.success:
            s.error_message = result.launch_error or str(
                ProcessExitError(result.exit_code, result.text)
            )
            log.debug("[%s] %r failed: %s", s.session_id, query, s.error_message)
            self._set_status(Status.ERROR)
            return

        if result.empty:
            s.error_message = None
            self._set_status(Status.NULL)
            return

        update = self._display.plan(result.output, s.cached_result, s.cached_height)
        if update is not None:
            s.cached_result = result.output
            self._call_host("render_output", result.output, s.options.ansi, s.mode_hint)
            if update.resize:
                self._call_host("resize_surface", update.height)
            s.cached_height = update.height

        s.cached_query = query
        s.seen.add(query)
        s.error_message = None
        self._set_status(Status.SUCCEED)
