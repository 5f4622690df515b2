"""Session creation and bookkeeping.

The manager merges configuration once per session, checks that the filter
executable can run before a session exists, resolves input/output formats,
and owns the per-command query history for the lifetime of the process.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from livequery.command.registry import CommandRegistry, check_launchable
from livequery.command.template import READ, WRITE
from livequery.logging import get_logger
from livequery.process.runner import ProcessRunner
from livequery.session.controller import SessionController
from livequery.session.display import DisplayController
from livequery.session.host import Detectors
from livequery.session.state import Session

if TYPE_CHECKING:
    from livequery.config.schema import CommandConfig, Config
    from livequery.process.protocol import Runner
    from livequery.session.host import FormatResolver, Host
    from livequery.session.state import InputSource

log = get_logger("session.manager")


class SessionManager:
    """Opens filter sessions and tracks the live ones."""

    def __init__(
        self,
        config: Config,
        *,
        runner: Runner | None = None,
        registry: CommandRegistry | None = None,
        detectors: Detectors | None = None,
        format_resolver: FormatResolver | None = None,
        check_executable: bool = True,
    ) -> None:
        """Initialize the manager.

        Args:
            config: Loaded configuration.
            runner: Process runner; a ProcessRunner by default.
            registry: Command registry; built from config by default.
            detectors: Mode and format detectors supplied by the front end.
            format_resolver: Asks for formats the detectors cannot supply.
            check_executable: Verify the program exists when opening.
        """
        self._config = config
        self._runner = runner or ProcessRunner(output_limit=config.session.output_limit)
        self._registry = registry or CommandRegistry.from_config(config)
        self._detectors = detectors or Detectors()
        self._format_resolver = format_resolver
        self._check_executable = check_executable

        self._histories: dict[str, list[str]] = {}
        self._sessions: dict[str, SessionController] = {}

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    def history(self, command_name: str) -> list[str]:
        """Committed queries of a command, oldest first."""
        return self._histories.setdefault(command_name, [])

    def get(self, session_id: str) -> SessionController | None:
        return self._sessions.get(session_id)

    def live_sessions(self) -> list[SessionController]:
        return list(self._sessions.values())

    def open_session(
        self,
        input_source: InputSource,
        host: Host,
        *,
        command: str | None = None,
        query: str = "",
        read_format: str | None = None,
        write_format: str | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> SessionController:
        """Create a session. Call start() on the result to begin.

        Args:
            input_source: Input the filter reads. Released on failure.
            host: Render surface.
            command: Command name; the configured default if None.
            query: Initial query.
            read_format: Explicit {read} tag.
            write_format: Explicit {write} tag.
            overrides: Session option overrides (e.g. from the command line),
                applied after the command's own overrides.

        Raises:
            UnknownCommandError: No command with that name.
            TemplateError: The configured template is malformed.
            ProcessLaunchError: The command's program cannot be run.
        """
        name = command or self._config.session.default_command
        try:
            resolved = self._registry.resolve(name)
            if self._check_executable:
                check_launchable(resolved.template)
            options = self._config.session.options.merged(resolved.config.overrides())
            if overrides:
                options = options.merged(overrides)
        except Exception:
            input_source.release()
            raise

        session = Session(
            command_name=name,
            template=resolved.template,
            options=options,
            input_source=input_source,
            query=query,
            history=self.history(name),
            write_formats=list(resolved.config.write_formats),
        )
        try:
            self._resolve_formats(session, resolved.config, read_format, write_format)
        except BaseException:
            # Includes an interrupted format prompt
            input_source.release()
            raise
        session.mode_hint = self._detectors.mode(session.snapshot())

        controller = SessionController(
            session,
            runner=self._runner,
            host=host,
            display=DisplayController.from_options(options),
            detectors=self._detectors,
            on_closed=self._forget,
        )
        self._sessions[session.session_id] = controller
        log.debug(
            "Opened session %s: command=%s input=%s formats=%s/%s",
            session.session_id,
            name,
            input_source.path,
            session.read_format,
            session.write_format,
        )
        return controller

    def _resolve_formats(
        self,
        session: Session,
        cmd: CommandConfig,
        read_format: str | None,
        write_format: str | None,
    ) -> None:
        read_needed = session.template.needs(READ)
        write_needed = session.template.needs(WRITE)

        read = read_format
        if read is None and read_needed:
            read = self._detectors.read_format(session.snapshot())
        session.read_format = read

        write = write_format
        if write is None and write_needed:
            write = self._detectors.write_format(session.snapshot())
        session.write_format = write

        missing_read = read_needed and session.read_format is None
        missing_write = write_needed and session.write_format is None
        if (missing_read or missing_write) and self._format_resolver is not None:
            asked_read, asked_write = self._format_resolver(
                missing_read, missing_write, self.history(session.command_name)
            )
            if missing_read:
                session.read_format = asked_read
            if missing_write:
                session.write_format = asked_write

        # Fall back to the command's first declared format
        if read_needed and session.read_format is None and cmd.read_formats:
            session.read_format = cmd.read_formats[0]
        if write_needed and session.write_format is None and cmd.write_formats:
            session.write_format = cmd.write_formats[0]

    def _forget(self, controller: SessionController) -> None:
        self._sessions.pop(controller.session.session_id, None)

    def close_all(self) -> int:
        """End every live session.

        Returns:
            Number of sessions ended.
        """
        controllers = self.live_sessions()
        for controller in controllers:
            controller.end_session()
        return len(controllers)
