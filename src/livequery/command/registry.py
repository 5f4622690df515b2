"""Registry of configured filter commands."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass

from livequery.command.template import CommandTemplate
from livequery.config.schema import CommandConfig, Config
from livequery.errors import ProcessLaunchError, UnknownCommandError
from livequery.logging import get_logger

log = get_logger("command")


@dataclass(frozen=True)
class ResolvedCommand:
    """A command definition with its parsed template and executable."""

    config: CommandConfig
    template: CommandTemplate

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def executable(self) -> str:
        return self.template.executable or self.config.name


class CommandRegistry:
    """Named filter commands, looked up when a session is opened."""

    def __init__(self, commands: list[CommandConfig]) -> None:
        self._commands: dict[str, CommandConfig] = {}
        for cmd in commands:
            if cmd.name in self._commands:
                log.debug("Command %r redefined", cmd.name)
            self._commands[cmd.name] = cmd

    @classmethod
    def from_config(cls, config: Config) -> CommandRegistry:
        return cls(config.commands)

    def names(self) -> list[str]:
        return sorted(self._commands)

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def get(self, name: str) -> CommandConfig:
        """Return the command definition.

        Raises:
            UnknownCommandError: If no command has this name.
        """
        try:
            return self._commands[name]
        except KeyError:
            raise UnknownCommandError(name, self.names()) from None

    def resolve(self, name: str) -> ResolvedCommand:
        """Look up a command and parse its template.

        Raises:
            UnknownCommandError: If no command has this name.
            TemplateError: If the configured template is malformed.
        """
        cmd = self.get(name)
        template = CommandTemplate.parse(cmd.command, executable=cmd.executable or cmd.name)
        return ResolvedCommand(config=cmd, template=template)


def check_launchable(template: CommandTemplate) -> str:
    """Verify the template's program can be executed.

    Returns:
        The resolved path of the program.

    Raises:
        ProcessLaunchError: If the program is missing or not executable.
    """
    program = template.program
    if not program:
        raise ProcessLaunchError(template.text, "cannot determine the program to run")

    if os.sep in program or (os.altsep and os.altsep in program):
        if not os.path.isfile(program):
            raise ProcessLaunchError(program, "not found")
        if not os.access(program, os.X_OK):
            raise ProcessLaunchError(program, "not executable")
        return program

    found = shutil.which(program)
    if found is None:
        raise ProcessLaunchError(program, "not found on PATH")
    return found
