"""Command-line interface for livequery."""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from prompt_toolkit.input import create_input
from prompt_toolkit.output import create_output
from rich.console import Console
from rich.table import Table

from livequery import __version__
from livequery.command.registry import CommandRegistry
from livequery.config import load_config
from livequery.config.schema import Config, DisplayMethod, ResizeStyle
from livequery.errors import LiveQueryError
from livequery.frontend.app import FilterApp
from livequery.frontend.detect import extension_detectors
from livequery.frontend.prompts import PromptFormatResolver
from livequery.logging import get_logger, setup_logging
from livequery.session.manager import SessionManager
from livequery.session.state import InputSource

log = get_logger("cli")

console = Console(stderr=True)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="livequery",
        description="Filter a file interactively through jq, yq and friends",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "file",
        nargs="?",
        type=Path,
        help="Input file (default: read standard input)",
    )
    parser.add_argument(
        "-c", "--command",
        help="Configured command to run (default: session.default_command)",
    )
    parser.add_argument(
        "-q", "--query",
        default="",
        help="Initial query",
    )
    parser.add_argument(
        "--no-input",
        action="store_true",
        help="Run the command without an input file",
    )
    parser.add_argument(
        "-r", "--read-format",
        help="Input format tag for {read}",
    )
    parser.add_argument(
        "-w", "--write-format",
        help="Output format tag for {write}",
    )
    parser.add_argument(
        "--delay",
        type=float,
        help="Debounce delay in seconds",
    )
    parser.add_argument(
        "--style",
        choices=[s.value for s in ResizeStyle],
        help="How the output height follows the content",
    )
    parser.add_argument(
        "--display",
        choices=[d.value for d in DisplayMethod],
        help="Show output in a bottom panel or a centered overlay",
    )
    parser.add_argument(
        "--min-height",
        type=int,
        help="Minimum output height in lines",
    )
    parser.add_argument(
        "--max-height",
        type=int,
        help="Maximum output height in lines",
    )
    parser.add_argument(
        "--ansi",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Interpret color escapes in the command output",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Extra config file, applied after the user and project configs",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List configured commands and exit",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (can be repeated)",
    )
    return parser


def option_overrides(parsed: argparse.Namespace) -> dict[str, Any]:
    """Session option overrides given on the command line."""
    return {
        "delay": parsed.delay,
        "resize_style": ResizeStyle(parsed.style) if parsed.style else None,
        "display": DisplayMethod(parsed.display) if parsed.display else None,
        "min_height": parsed.min_height,
        "max_height": parsed.max_height,
        "ansi": parsed.ansi,
    }


def list_commands(config: Config) -> None:
    table = Table(title="Configured Commands")
    table.add_column("Name", style="bold", no_wrap=True)
    table.add_column("Command")
    table.add_column("Formats")
    table.add_column("Description")
    for cmd in config.commands:
        formats = "/".join(cmd.write_formats) if cmd.write_formats else ""
        marker = " *" if cmd.name == config.session.default_command else ""
        table.add_row(cmd.name + marker, cmd.command, formats, cmd.description)
    Console().print(table)


def read_input(parsed: argparse.Namespace) -> InputSource:
    if parsed.no_input:
        return InputSource.none()
    if parsed.file is not None:
        if not parsed.file.is_file():
            raise FileNotFoundError(f"No such file: {parsed.file}")
        return InputSource.from_file(parsed.file.resolve())
    if sys.stdin.isatty():
        raise FileNotFoundError("No input: give a file, pipe data in, or use --no-input")
    return InputSource.from_bytes(sys.stdin.buffer.read())


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments.

    Returns:
        0 when a result was accepted, 1 when aborted, 2 on errors.
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    config = load_config(project_root=os.getcwd(), config_file=parsed.config)
    setup_logging(config.logging, verbose=parsed.verbose, allow_stderr=parsed.list)

    if parsed.list:
        list_commands(config)
        return 0

    registry = CommandRegistry.from_config(config)
    command = parsed.command or config.session.default_command

    # The UI talks to the terminal even when stdin/stdout are redirected
    tty_input = create_input(always_prefer_tty=True)
    tty_output = create_output(always_prefer_tty=True)

    try:
        cmd = registry.get(command)
        resolver = PromptFormatResolver(
            cmd.read_formats, cmd.write_formats, input=tty_input, output=tty_output
        )
        manager = SessionManager(
            config,
            registry=registry,
            detectors=extension_detectors(),
            format_resolver=resolver,
        )
        app = FilterApp(input=tty_input, output=tty_output)
        controller = manager.open_session(
            read_input(parsed),
            host=app,
            command=command,
            query=parsed.query,
            read_format=parsed.read_format,
            write_format=parsed.write_format,
            overrides=option_overrides(parsed),
        )
    except (LiveQueryError, FileNotFoundError, TypeError, ValueError) as e:
        console.print(f"[red]livequery: {e}[/red]")
        return 2
    except (KeyboardInterrupt, EOFError):
        return 1

    app.attach(controller)
    log.debug("Starting UI for session %s", controller.session.session_id)

    accepted = asyncio.run(app.run())
    result = controller.session.cached_result
    if accepted and result:
        sys.stdout.buffer.write(result)
        sys.stdout.buffer.flush()
        return 0
    return 0 if accepted else 1


def main() -> None:
    sys.exit(run_cli(sys.argv[1:]))
