"""Filter command definitions and templates."""

from livequery.command.registry import CommandRegistry, ResolvedCommand, check_launchable
from livequery.command.template import MASKED_INPUT, PLACEHOLDERS, CommandTemplate

__all__ = [
    "CommandRegistry",
    "CommandTemplate",
    "MASKED_INPUT",
    "PLACEHOLDERS",
    "ResolvedCommand",
    "check_launchable",
]
