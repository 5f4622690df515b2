"""Interactive prompts used before a session starts."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter

if TYPE_CHECKING:
    from prompt_toolkit.input import Input
    from prompt_toolkit.output import Output


class PromptFormatResolver:
    """Ask for input/output formats the detectors could not determine."""

    def __init__(
        self,
        read_choices: Sequence[str],
        write_choices: Sequence[str],
        *,
        input: Input | None = None,
        output: Output | None = None,
    ) -> None:
        self._read_choices = list(read_choices)
        self._write_choices = list(write_choices)
        self._input = input
        self._output = output

    def __call__(
        self,
        read_needed: bool,
        write_needed: bool,
        history: Sequence[str],
    ) -> tuple[str | None, str | None]:
        read = self._ask("Read format", self._read_choices) if read_needed else None
        write = self._ask("Write format", self._write_choices) if write_needed else None
        return read, write

    def _ask(self, label: str, choices: list[str]) -> str | None:
        session: PromptSession[str] = PromptSession(input=self._input, output=self._output)
        hint = f" ({'/'.join(choices)})" if choices else ""
        answer = session.prompt(
            f"{label}{hint}: ",
            completer=WordCompleter(choices) if choices else None,
            default=choices[0] if choices else "",
        )
        return answer.strip() or None
