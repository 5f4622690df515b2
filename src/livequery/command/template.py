"""Command templates: the text of a filter command with placeholders.

A template is split into argv tokens with shell rules, then each token may
reference placeholders:

    {exe}    the filter executable
    {query}  the query being typed
    {input}  path of the input file (real or temporary)
    {read}   input format tag
    {write}  output format tag

Example:
    tpl = CommandTemplate.parse("{exe} -p {read} -o {write} {query} {input}")
    tpl.render({"exe": "yq", "read": "json", "write": "yaml",
                "query": ".a", "input": "/tmp/x.json"})
    # ['yq', '-p', 'json', '-o', 'yaml', '.a', '/tmp/x.json']
"""

from __future__ import annotations

import shlex
import string
from collections.abc import Mapping
from dataclasses import dataclass

from livequery.errors import TemplateError

EXE = "exe"
QUERY = "query"
INPUT = "input"
READ = "read"
WRITE = "write"

PLACEHOLDERS = frozenset({EXE, QUERY, INPUT, READ, WRITE})

# Shown instead of the input path in the command preview
MASKED_INPUT = "<input>"

# (literal text, placeholder name or None)
_Piece = tuple[str, str | None]

_formatter = string.Formatter()


def _split_token(token: str) -> tuple[_Piece, ...]:
    try:
        parsed = list(_formatter.parse(token))
    except ValueError as e:
        raise TemplateError(f"Malformed placeholder in {token!r}: {e}") from e

    pieces: list[_Piece] = []
    for literal, name, spec, conversion in parsed:
        if name is None:
            pieces.append((literal, None))
            continue
        if not name:
            raise TemplateError(f"Empty placeholder in {token!r}")
        if name not in PLACEHOLDERS:
            known = ", ".join("{%s}" % p for p in sorted(PLACEHOLDERS))
            raise TemplateError(
                f"Unknown placeholder {{{name}}} (known: {known})", placeholder=name
            )
        if spec or conversion:
            raise TemplateError(f"Format options are not supported in {token!r}", name)
        pieces.append((literal, name))
    return tuple(pieces)


@dataclass(frozen=True)
class CommandTemplate:
    """Parsed command template. Immutable; use with_text() to edit."""

    text: str
    tokens: tuple[tuple[_Piece, ...], ...]
    executable: str | None = None

    @classmethod
    def parse(cls, text: str, executable: str | None = None) -> CommandTemplate:
        """Parse template text.

        Raises:
            TemplateError: On unbalanced quotes, malformed braces or
                unknown placeholders.
        """
        try:
            words = shlex.split(text)
        except ValueError as e:
            raise TemplateError(f"Cannot parse command {text!r}: {e}") from e
        if not words:
            raise TemplateError("Command template is empty")
        return cls(
            text=text,
            tokens=tuple(_split_token(w) for w in words),
            executable=executable,
        )

    @property
    def required(self) -> frozenset[str]:
        """Placeholders referenced anywhere in the template."""
        return frozenset(
            name for pieces in self.tokens for _, name in pieces if name is not None
        )

    def needs(self, placeholder: str) -> bool:
        return placeholder in self.required

    @property
    def program(self) -> str | None:
        """The program this template launches, if known without rendering."""
        first = self.tokens[0]
        if len(first) == 1 and first[0][1] == EXE:
            return self.executable
        if all(name is None for _, name in first):
            return "".join(literal for literal, _ in first)
        return None

    def with_text(self, text: str) -> CommandTemplate:
        """Return a template with new text and the same executable."""
        return CommandTemplate.parse(text, executable=self.executable)

    def _values(self, placeholders: Mapping[str, str | None]) -> dict[str, str | None]:
        values = dict(placeholders)
        if values.get(EXE) is None and self.executable is not None:
            values[EXE] = self.executable
        return values

    def render(self, placeholders: Mapping[str, str | None]) -> list[str]:
        """Expand the template into an argument vector.

        Args:
            placeholders: Values by placeholder name. {exe} falls back to
                the template's executable.

        Returns:
            The argv list; the query always lands inside a single argument.

        Raises:
            TemplateError: If a referenced placeholder has no value.
        """
        values = self._values(placeholders)
        argv: list[str] = []
        for pieces in self.tokens:
            parts: list[str] = []
            for literal, name in pieces:
                parts.append(literal)
                if name is None:
                    continue
                value = values.get(name)
                if value is None:
                    raise TemplateError(
                        f"No value for placeholder {{{name}}}", placeholder=name
                    )
                parts.append(value)
            argv.append("".join(parts))
        return argv

    def render_header(self, placeholders: Mapping[str, str | None]) -> str:
        """Render a preview of the command for display.

        The input path is masked and the query is shell-quoted. Missing
        placeholders show as <name>; this never raises.
        """
        values = self._values(placeholders)
        words: list[str] = []
        for pieces in self.tokens:
            if all(name is None for _, name in pieces):
                words.append(shlex.quote("".join(literal for literal, _ in pieces)))
                continue
            parts: list[str] = []
            for literal, name in pieces:
                parts.append(literal)
                if name is None:
                    continue
                if name == INPUT:
                    parts.append(MASKED_INPUT)
                elif name == QUERY:
                    parts.append(shlex.quote(values.get(QUERY) or ""))
                else:
                    value = values.get(name)
                    parts.append(value if value is not None else f"<{name}>")
            words.append("".join(parts))
        return " ".join(words)
