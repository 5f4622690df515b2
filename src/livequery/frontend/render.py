"""Turn filter output into prompt_toolkit formatted text."""

from __future__ import annotations

from prompt_toolkit.formatted_text import ANSI, AnyFormattedText
from rich.console import Console
from rich.syntax import Syntax

from livequery.logging import get_logger

log = get_logger("frontend.render")

DEFAULT_THEME = "monokai"


def highlight(text: str, lexer: str, width: int = 200, theme: str = DEFAULT_THEME) -> str:
    """Syntax-highlight text with rich and return it as ANSI escapes."""
    console = Console(
        force_terminal=True,
        color_system="256",
        width=width,
        highlight=False,
        soft_wrap=True,
    )
    syntax = Syntax(text, lexer, theme=theme, background_color="default", word_wrap=False)
    with console.capture() as capture:
        console.print(syntax, end="")
    return capture.get()


def to_formatted_text(
    output: bytes,
    ansi: bool,
    mode_hint: str | None,
    width: int = 200,
) -> AnyFormattedText:
    """Formatted text for the output window.

    Args:
        output: Raw filter output.
        ansi: Output already carries color escapes; interpret them.
        mode_hint: Lexer name for highlighting plain output.
        width: Render width for the highlighter.
    """
    text = output.decode("utf-8", errors="replace")
    if ansi:
        return ANSI(text)
    if mode_hint:
        try:
            return ANSI(highlight(text, mode_hint, width=width))
        except Exception as e:
            # Unknown lexer names and the like: show the text as is
            log.debug("Highlighting as %s failed: %s", mode_hint, e)
    return text
