"""Interfaces the session engine calls into.

The host is whatever owns the screen: the terminal front end, or a
recording fake in tests.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from livequery.session.state import SessionSnapshot, Status


class Host(Protocol):
    """Render surface driven by a SessionController."""

    def render_output(self, output: bytes, ansi: bool, mode_hint: str | None) -> None:
        """Draw result bytes, interpreting color escapes when ansi is set."""
        ...

    def show_surface(self, height: int) -> None:
        """Place the output surface with the given height."""
        ...

    def hide_surface(self) -> None:
        """Remove the output surface and restore the previous layout."""
        ...

    def resize_surface(self, height: int) -> None: ...

    def show_status(self, status: Status, header: str, message: str | None) -> None:
        """Update the status label and command preview."""
        ...


class FormatResolver(Protocol):
    """Asks the user for format tags the detectors could not supply."""

    def __call__(
        self,
        read_needed: bool,
        write_needed: bool,
        history: Sequence[str],
    ) -> tuple[str | None, str | None]: ...


Detector = Callable[["SessionSnapshot"], "str | None"]


def _no_tag(snapshot: SessionSnapshot) -> str | None:
    return None


@dataclass(frozen=True)
class Detectors:
    """Pure functions from a session snapshot to an optional tag.

    Attributes:
        mode: Presentation hint for rendering (e.g. a lexer name).
        read_format: Input format tag for {read}.
        write_format: Output format tag for {write}.
    """

    mode: Detector = _no_tag
    read_format: Detector = _no_tag
    write_format: Detector = _no_tag
