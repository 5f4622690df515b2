"""Session state: the single explicit value the engine mutates."""

from __future__ import annotations

import asyncio
import os
import tempfile
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from livequery.command.template import EXE, INPUT, QUERY, READ, WRITE, CommandTemplate
from livequery.config.schema import SessionOptions
from livequery.logging import get_logger

if TYPE_CHECKING:
    from livequery.process.protocol import Handle

log = get_logger("session")


class Status(Enum):
    """Display status of a session."""

    WAITING = "waiting"  # No query yet, or query cleared
    RUNNING = "running"  # A process is live
    SUCCEED = "succeed"  # Last process produced output
    ERROR = "error"  # Last process failed
    NULL = "null"  # Last process succeeded with empty output


class InputKind(Enum):
    FILE = "file"
    TEMP_FILE = "temp_file"
    NO_FILE = "no_file"


@dataclass
class InputSource:
    """Where the filter reads its input from.

    TEMP_FILE sources are owned by the session and deleted at teardown.
    """

    kind: InputKind
    path: Path | None = None
    released: bool = False

    @classmethod
    def from_file(cls, path: str | Path) -> InputSource:
        return cls(InputKind.FILE, Path(path))

    @classmethod
    def from_bytes(cls, data: bytes, suffix: str = "") -> InputSource:
        """Snapshot content into an owned temporary file."""
        fd, name = tempfile.mkstemp(prefix="livequery-", suffix=suffix)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        log.debug("Wrote %d bytes to %s", len(data), name)
        return cls(InputKind.TEMP_FILE, Path(name))

    @classmethod
    def none(cls) -> InputSource:
        return cls(InputKind.NO_FILE)

    @property
    def owned(self) -> bool:
        return self.kind is InputKind.TEMP_FILE

    @property
    def suffix(self) -> str:
        return self.path.suffix if self.path else ""

    def release(self) -> bool:
        """Delete an owned temp file. Runs at most once; never raises.

        Returns:
            True if a file was deleted by this call.
        """
        if not self.owned or self.released or self.path is None:
            return False
        self.released = True
        try:
            self.path.unlink()
        except OSError as e:
            log.debug("Could not delete %s: %s", self.path, e)
            return False
        log.debug("Deleted %s", self.path)
        return True


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session handed to detectors."""

    session_id: str
    command_name: str
    input_path: Path | None
    query: str
    read_format: str | None
    write_format: str | None

    @property
    def input_suffix(self) -> str:
        return self.input_path.suffix.lower() if self.input_path else ""


def new_session_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class Session:
    """One interactive filtering session.

    Mutated only by SessionController, on the event loop.
    """

    command_name: str
    template: CommandTemplate
    options: SessionOptions
    input_source: InputSource
    session_id: str = field(default_factory=new_session_id)

    query: str = ""
    last_processed: str = ""  # Trimmed query last handed to a process

    cached_query: str = ""
    cached_result: bytes | None = None
    cached_height: int = 0

    status: Status = Status.WAITING
    active_process: Handle | None = None
    active_query: str = ""  # Query the active process was started for
    pending_timer: asyncio.TimerHandle | None = None

    history: list[str] = field(default_factory=list)
    seen: set[str] = field(default_factory=set)  # Queries that succeeded this session

    read_format: str | None = None
    write_format: str | None = None
    write_formats: list[str] = field(default_factory=list)
    mode_hint: str | None = None

    error_message: str | None = None
    closed: bool = False

    def placeholders(self, query: str | None = None) -> dict[str, str | None]:
        """Placeholder values for rendering the command template."""
        return {
            EXE: self.template.executable,
            QUERY: self.query.strip() if query is None else query,
            INPUT: str(self.input_source.path) if self.input_source.path else None,
            READ: self.read_format,
            WRITE: self.write_format,
        }

    def header(self) -> str:
        """The command preview shown above the output."""
        return self.template.render_header(self.placeholders())

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            command_name=self.command_name,
            input_path=self.input_source.path,
            query=self.query,
            read_format=self.read_format,
            write_format=self.write_format,
        )
