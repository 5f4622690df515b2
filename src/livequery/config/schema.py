"""Configuration schema dataclasses for livequery.

Defines the structure of configuration at all levels (system, user, project).
Fields that a command may override are optional on CommandConfig so that
unset values fall through to the session defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class ResizeStyle(Enum):
    """How the output surface height follows the content length.

    - FIXED: always the minimum height
    - FIT: shrink and grow with the content
    - GROW: only grow during a session
    """

    FIXED = "fixed"
    FIT = "fit"
    GROW = "grow"


class DisplayMethod(Enum):
    """Where the output surface is placed."""

    PANEL = "panel"  # Bottom-anchored, full width
    OVERLAY = "overlay"  # Centered float


@dataclass(frozen=True)
class SessionOptions:
    """Options for one session, merged once at session creation.

    Never modified while the session is alive.
    """

    delay: float = 0.3  # Debounce delay in seconds
    resize_style: ResizeStyle = ResizeStyle.FIT
    min_height: int = 3
    max_height: int = 20
    display: DisplayMethod = DisplayMethod.PANEL
    ansi: bool = False  # Interpret color escapes in output
    width_fraction: float = 0.8  # Overlay width relative to the screen

    def __post_init__(self) -> None:
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")
        if self.min_height < 1:
            raise ValueError(f"min_height must be >= 1, got {self.min_height}")
        if self.max_height < self.min_height:
            raise ValueError(
                f"max_height ({self.max_height}) must be >= min_height ({self.min_height})"
            )
        if not 0 < self.width_fraction <= 1:
            raise ValueError(f"width_fraction must be in (0, 1], got {self.width_fraction}")

    def merged(self, overrides: dict[str, Any]) -> SessionOptions:
        """Return a copy with the non-None overrides applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **values) if values else self


@dataclass
class CommandConfig:
    """A filter command definition.

    Example config.yaml:
        commands:
          - name: jq
            command: "{exe} -M {query} {input}"
            executable: jq
          - name: yq
            command: "{exe} -p {read} -o {write} {query} {input}"
            executable: yq
            read_formats: [yaml, json, xml, toml]
            write_formats: [yaml, json, xml, toml]
            resize_style: grow
    """

    name: str
    command: str  # Template text with {exe} {query} {input} {read} {write}
    executable: str | None = None  # Value of {exe}; defaults to the name
    read_formats: list[str] = field(default_factory=list)
    write_formats: list[str] = field(default_factory=list)
    description: str = ""

    # Per-command overrides of SessionDefaults (None = inherit)
    delay: float | None = None
    resize_style: ResizeStyle | None = None
    min_height: int | None = None
    max_height: int | None = None
    display: DisplayMethod | None = None
    ansi: bool | None = None

    def overrides(self) -> dict[str, Any]:
        """Session option overrides declared by this command."""
        return {
            "delay": self.delay,
            "resize_style": self.resize_style,
            "min_height": self.min_height,
            "max_height": self.max_height,
            "display": self.display,
            "ansi": self.ansi,
        }


@dataclass
class SessionDefaults:
    """Session defaults configuration."""

    default_command: str = "jq"
    options: SessionOptions = field(default_factory=SessionOptions)
    output_limit: int = 4 * 1024 * 1024  # Bytes captured per process


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, overrides level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object.

    Aggregates all configuration sections. All fields use default factories
    to ensure partial configs work correctly with deep merging.
    """

    session: SessionDefaults = field(default_factory=SessionDefaults)
    commands: list[CommandConfig] = field(default_factory=list)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level sections, kept for extensions
    extra: dict[str, Any] = field(default_factory=dict)

    def command(self, name: str) -> CommandConfig | None:
        """Look up a command definition by name."""
        for cmd in self.commands:
            if cmd.name == name:
                return cmd
        return None
