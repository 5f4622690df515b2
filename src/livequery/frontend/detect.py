"""File-extension detectors for formats and presentation mode."""

from __future__ import annotations

from livequery.session.host import Detectors
from livequery.session.state import SessionSnapshot

EXTENSION_FORMATS = {
    ".json": "json",
    ".jsonl": "json",
    ".ndjson": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".xml": "xml",
    ".toml": "toml",
    ".csv": "csv",
    ".tsv": "tsv",
    ".properties": "props",
}

# Format tag -> pygments lexer name used by rich
FORMAT_LEXERS = {
    "json": "json",
    "yaml": "yaml",
    "xml": "xml",
    "toml": "toml",
    "props": "properties",
}


def read_format(snapshot: SessionSnapshot) -> str | None:
    return EXTENSION_FORMATS.get(snapshot.input_suffix)


def write_format(snapshot: SessionSnapshot) -> str | None:
    # Default to writing what we read
    return snapshot.read_format or read_format(snapshot)


def mode(snapshot: SessionSnapshot) -> str | None:
    fmt = snapshot.write_format or snapshot.read_format or read_format(snapshot)
    return FORMAT_LEXERS.get(fmt) if fmt else None


def extension_detectors() -> Detectors:
    return Detectors(mode=mode, read_format=read_format, write_format=write_format)
