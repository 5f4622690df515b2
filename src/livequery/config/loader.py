"""Configuration file loading and caching.

Handles:
- Built-in defaults (the jq and yq command definitions)
- YAML file parsing
- Environment variable overrides
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

import yaml

from livequery.config.merge import merge_configs
from livequery.config.paths import get_config_paths
from livequery.config.schema import (
    CommandConfig,
    Config,
    DisplayMethod,
    LoggingConfig,
    ResizeStyle,
    SessionDefaults,
    SessionOptions,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("livequery.config")

_cached_config: Config | None = None

E = TypeVar("E", bound=Enum)

DEFAULTS: dict[str, Any] = {
    "session": {
        "default_command": "jq",
        "delay": 0.3,
        "resize_style": "fit",
        "min_height": 3,
        "max_height": 20,
        "display": "panel",
        "ansi": False,
    },
    "commands": [
        {
            "name": "jq",
            "command": "{exe} -M {query} {input}",
            "description": "Filter JSON with jq",
        },
        {
            "name": "jq-color",
            "executable": "jq",
            "command": "{exe} -C {query} {input}",
            "description": "Filter JSON with jq, colored output",
            "ansi": True,
        },
        {
            "name": "yq",
            "command": "{exe} -p {read} -o {write} {query} {input}",
            "description": "Filter YAML/JSON/XML/TOML with yq",
            "read_formats": ["yaml", "json", "xml", "toml", "csv", "tsv", "props"],
            "write_formats": ["yaml", "json", "xml", "toml", "csv", "tsv", "props"],
        },
    ],
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables.

    LIVEQUERY_LOG sets the log file, LIVEQUERY_DELAY the debounce delay.
    """
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("LIVEQUERY_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    delay = os.environ.get("LIVEQUERY_DELAY")
    if delay:
        try:
            overrides.setdefault("session", {})["delay"] = float(delay)
        except ValueError:
            _log.warning("Ignoring LIVEQUERY_DELAY=%r: not a number", delay)

    return overrides


def parse_enum(enum_type: type[E], value: Any, default: E | None, where: str) -> E | None:
    """Convert a config value to an enum member, warning on bad values."""
    if value is None:
        return default
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(str(value).lower())
    except ValueError:
        choices = ", ".join(m.value for m in enum_type)
        _log.warning("Invalid %s %r (expected one of: %s)", where, value, choices)
        return default


def parse_number(
    value: Any,
    kind: type[int] | type[float],
    minimum: float,
    where: str,
) -> Any:
    """Validate a numeric config value, warning and returning None on bad values."""
    if value is None:
        return None
    allowed = (int, float) if kind is float else (int,)
    if isinstance(value, bool) or not isinstance(value, allowed):
        _log.warning("Ignoring %s %r: expected a number", where, value)
        return None
    if value < minimum:
        _log.warning("Ignoring %s %r: must be >= %s", where, value, minimum)
        return None
    return kind(value)


def parse_bool(value: Any, where: str) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    _log.warning("Ignoring %s %r: expected true or false", where, value)
    return None


def _session_options(data: dict[str, Any]) -> SessionOptions:
    base = SessionOptions()
    overrides = {
        "delay": data.get("delay"),
        "resize_style": parse_enum(ResizeStyle, data.get("resize_style"), None, "resize_style"),
        "min_height": data.get("min_height"),
        "max_height": data.get("max_height"),
        "display": parse_enum(DisplayMethod, data.get("display"), None, "display"),
        "ansi": data.get("ansi"),
        "width_fraction": data.get("width_fraction"),
    }
    try:
        return base.merged(overrides)
    except (TypeError, ValueError) as e:
        _log.warning("Invalid session options, using defaults: %s", e)
        return base


def _command_config(data: dict[str, Any]) -> CommandConfig:
    name = data["name"]

    def where(key: str) -> str:
        return f"{key} for command {name!r}"

    return CommandConfig(
        name=name,
        command=data["command"],
        executable=data.get("executable"),
        read_formats=[str(f) for f in data.get("read_formats", []) or []],
        write_formats=[str(f) for f in data.get("write_formats", []) or []],
        description=data.get("description", ""),
        delay=parse_number(data.get("delay"), float, 0, where("delay")),
        resize_style=parse_enum(
            ResizeStyle, data.get("resize_style"), None, where("resize_style")
        ),
        min_height=parse_number(data.get("min_height"), int, 1, where("min_height")),
        max_height=parse_number(data.get("max_height"), int, 1, where("max_height")),
        display=parse_enum(DisplayMethod, data.get("display"), None, where("display")),
        ansi=parse_bool(data.get("ansi"), where("ansi")),
    )


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass."""
    session_data = data.get("session", {}) or {}
    session = SessionDefaults(
        default_command=session_data.get("default_command", "jq"),
        options=_session_options(session_data),
        output_limit=session_data.get("output_limit", SessionDefaults().output_limit),
    )

    commands = [
        _command_config(c)
        for c in data.get("commands", []) or []
        if isinstance(c, dict) and c.get("name") and c.get("command")
    ]

    log_data = data.get("logging", {}) or {}
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    known_keys = {"session", "commands", "logging"}
    extra = {k: v for k, v in data.items() if k not in known_keys}

    return Config(
        session=session,
        commands=commands,
        logging=logging_config,
        extra=extra,
    )


def load_config(
    project_root: str | Path | None = None,
    config_file: str | Path | None = None,
    reload: bool = False,
) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Explicit config file (--config)
    3. Project config (./.livequery/config.yaml)
    4. User config (~/.config/livequery/config.yaml)
    5. System config (/etc/livequery/config.yaml)
    6. Built-in defaults

    Args:
        project_root: Directory for project-level config.
        config_file: Extra config file given on the command line.
        reload: Force reload even if cached.

    Returns:
        Merged Config object.
    """
    global _cached_config

    use_cache = project_root is None and config_file is None
    if _cached_config is not None and not reload and use_cache:
        return _cached_config

    configs: list[dict[str, Any]] = [DEFAULTS]

    paths = get_config_paths(project_root)
    if config_file:
        paths.append(Path(config_file).expanduser())

    for path in paths:
        config_data = load_yaml_file(path)
        if config_data:
            _log.debug("Loaded config from %s", path)
            configs.append(config_data)

    env_config = env_overrides()
    if env_config:
        configs.append(env_config)

    config = dict_to_config(merge_configs(*configs))

    if use_cache:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset cached config (for tests or a forced reload)."""
    global _cached_config
    _cached_config = None
