"""Configuration management for livequery.

Provides hierarchical YAML-based configuration with:
- Built-in defaults (jq, jq-color and yq commands)
- System-level config (/etc/livequery/ or %PROGRAMDATA%)
- User-level config (~/.config/livequery/ or %APPDATA%)
- Project-level config (./.livequery/)
- Environment variable overrides (highest priority)

Example usage:
    from livequery.config import load_config

    config = load_config(project_root=".")
    print(config.session.options.delay)
    print([cmd.name for cmd in config.commands])
"""

from livequery.config.loader import (
    get_config,
    load_config,
    reset_config,
)
from livequery.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from livequery.config.schema import (
    CommandConfig,
    Config,
    DisplayMethod,
    LoggingConfig,
    ResizeStyle,
    SessionDefaults,
    SessionOptions,
)

__all__ = [
    # Main API
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    # Schema types
    "CommandConfig",
    "DisplayMethod",
    "LoggingConfig",
    "ResizeStyle",
    "SessionDefaults",
    "SessionOptions",
    # Path utilities
    "get_config_paths",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
