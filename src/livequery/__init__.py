"""livequery: filter text interactively through jq, yq and other query tools."""

__version__ = "0.1.0"

# Public API
from livequery.command import CommandTemplate
from livequery.config import Config, get_config, load_config
from livequery.errors import (
    LiveQueryError,
    ProcessExitError,
    ProcessLaunchError,
    TemplateError,
    UnknownCommandError,
)
from livequery.process import ProcessResult, ProcessRunner
from livequery.session import (
    Detectors,
    DisplayController,
    Host,
    InputSource,
    Session,
    SessionController,
    SessionManager,
    Status,
)

__all__ = [
    # Config
    "Config",
    "load_config",
    "get_config",
    # Commands
    "CommandTemplate",
    # Errors
    "LiveQueryError",
    "ProcessExitError",
    "ProcessLaunchError",
    "TemplateError",
    "UnknownCommandError",
    # Processes
    "ProcessResult",
    "ProcessRunner",
    # Session
    "Detectors",
    "DisplayController",
    "Host",
    "InputSource",
    "Session",
    "SessionController",
    "SessionManager",
    "Status",
]
