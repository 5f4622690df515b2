"""Interactive filter session engine.

Exports:
- Session, Status, InputSource: the session value and its parts
- SessionController: the state machine driving one session
- SessionManager: opens sessions from configured commands
- DisplayController: resize policy
- decide: debounce policy
- Host, Detectors, FormatResolver: interfaces supplied by the front end
"""

from livequery.session.controller import SessionController
from livequery.session.debounce import DebounceAction, DebounceKind, decide
from livequery.session.display import DisplayController, DisplayUpdate, count_lines
from livequery.session.host import Detectors, FormatResolver, Host
from livequery.session.manager import SessionManager
from livequery.session.state import (
    InputKind,
    InputSource,
    Session,
    SessionSnapshot,
    Status,
)

__all__ = [
    "DebounceAction",
    "DebounceKind",
    "Detectors",
    "DisplayController",
    "DisplayUpdate",
    "FormatResolver",
    "Host",
    "InputKind",
    "InputSource",
    "Session",
    "SessionController",
    "SessionManager",
    "SessionSnapshot",
    "Status",
    "count_lines",
    "decide",
]
