"""Terminal front end built on prompt_toolkit and rich."""

from livequery.frontend.app import FilterApp
from livequery.frontend.detect import extension_detectors
from livequery.frontend.render import highlight, to_formatted_text

__all__ = [
    "FilterApp",
    "extension_detectors",
    "highlight",
    "to_formatted_text",
]
