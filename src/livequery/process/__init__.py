"""External process execution for filter commands.

Provides the asyncio-based ProcessRunner and the result types it reports.
"""

from livequery.process.protocol import DoneCallback, Handle, Runner
from livequery.process.result import Cancelled, ProcessOutcome, ProcessResult
from livequery.process.runner import ProcessHandle, ProcessRunner

__all__ = [
    "Cancelled",
    "DoneCallback",
    "Handle",
    "ProcessHandle",
    "ProcessOutcome",
    "ProcessResult",
    "ProcessRunner",
    "Runner",
]
