"""Debounce policy for query edits.

The decision is a pure function of the new query and the session's
bookkeeping. The caller owns the timer and runs the process.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from enum import Enum


class DebounceKind(Enum):
    IGNORE = "ignore"  # Nothing to run
    SCHEDULE = "schedule"  # Run after the delay, replacing any pending timer
    FIRE_NOW = "fire_now"  # Run immediately


@dataclass(frozen=True)
class DebounceAction:
    kind: DebounceKind
    query: str  # Trimmed query the action applies to
    delay: float = 0.0

    @property
    def ignored(self) -> bool:
        return self.kind is DebounceKind.IGNORE


def decide(
    query: str,
    *,
    last_processed: str,
    history: Collection[str],
    delay: float,
    seen: Collection[str] = (),
) -> DebounceAction:
    """Decide what a query edit should trigger.

    Args:
        query: The query as typed.
        last_processed: Trimmed query most recently handed to a process.
        history: Queries committed by earlier sessions of this command.
        delay: Debounce delay in seconds.
        seen: Queries that already succeeded in this session.

    Returns:
        IGNORE for an unchanged or empty query, FIRE_NOW for a known
        query, otherwise SCHEDULE after delay.
    """
    trimmed = query.strip()
    if trimmed == last_processed or not trimmed:
        return DebounceAction(DebounceKind.IGNORE, trimmed)
    if trimmed in seen or trimmed in history:
        return DebounceAction(DebounceKind.FIRE_NOW, trimmed)
    return DebounceAction(DebounceKind.SCHEDULE, trimmed, delay)
