"""
ragebait/activity.py - Bounded, newest-first activity feed.

Independent of arena state. Listeners are called synchronously on every
record so the gateway can fan entries out once the current mutation is done.
"""

import logging
import time
import uuid
from collections import deque
from typing import Callable

from .models import ActivityEntry

logger = logging.getLogger(__name__)

ActivityListener = Callable[[ActivityEntry], None]


class ActivityLog:
    """Keeps the most recent `max_entries` entries, newest first."""

    def __init__(self, max_entries: int = 15, now: Callable[[], float] = time.time):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._entries: deque[ActivityEntry] = deque(maxlen=max_entries)
        self._listeners: list[ActivityListener] = []
        self._now = now

    @property
    def max_entries(self) -> int:
        return self._entries.maxlen

    def subscribe(self, listener: ActivityListener) -> None:
        self._listeners.append(listener)

    def record(self, message: str) -> ActivityEntry:
        """Append a new entry at the front. Oldest entries fall off the back."""
        entry = ActivityEntry(id=uuid.uuid4().hex, message=message, timestamp=self._now())
        self._entries.appendleft(entry)
        logger.debug(f"activity: {message}")
        for listener in self._listeners:
            listener(entry)
        return entry

    def recent(self, limit: int | None = None) -> list[ActivityEntry]:
        """Newest first. `limit=None` returns everything retained."""
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        entries = list(self._entries)
        if limit is not None:
            entries = entries[:limit]
        return entries

    def __len__(self) -> int:
        return len(self._entries)
