"""Ordered lifecycle event log.

Tests assert teardown ordering against this log instead of scraping printed
output.
"""

import threading
from collections import deque
from typing import List, NamedTuple, Optional

ALLOCATED = 'allocated'
TEARDOWN = 'teardown'
WEAK_RESOLVED_ABSENT = 'weak-resolved-absent'
FREED = 'freed'

# Only recorded when tracing is enabled
RETAIN = 'retain'
RELEASE = 'release'
RETAIN_WEAK = 'retain-weak'
RELEASE_WEAK = 'release-weak'


class Event(NamedTuple):
    seq: int
    kind: str
    block_id: int
    label: str
    strong_count: int
    weak_count: int

    def __str__(self):
        return (f"#{self.seq:<4} {self.kind:<21} {self.label} "
                f"(strong={self.strong_count}, weak={self.weak_count})")


class EventLog:
    """Thread-safe append-only log of :class:`Event` records."""

    def __init__(self, max_events: Optional[int] = None):
        self._events = deque(maxlen=max_events)
        self._seq = 0
        self._lock = threading.Lock()

    def record(self, kind, block):
        with self._lock:
            self._seq += 1
            event = Event(self._seq, kind, block.id, block.label,
                          block.strong_count, block.weak_count)
            self._events.append(event)
        return event

    def events(self) -> List[Event]:
        with self._lock:
            return list(self._events)

    def kinds(self) -> List[str]:
        return [e.kind for e in self.events()]

    def of_kind(self, kind) -> List[Event]:
        return [e for e in self.events() if e.kind == kind]

    def for_block(self, block_id) -> List[Event]:
        return [e for e in self.events() if e.block_id == block_id]

    def labels(self, kind) -> List[str]:
        """Labels of the blocks that produced ``kind`` events, in order."""
        return [e.label for e in self.of_kind(kind)]

    def clear(self):
        with self._lock:
            self._events.clear()

    def __len__(self):
        with self._lock:
            return len(self._events)

    def __iter__(self):
        return iter(self.events())
