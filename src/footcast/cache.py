"""
Time-windowed in-memory store.

Entries are timestamped on insert and kept in insertion order.  Anything
older than ``max_age`` is evicted lazily on the next write (or an explicit
``purge``); ``max_size`` caps the entry count by dropping the oldest first.

Readers get copies, so a snapshot never changes under them while another
thread appends.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Callable, Generic, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimeWindowCache(Generic[T]):
    """Append-only window of ``(timestamp, value)`` entries."""

    def __init__(
        self,
        max_age: timedelta = timedelta(days=30),
        max_size: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize cache.

        Args:
            max_age: Retention window; older entries are evicted on write
            max_size: Optional cap on the number of entries kept
            clock: Returns the current timezone-aware time
        """
        self.max_age = max_age
        self.max_size = max_size
        self.clock = clock
        self._entries: deque[tuple[datetime, T]] = deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _evict(self, now: datetime) -> int:
        cutoff = now - self.max_age
        n = 0
        while self._entries and self._entries[0][0] < cutoff:
            self._entries.popleft()
            n += 1
        if self.max_size is not None:
            while len(self._entries) > self.max_size:
                self._entries.popleft()
                n += 1
        return n

    def append(self, value: T, timestamp: Optional[datetime] = None) -> None:
        """
        Add one entry and evict whatever fell out of the window.

        Args:
            value: Stored as-is; callers should pass immutable values
            timestamp: Defaults to ``clock()``
        """
        now = self.clock()
        ts = timestamp or now
        with self._lock:
            self._entries.append((ts, value))
            evicted = self._evict(now)
        if evicted:
            logger.debug(f"[cache] evicted {evicted} entries older than {self.max_age}")

    def extend(self, items: Iterable[tuple[datetime, T]]) -> None:
        """Bulk insert ``(timestamp, value)`` pairs, oldest first."""
        now = self.clock()
        with self._lock:
            for ts, value in sorted(items, key=lambda p: p[0]):
                self._entries.append((ts, value))
            self._evict(now)

    def purge(self) -> int:
        """Evict expired entries now; returns how many were dropped."""
        with self._lock:
            return self._evict(self.clock())

    def snapshot(self, last: Optional[int] = None) -> list[tuple[datetime, T]]:
        """Copy of the entries, oldest first; ``last`` keeps only the newest N."""
        with self._lock:
            items = list(self._entries)
        if last is not None:
            items = items[-last:] if last > 0 else []
        return items

    def values(self, last: Optional[int] = None) -> list[T]:
        return [v for _, v in self.snapshot(last)]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("[cache] cleared")
