"""Fixed-window, in-memory rate limiter keyed by user ID."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    """Request counter for one key within the current window."""

    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single ``RateLimiter.check`` call."""

    allowed: bool
    remaining: int
    reset_at: float


class RateLimiter:
    """Counts requests per key in non-overlapping windows.

    The first request in a window resets the counter to 1. Once the count
    reaches ``max_requests`` further requests are denied, without incrementing,
    until the window expires.

    The map is bounded by ``max_entries``: when it grows past the limit,
    expired windows are swept first, then the least recently seen keys are
    dropped. All mutations happen under a lock.
    """

    def __init__(
        self,
        window_seconds: float = 60.0,
        max_requests: int = 60,
        *,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, RateLimitEntry] = OrderedDict()
        self._lock = threading.Lock()

    def check(self, key: str) -> RateLimitDecision:
        """Record a request for *key* and report whether it is allowed."""
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)

            if entry is None or now > entry.reset_at:
                entry = RateLimitEntry(count=1, reset_at=now + self.window_seconds)
                self._entries[key] = entry
                self._entries.move_to_end(key)
                self._evict(now)
                return RateLimitDecision(
                    allowed=True,
                    remaining=self.max_requests - 1,
                    reset_at=entry.reset_at,
                )

            self._entries.move_to_end(key)

            if entry.count >= self.max_requests:
                return RateLimitDecision(allowed=False, remaining=0, reset_at=entry.reset_at)

            entry.count += 1
            return RateLimitDecision(
                allowed=True,
                remaining=self.max_requests - entry.count,
                reset_at=entry.reset_at,
            )

    def __len__(self) -> int:
        return len(self._entries)

    def _evict(self, now: float) -> None:
        """Bring the map back under ``max_entries``. Caller holds the lock."""
        if len(self._entries) <= self.max_entries:
            return

        expired = [k for k, e in self._entries.items() if now > e.reset_at]
        for k in expired:
            del self._entries[k]

        dropped = 0
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
            dropped += 1

        logger.debug(
            "Rate limiter eviction: expired=%d, lru_dropped=%d, size=%d",
            len(expired),
            dropped,
            len(self._entries),
        )
