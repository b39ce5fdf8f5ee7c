"""
Rate limiting module for the SafeStake service.

Sliding-window throttle for the mutating endpoints, keyed by the caller's
identity so one participant cannot flood the registry.
"""

import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""
    allowed: bool
    remaining: int
    retry_after: Optional[float] = None


class RateLimiter:
    """
    Sliding window rate limiter.

    Thread-safe; each key keeps a deque of hit times inside the window.
    Keys whose hits have all expired are swept at most once per window.
    """

    def __init__(self, rpm: int, window_seconds: int = 60):
        self._limit = max(1, rpm)
        self._window = window_seconds
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.RLock()
        self._last_sweep = time.monotonic()

    def allow(self, key: str) -> bool:
        return self.check(key).allowed

    def check(self, key: str) -> RateLimitResult:
        """
        Record a hit for `key` if the window has room.

        Returns:
            RateLimitResult with allowed status and remaining budget
        """
        now = time.monotonic()
        window_start = now - self._window

        with self._lock:
            if now - self._last_sweep >= self._window:
                self.cleanup_expired()

            q = self._hits[key]
            while q and q[0] < window_start:
                q.popleft()

            if len(q) >= self._limit:
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    retry_after=max(0.0, q[0] + self._window - now)
                )

            q.append(now)
            return RateLimitResult(allowed=True, remaining=self._limit - len(q))

    def reset(self, key: Optional[str] = None) -> None:
        """Reset counters for one key, or all keys."""
        with self._lock:
            if key:
                self._hits.pop(key, None)
            else:
                self._hits.clear()

    def cleanup_expired(self) -> int:
        """
        Remove expired hits from all keys and drop keys left empty.

        Returns:
            Number of hits removed
        """
        now = time.monotonic()
        window_start = now - self._window
        removed = 0

        with self._lock:
            empty_keys = []

            for key, q in self._hits.items():
                while q and q[0] < window_start:
                    q.popleft()
                    removed += 1

                if not q:
                    empty_keys.append(key)

            # Remove empty keys
            for key in empty_keys:
                del self._hits[key]

            self._last_sweep = now

        return removed

    def tracked_keys(self) -> int:
        """Number of keys currently holding hits."""
        with self._lock:
            return len(self._hits)
