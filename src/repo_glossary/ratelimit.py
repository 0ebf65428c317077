"""
In-process rate limiting of pipeline runs per caller.

State lives only in the RateLimiter instance and is lost on restart.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Fixed-window request counter keyed by caller identity."""

    def __init__(
        self,
        max_requests: int = 5,
        window_seconds: float = 15 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Requests allowed per caller within one window.
            window_seconds: Window length in seconds.
            clock: Monotonic time source in seconds (replaced in tests).
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def __len__(self) -> int:
        """Number of callers with a tracked window."""
        return len(self._windows)

    def _prune(self, now: float) -> None:
        expired = [caller for caller, w in self._windows.items() if now > w.reset_at]
        for caller in expired:
            del self._windows[caller]

    def check(self, caller_id: str) -> bool:
        """Record a request for caller_id and report whether it is allowed."""
        now = self._clock()
        self._prune(now)
        window = self._windows.get(caller_id)

        if window is None or now > window.reset_at:
            self._windows[caller_id] = _Window(count=1, reset_at=now + self.window_seconds)
            return True

        if window.count >= self.max_requests:
            return False

        window.count += 1
        return True

    def retry_after(self, caller_id: str) -> float:
        """Seconds until caller_id's window resets (0 if it has none)."""
        window = self._windows.get(caller_id)
        if window is None:
            return 0.0
        return max(0.0, window.reset_at - self._clock())

    def remaining(self, caller_id: str) -> int:
        window = self._windows.get(caller_id)
        if window is None or self._clock() > window.reset_at:
            return self.max_requests
        return max(0, self.max_requests - window.count)

    def reset(self, caller_id: str | None = None) -> None:
        """Forget one caller, or everyone when caller_id is None."""
        if caller_id is None:
            self._windows.clear()
        else:
            self._windows.pop(caller_id, None)
