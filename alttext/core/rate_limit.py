"""Soft client-side rate limiter: fixed window on a monotonic clock."""

import logging
import time
from typing import Any, Callable

_log = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 60.0


class RateLimiter:
    """
    Fixed-window request counter for one provider.

    The counter resets once window_seconds have elapsed since the window opened. Calls
    spread across a window boundary can admit up to twice max_requests within a short
    span; this is an approximate guard, not a sliding window. No locking: the pipeline
    runs on a single event loop.
    """

    def __init__(
        self,
        name: str,
        max_requests: int = 60,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._window_start = clock()
        self._count = 0

    def _roll_window(self) -> None:
        now = self._clock()
        if now - self._window_start >= self.window_seconds:
            self._window_start = now
            self._count = 0

    def try_acquire(self) -> bool:
        """Count one call and return True, or return False when the window is full."""
        self._roll_window()
        if self._count >= self.max_requests:
            _log.warning("Rate limit reached for %s: %s/%s", self.name, self._count, self.max_requests)
            return False
        self._count += 1
        return True

    def remaining(self) -> int:
        self._roll_window()
        return max(0, self.max_requests - self._count)

    def reset(self) -> None:
        self._window_start = self._clock()
        self._count = 0

    def get_stats(self) -> dict[str, Any]:
        self._roll_window()
        return {
            "name": self.name,
            "requests_made": self._count,
            "requests_remaining": max(0, self.max_requests - self._count),
            "window_seconds": self.window_seconds,
            "max_requests": self.max_requests,
            "resets_in": max(0.0, self.window_seconds - (self._clock() - self._window_start)),
        }
