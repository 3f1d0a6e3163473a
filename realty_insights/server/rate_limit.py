"""Per-client fixed-window rate limiting for the HTTP API."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: float  # seconds until the window resets


class RateLimiter:
    """Counts requests per client key in fixed windows.

    One instance belongs to one application; nothing is shared at module level.
    """

    def __init__(self,
                 window_seconds: float = 60.0,
                 max_requests: int = 3,
                 clock: Callable[[], float] = time.monotonic):
        """Initialize rate limiter.

        Args:
            window_seconds: Length of one counting window
            max_requests: Requests allowed per key per window
            clock: Monotonic time source
        """
        if window_seconds <= 0 or max_requests < 1:
            raise ValueError("window_seconds must be > 0 and max_requests >= 1")
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def check(self, key: str) -> RateLimitDecision:
        """Count one request for key and decide whether it may proceed."""
        now = self._clock()
        with self._lock:
            self._evict_expired(now)

            window = self._windows.get(key)
            if window is None or window.reset_at <= now:
                window = _Window(count=0, reset_at=now + self.window_seconds)
                self._windows[key] = window

            window.count += 1
            allowed = window.count <= self.max_requests
            decision = RateLimitDecision(
                allowed=allowed,
                remaining=max(0, self.max_requests - window.count),
                retry_after=max(0.0, window.reset_at - now),
            )

        if not allowed:
            logger.warning(f"Rate limit exceeded for {key}")
        return decision

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if window.reset_at <= now]
        for key in expired:
            del self._windows[key]
