"""
Sliding-window rate limiting.

Counters live in process memory, are approximate across several instances,
and reset when the process restarts.
"""

import logging
import math
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from moneybook.config import Settings
from moneybook.exceptions import RateLimitedError

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` events per key in any trailing ``window_seconds``."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        name: str = "api",
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self.name = name
        self._events: Dict[str, Deque[float]] = {}
        self._last_sweep: Optional[float] = None
        self._lock = threading.Lock()

    @property
    def tracked_keys(self) -> int:
        """Number of keys currently holding counters."""
        return len(self._events)

    def _prune(self, events: Deque[float], now: float) -> None:
        window_start = now - self.window_seconds
        while events and events[0] <= window_start:
            events.popleft()

    def _sweep(self, now: float) -> None:
        """Drop keys with no event inside the window, at most once per window."""
        if self._last_sweep is not None and now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        window_start = now - self.window_seconds
        stale = [key for key, events in self._events.items() if not events or events[-1] <= window_start]
        for key in stale:
            del self._events[key]

    def hit(self, key: str) -> None:
        """Record one event for ``key`` or raise RateLimitedError if the window is full."""
        with self._lock:
            now = self.clock()
            self._sweep(now)
            events = self._events.setdefault(key, deque())
            self._prune(events, now)

            if len(events) >= self.max_requests:
                retry_after = max(1, math.ceil(events[0] + self.window_seconds - now))
                logger.warning(f"Rate limit '{self.name}' exceeded for {key}")
                raise RateLimitedError(retry_after=retry_after)

            events.append(now)

    def remaining(self, key: str) -> int:
        with self._lock:
            events = self._events.get(key)
            if events is None:
                return self.max_requests
            self._prune(events, self.clock())
            if not events:
                del self._events[key]
                return self.max_requests
            return max(0, self.max_requests - len(events))

    def reset(self) -> None:
        with self._lock:
            self._events.clear()


class RateLimiters:
    """The independent windows used by the API."""

    def __init__(self, auth: SlidingWindowRateLimiter, api: SlidingWindowRateLimiter,
                 transaction_create: SlidingWindowRateLimiter):
        self.auth = auth
        self.api = api
        self.transaction_create = transaction_create

    @classmethod
    def from_settings(cls, config: Settings, clock: Callable[[], float] = time.monotonic) -> "RateLimiters":
        return cls(
            auth=SlidingWindowRateLimiter(
                config.auth_rate_limit, config.auth_rate_window_seconds, clock, name="auth"
            ),
            api=SlidingWindowRateLimiter(
                config.api_rate_limit, config.api_rate_window_seconds, clock, name="api"
            ),
            transaction_create=SlidingWindowRateLimiter(
                config.transaction_create_limit,
                config.transaction_create_window_seconds,
                clock,
                name="transaction_create",
            ),
        )
