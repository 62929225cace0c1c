"""In-memory sliding window throttle for failed password logins."""

from __future__ import annotations

import time
from collections import deque
from threading import Lock
from typing import DefaultDict, Deque, Protocol


class LoginThrottle(Protocol):
    def is_blocked(self, key: str) -> bool: ...

    def record_failure(self, key: str) -> None: ...

    def reset(self, key: str) -> None: ...


class SlidingWindowLoginThrottle:
    """Thread-safe count of recent failed logins per sender/username key."""

    def __init__(self, max_failures: int, window_seconds: int) -> None:
        """Initialise throttle parameters and per-key failure storage."""
        self._max_failures = max_failures
        self._window = window_seconds
        self._failures: DefaultDict[str, Deque[float]] = DefaultDict(deque)
        self._lock = Lock()

    def is_blocked(self, key: str) -> bool:
        """Return ``True`` once ``key`` has reached the failure limit inside the window."""
        now = time.monotonic()
        with self._lock:
            queue = self._failures.get(key)
            if not queue:
                return False
            while queue and now - queue[0] > self._window:
                queue.popleft()
            if not queue:
                del self._failures[key]
                return False
            return len(queue) >= self._max_failures

    def record_failure(self, key: str) -> None:
        with self._lock:
            self._failures[key].append(time.monotonic())

    def reset(self, key: str) -> None:
        with self._lock:
            self._failures.pop(key, None)
