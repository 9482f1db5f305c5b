"""In-memory sliding-window rate limiter used by expensive or public endpoints."""

import time
from collections import defaultdict
from threading import Lock

from app.core.errors import RateLimitError


class RateLimiter:
    """Sliding-window limiter keyed by an arbitrary string (tenant id, client ip)."""

    def __init__(self, max_requests: int, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._requests: dict[str, list[float]] = defaultdict(list)
        self._lock = Lock()

    def _prune(self, key: str, now: float) -> list[float]:
        cutoff = now - self.window_seconds
        self._requests[key] = [t for t in self._requests[key] if t > cutoff]
        return self._requests[key]

    def is_allowed(self, key: str) -> bool:
        """Record a request for ``key`` and report whether it fits in the window."""
        now = time.monotonic()
        with self._lock:
            timestamps = self._prune(key, now)
            if len(timestamps) >= self.max_requests:
                return False
            timestamps.append(now)
            return True

    def reset_in(self, key: str) -> float:
        """Seconds until the oldest request in the window for ``key`` expires."""
        now = time.monotonic()
        with self._lock:
            timestamps = self._prune(key, now)
            if not timestamps:
                return 0.0
            return max(0.0, timestamps[0] + self.window_seconds - now)

    def hit(self, key: str) -> None:
        """Like ``is_allowed`` but raises ``RateLimitError`` when the limit is hit."""
        if not self.is_allowed(key):
            raise RateLimitError(details={"reset_in": round(self.reset_in(key), 1)})

    def reset(self) -> None:
        with self._lock:
            self._requests.clear()
