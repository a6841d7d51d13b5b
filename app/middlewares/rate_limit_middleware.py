import time
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable, Deque, Dict, Optional

from fastapi import Request

from app.exceptions.base_exception import TooManyRequestsException


class RateLimiter(ABC):
    """Decides whether one more request for ``key`` is allowed right now."""

    @abstractmethod
    def allow(self, key: str) -> bool:
        ...


class InMemoryRateLimiter(RateLimiter):
    """
    Sliding-window limiter for a single process. Swap for a shared-store
    implementation when running several workers.
    """

    def __init__(self, max_requests: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep: Optional[float] = None

    def allow(self, key: str) -> bool:
        now = self._clock()
        window_start = now - self.window_seconds

        self._evict_idle(window_start)

        hits = self._hits.setdefault(key, deque())
        while hits and hits[0] <= window_start:
            hits.popleft()

        if len(hits) >= self.max_requests:
            return False
        hits.append(now)
        return True

    def _evict_idle(self, window_start: float) -> None:
        # At most one sweep per window
        if self._last_sweep is not None and self._last_sweep > window_start:
            return
        self._last_sweep = window_start + self.window_seconds

        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in idle:
            del self._hits[key]

    def reset(self) -> None:
        self._hits.clear()
        self._last_sweep = None


def rate_limit(name: str):
    """
    Dependency factory. Limiters live in ``app.state.rate_limiters`` under
    ``name``; the key is client host + request path.
    """
    async def _check(request: Request) -> None:
        limiters = getattr(request.app.state, "rate_limiters", {})
        limiter = limiters.get(name)
        if limiter is None:
            return
        client = request.client.host if request.client else "unknown"
        if not limiter.allow(f"{client}{request.url.path}"):
            raise TooManyRequestsException()
    return _check
