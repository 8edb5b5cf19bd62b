from __future__ import annotations

import math
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, Iterable

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

TOO_MANY_REQUESTS_REPLY = "Too many requests, please try again later."


class SlidingWindowLimiter:
    """Per-key request cap over a rolling window (in-process only)."""

    def __init__(
        self,
        limit: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = int(limit)
        self.window = float(window_seconds)
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()

    @property
    def enabled(self) -> bool:
        return self.limit > 0

    def _expire(self, q: Deque[float], now: float) -> None:
        while q and now - q[0] >= self.window:
            q.popleft()

    def _sweep(self, now: float) -> None:
        # Drop clients whose whole window has expired
        for key in list(self._hits):
            q = self._hits[key]
            self._expire(q, now)
            if not q:
                del self._hits[key]
        self._last_sweep = now

    def hit(self, key: str) -> bool:
        """Record a request for ``key``; False when it is over the limit."""
        if not self.enabled:
            return True
        now = self._clock()
        if now - self._last_sweep >= self.window:
            self._sweep(now)
        q = self._hits.get(key)
        if q is not None:
            self._expire(q, now)
        else:
            q = self._hits[key] = deque()
        if len(q) >= self.limit:
            return False
        q.append(now)
        return True

    def retry_after(self, key: str) -> int:
        q = self._hits.get(key)
        if not q:
            return 0
        return max(1, math.ceil(self.window - (self._clock() - q[0])))


def _client_key(request: Request) -> str:
    client = request.client
    return client.host if client else "unknown"


def rate_limit_middleware(
    limiter: SlidingWindowLimiter, exempt: Iterable[str] = ("/", "/health")
) -> Callable:
    """Return a Starlette middleware callable enforcing ``limiter`` per client IP."""
    exempt_paths = set(exempt)

    async def _middleware(request: Request, call_next: Callable[[Request], Any]) -> Response:
        if request.url.path in exempt_paths or request.method == "OPTIONS":
            return await call_next(request)
        key = _client_key(request)
        if not limiter.hit(key):
            request.state.error_kind = "rate_limited"
            return JSONResponse(
                status_code=429,
                content={"reply": TOO_MANY_REQUESTS_REPLY},
                headers={"Retry-After": str(limiter.retry_after(key))},
            )
        return await call_next(request)

    return _middleware
