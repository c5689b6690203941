from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

from fastapi import HTTPException, Request

TOO_MANY_REQUESTS_MESSAGE = "Too many requests. Try again in a moment."
PRUNE_INTERVAL_SECONDS = 60.0


@dataclass
class _Window:
    hits: int
    resets_at: float


class RateLimiter:
    """
    Fixed-window hit counter keyed by scope and client address.

    Windows that have ended are dropped on the next sweep, so the table only
    holds clients seen during the current window of their scope.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._next_sweep = clock() + PRUNE_INTERVAL_SECONDS

    def __len__(self) -> int:
        return len(self._windows)

    def _sweep(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if window.resets_at <= now]
        for key in expired:
            del self._windows[key]
        self._next_sweep = now + PRUNE_INTERVAL_SECONDS

    def check(self, key: str, limit: int, window_seconds: int) -> None:
        """Count one hit for key; raise 429 once the window holds limit hits already."""
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            window = self._windows.get(key)
            if window is None or window.resets_at <= now:
                window = self._windows[key] = _Window(hits=0, resets_at=now + window_seconds)
            if window.hits >= limit:
                retry_after = max(1, math.ceil(window.resets_at - now))
                raise HTTPException(429, TOO_MANY_REQUESTS_MESSAGE, headers={"Retry-After": str(retry_after)})
            window.hits += 1


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit_ip(request: Request, scope: str, *, limit: int, window_seconds: int) -> None:
    limiter = getattr(getattr(request.app, "state", None), "rate_limiter", None)
    if limiter is None:
        raise RuntimeError("RateLimiter not configured")
    limiter.check(f"{scope}:{_client_ip(request)}", limit, window_seconds)
