"""Per-actor hourly request budget.

Design:
- Fixed one-hour window per actor identity.
- Per-process state; with several workers the budget is per worker.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import HTTPException, status

from app.core.config import get_hourly_limit


class RateLimitExceeded(HTTPException):
    pass


@dataclass(slots=True)
class _Window:
    start_hour: int
    count: int


class InMemoryHourlyRateLimiter:
    def __init__(self, *, limit_per_hour: Optional[int] = None, clock: Callable[[], float] = time.time) -> None:
        self._limit = limit_per_hour
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    @property
    def limit(self) -> int:
        # Resolved lazily so the env var can be set after import.
        return self._limit if self._limit is not None else get_hourly_limit()

    def check(self, key: str) -> None:
        hour = int(self._clock()) // 3600
        limit = self.limit
        with self._lock:
            w = self._windows.get(key)
            if w is None or w.start_hour != hour:
                w = _Window(start_hour=hour, count=0)
                self._windows[key] = w
            w.count += 1
            exceeded = w.count > limit
        if exceeded:
            raise RateLimitExceeded(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Rate limit exceeded. Please reduce request cadence.",
            )

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


LIMITER = InMemoryHourlyRateLimiter()
