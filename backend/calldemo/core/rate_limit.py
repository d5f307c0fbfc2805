"""
LiveCall Demo - Rate Limiting

Two independent limits protect the call intake:

- PerNumberThrottle: sliding window over the audit store, keyed by phone hash.
- FixedWindowRateLimiter: fixed window per client address at the transport
  boundary, regardless of which number is being called.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from calldemo.core.audit_store import AuditStore
from calldemo.core.exceptions import PerNumberThrottleError

PER_NUMBER_MESSAGE = "Too many requests for this number. Retry shortly."
CLIENT_LIMIT_MESSAGE = "Too many requests, please try again later."


class PerNumberThrottle:
    """Reject a phone hash once it has `limit` entries in the trailing window."""

    def __init__(self, store: AuditStore, limit: int = 2, window_seconds: int = 60) -> None:
        self._store = store
        self._limit = limit
        self._window = timedelta(seconds=window_seconds)

    @property
    def limit(self) -> int:
        return self._limit

    async def check(self, phone_hash: str, now: datetime, request_id: Optional[str] = None) -> None:
        """
        Raises:
            PerNumberThrottleError: if the number is over its cap
        """
        recent = await self._store.count_since(phone_hash, now - self._window)
        if recent >= self._limit:
            raise PerNumberThrottleError(PER_NUMBER_MESSAGE, request_id=request_id)


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one hit against the transport limiter."""
    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int

    def headers(self) -> Dict[str, str]:
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_seconds),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.reset_seconds)
        return headers


class FixedWindowRateLimiter:
    """
    Fixed window counter per client key. Thread-safe.

    Each key gets a window starting at its first hit; once `limit` hits land
    inside it, further hits are refused until the window ends. A key whose
    window ended starts a fresh one on its next hit; windows of keys that
    went quiet are swept at most once per window length.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = limit
        self._window = float(window_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[str, tuple[float, int]] = {}
        self._next_sweep = clock() + self._window

    @property
    def enabled(self) -> bool:
        return self._limit > 0

    def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._evict_expired(now)
                self._next_sweep = now + self._window

            started, count = self._windows.get(key, (now, 0))
            if now - started >= self._window:
                started, count = now, 0
            reset = max(0, math.ceil(started + self._window - now))

            if count >= self._limit:
                return RateLimitDecision(False, self._limit, 0, reset)

            count += 1
            self._windows[key] = (started, count)
            return RateLimitDecision(True, self._limit, self._limit - count, reset)

    @property
    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._windows)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _evict_expired(self, now: float) -> None:
        expired = [k for k, (started, _) in self._windows.items() if now - started >= self._window]
        for key in expired:
            del self._windows[key]
