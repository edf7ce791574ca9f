from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, Tuple

from fastapi import Depends, Request

from estate_api.core.auth_deps import get_current_principal
from estate_api.core.config import get_settings
from estate_api.core.exceptions import RateLimitedError
from estate_api.policies.rbac import Principal


@dataclass
class Bucket:
    tokens: float
    last_ts: float


class InMemoryRateLimiter:
    """
    Token bucket:
      capacity tokens; refill rate tokens/sec.

    Keyed by (user_id, route_key). Per process; a multi-worker deployment
    gets one bucket set per worker.
    """
    def __init__(
        self,
        capacity: int,
        refill_per_sec: float,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 300.0,
    ):
        self.capacity = float(capacity)
        self.refill_per_sec = float(refill_per_sec)
        self.sweep_interval = float(sweep_interval)
        self._clock = clock
        self._buckets: Dict[Tuple[str, str], Bucket] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def _sweep(self, now: float) -> None:
        # a bucket that would be full again is the same as no bucket
        if now - self._last_sweep < self.sweep_interval or self.refill_per_sec <= 0:
            return
        self._last_sweep = now
        for key, b in list(self._buckets.items()):
            if b.tokens + (now - b.last_ts) * self.refill_per_sec >= self.capacity:
                del self._buckets[key]

    def _refill(self, key: Tuple[str, str]) -> Bucket:
        now = self._clock()
        self._sweep(now)
        b = self._buckets.get(key)
        if b is None:
            b = Bucket(tokens=self.capacity, last_ts=now)
            self._buckets[key] = b
        elapsed = max(0.0, now - b.last_ts)
        b.tokens = min(self.capacity, b.tokens + elapsed * self.refill_per_sec)
        b.last_ts = now
        return b

    def allow(self, user_id: str, route_key: str, cost: float = 1.0) -> bool:
        with self._lock:
            b = self._refill((user_id, route_key))
            if b.tokens >= cost:
                b.tokens -= cost
                return True
            return False

    def retry_after(self, user_id: str, route_key: str, cost: float = 1.0) -> int:
        """Whole seconds until `cost` tokens are available again."""
        with self._lock:
            b = self._refill((user_id, route_key))
            missing = max(0.0, cost - b.tokens)
        if self.refill_per_sec <= 0:
            return 60
        return max(1, math.ceil(missing / self.refill_per_sec))

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()

    def __len__(self) -> int:
        return len(self._buckets)


@lru_cache(maxsize=1)
def get_bid_limiter() -> InMemoryRateLimiter:
    # BID_RATE_LIMIT_MAX submissions per BID_RATE_LIMIT_WINDOW_SECONDS per user
    settings = get_settings()
    window = max(1, settings.bid_rate_limit_window_seconds)
    return InMemoryRateLimiter(
        capacity=settings.bid_rate_limit_max,
        refill_per_sec=settings.bid_rate_limit_max / float(window),
    )


def enforce_bid_rate_limit(
    request: Request,
    principal: Principal = Depends(get_current_principal),
    limiter: InMemoryRateLimiter = Depends(get_bid_limiter),
) -> None:
    """
    Route dependency for bid submission. Runs after authentication, so the
    bucket is keyed by the caller rather than by IP.
    """
    route_key = f"{request.method}:bids"
    if not limiter.allow(str(principal.user_id), route_key):
        raise RateLimitedError(limiter.retry_after(str(principal.user_id), route_key))
