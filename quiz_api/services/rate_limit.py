from __future__ import annotations

import math
import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: int  # seconds until the oldest counted hit leaves the window


class SlidingWindowLimiter:
    """In-memory sliding-window counter keyed by an arbitrary string.

    State is per instance (per process). For multi-instance deployments, put a
    shared store behind the same interface.
    """

    SWEEP_EVERY = 1000

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = int(limit)
        self.window = float(window_seconds)
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()
        self._calls = 0

    def _prune(self, key: str, now: float) -> Deque[float]:
        q = self._hits[key]
        while q and q[0] <= now - self.window:
            q.popleft()
        return q

    def _sweep(self, now: float) -> None:
        stale = [k for k, q in self._hits.items() if not q or q[-1] <= now - self.window]
        for k in stale:
            del self._hits[k]

    def _decision(self, q: Deque[float], now: float, allowed: bool) -> RateLimitDecision:
        if q:
            reset_after = max(0, math.ceil(q[0] + self.window - now))
        else:
            reset_after = math.ceil(self.window)
        return RateLimitDecision(
            allowed=allowed,
            limit=self.limit,
            remaining=max(0, self.limit - len(q)),
            reset_after=reset_after,
        )

    def hit(self, key: str) -> RateLimitDecision:
        """Count one request for ``key`` unless it is already over the limit."""
        with self._lock:
            now = self._clock()
            self._calls += 1
            if self._calls % self.SWEEP_EVERY == 0:
                self._sweep(now)
            q = self._prune(key, now)
            if len(q) >= self.limit:
                return self._decision(q, now, allowed=False)
            q.append(now)
            return self._decision(q, now, allowed=True)

    def is_limited(self, key: str) -> bool:
        """Return True if ``key`` has used up the window, without counting a hit."""
        with self._lock:
            return len(self._prune(key, self._clock())) >= self.limit

    def record(self, key: str) -> None:
        with self._lock:
            now = self._clock()
            self._prune(key, now).append(now)

    def reset(self, key: str) -> None:
        with self._lock:
            self._hits.pop(key, None)
