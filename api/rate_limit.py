from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Optional


class RateLimitStore:
    """Sliding-window request counter keyed by ``"<route key>:<client ip>"``.

    One store is built per application and held on ``app.state``. Timestamps
    older than the window are pruned on every hit; buckets left empty are
    evicted, and the oldest buckets are dropped once ``max_buckets`` is reached.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        *,
        enabled: bool = True,
        max_buckets: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.enabled = enabled
        self.max_buckets = max_buckets
        self._clock = clock
        self._buckets: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> bool:
        """Record one request; ``False`` when the bucket is already full."""
        if not self.enabled:
            return True
        now = self._clock()
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                if len(self._buckets) >= self.max_buckets:
                    self._evict(now)
                bucket = self._buckets.setdefault(key, deque())
            while bucket and now - bucket[0] > self.window_seconds:
                bucket.popleft()
            if len(bucket) >= self.max_requests:
                return False
            bucket.append(now)
            return True

    def _evict(self, now: float) -> None:
        for key in [k for k, b in self._buckets.items() if not b or now - b[-1] > self.window_seconds]:
            del self._buckets[key]
        while len(self._buckets) >= self.max_buckets:
            del self._buckets[next(iter(self._buckets))]

    def reset(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._buckets.clear()
            else:
                self._buckets.pop(key, None)

    def __len__(self) -> int:
        return len(self._buckets)
