import time
from collections import deque
from threading import Lock

_MAX_BUCKETS = 50_000
_PRUNE_INTERVAL_SECONDS = 60


class SlidingWindowRateLimiter:
    """Per-key sliding window counter, in process memory only."""

    def __init__(
        self,
        *,
        max_buckets: int = _MAX_BUCKETS,
        prune_interval_seconds: int = _PRUNE_INTERVAL_SECONDS,
        clock=time.monotonic,
    ) -> None:
        self._buckets: dict[str, deque[float]] = {}
        self._lock = Lock()
        self._max_buckets = max_buckets
        self._prune_interval_seconds = max(1, int(prune_interval_seconds))
        self._last_prune_at = 0.0
        self._clock = clock

    def allow(self, key: str, limit: int, window_seconds: int) -> tuple[bool, float]:
        """Record a hit for *key*.

        Returns ``(allowed, retry_after_seconds)``; ``retry_after`` is 0 when
        allowed.  A non-positive limit or window disables limiting.
        """
        if limit <= 0 or window_seconds <= 0:
            return True, 0.0
        now = self._clock()
        with self._lock:
            if len(self._buckets) > self._max_buckets or (now - self._last_prune_at) >= self._prune_interval_seconds:
                self._prune_stale(now, window_seconds)
                self._last_prune_at = now

            bucket = self._buckets.setdefault(key, deque())
            cutoff = now - window_seconds
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()
            if len(bucket) >= limit:
                return False, max(0.0, bucket[0] + window_seconds - now)
            bucket.append(now)
            return True, 0.0

    def _prune_stale(self, now: float, window_seconds: int) -> None:
        """Drop buckets with no hits inside the window (called under lock)."""
        cutoff = now - window_seconds
        stale_keys = [key for key, bucket in self._buckets.items() if not bucket or bucket[-1] <= cutoff]
        for key in stale_keys:
            del self._buckets[key]

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()
            self._last_prune_at = 0.0


rate_limiter = SlidingWindowRateLimiter()
