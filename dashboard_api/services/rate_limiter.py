"""In-memory per-IP token bucket rate limiting."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Callable, Dict, Iterable, Tuple


@dataclass
class TokenBucket:
    """Classic token bucket; refills continuously up to capacity."""

    capacity: float
    refill_rate: float  # tokens per second
    tokens: float
    updated_at: float

    def consume(self, now: float) -> bool:
        elapsed = max(0.0, now - self.updated_at)
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.updated_at = now
        if self.tokens >= 1.0:
            self.tokens -= 1.0
            return True
        return False


@dataclass
class _Entry:
    bucket: TokenBucket
    last_access: float


class IPRateLimiter:
    """
    Token bucket per client IP for a configured set of paths.

    Capacity equals the per-minute rate, so a fresh client may burst up to the
    full minute's allowance. One lock covers lookup, insert, last-access update
    and consumption; the sweep takes the same lock.
    """

    def __init__(
        self,
        requests_per_minute: int,
        limited_paths: Iterable[str] = (),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if requests_per_minute < 1:
            raise ValueError("requests_per_minute must be at least 1")
        self.requests_per_minute = requests_per_minute
        self.limited_paths: Tuple[str, ...] = tuple(limited_paths)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, _Entry] = {}

    def should_limit(self, path: str) -> bool:
        return any(path == pattern or fnmatchcase(path, pattern) for pattern in self.limited_paths)

    def allow(self, ip: str) -> bool:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(ip)
            if entry is None:
                entry = _Entry(
                    bucket=TokenBucket(
                        capacity=float(self.requests_per_minute),
                        refill_rate=self.requests_per_minute / 60.0,
                        tokens=float(self.requests_per_minute),
                        updated_at=now,
                    ),
                    last_access=now,
                )
                self._entries[ip] = entry
            entry.last_access = now
            return entry.bucket.consume(now)

    def sweep(self, inactive_seconds: float) -> int:
        """Evict clients idle for longer than inactive_seconds; returns the count removed."""
        cutoff = self._clock() - inactive_seconds
        with self._lock:
            stale = [ip for ip, entry in self._entries.items() if entry.last_access < cutoff]
            for ip in stale:
                del self._entries[ip]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
