"""Simple in-memory rate limiting for the auth endpoints."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Deque, Dict, Iterable, Tuple


class SlidingWindowRateLimiter:
    """Sliding-window limiter keyed by caller; single-node deployments only."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hits: Dict[Tuple[str, int], Deque[float]] = {}

    def _window(self, key: str, window_seconds: int, now: float) -> Deque[float]:
        hits = self._hits.setdefault((key, window_seconds), deque())
        cutoff = now - window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        return hits

    def _prune(self, now: float) -> None:
        for (key, window_seconds), hits in list(self._hits.items()):
            while hits and hits[0] <= now - window_seconds:
                hits.popleft()
            if not hits:
                del self._hits[(key, window_seconds)]

    def allow(self, key: str, limit: int, window_seconds: int) -> bool:
        return self.allow_all([(key, limit, window_seconds)])

    def allow_all(self, rules: Iterable[Tuple[str, int, int]]) -> bool:
        """Check several (key, limit, window) rules; a hit is counted only if every rule passes."""
        now = time.monotonic()
        with self._lock:
            self._prune(now)
            windows = [(self._window(key, window, now), limit) for key, limit, window in rules]
            if any(len(hits) >= limit for hits, limit in windows):
                return False
            for hits, _ in windows:
                hits.append(now)
            return True

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


rate_limiter = SlidingWindowRateLimiter()
