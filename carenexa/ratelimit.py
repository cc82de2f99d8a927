"""
Fixed-window rate limiter keyed by client identity.

Each key gets at most ``max_requests`` admissions per ``window_seconds``. The
window starts at the first admitted request and is replaced wholesale once the
current time passes its reset point. State lives in a ``KeyValueStore`` so the
in-memory default can be swapped for a shared store.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Protocol

from carenexa.config import RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS
from carenexa.storage import InMemoryStore, KeyValueStore

logger = logging.getLogger(__name__)

_KEY_PREFIX = "ratelimit:"


# ── Time source injection for testability ───────────────────────────────────


class Clock(Protocol):
    def now(self) -> float: ...


class SystemClock:
    def now(self) -> float:
        return time.time()


@dataclass
class RateLimitRecord:
    count: int
    reset_time: float


class RateLimiter:
    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        clock: Optional[Clock] = None,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
    ) -> None:
        self.store = store if store is not None else InMemoryStore()
        self.clock = clock or SystemClock()
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def allow(self, key: str) -> bool:
        """Admit or reject one request for ``key``. Never raises for a full window."""
        with self._lock_for(key):
            now = self.clock.now()
            record: Optional[RateLimitRecord] = self.store.get(_KEY_PREFIX + key)

            if record is None or now > record.reset_time:
                self.store.put(
                    _KEY_PREFIX + key,
                    RateLimitRecord(count=1, reset_time=now + self.window_seconds),
                )
                return True

            if record.count < self.max_requests:
                record.count += 1
                self.store.put(_KEY_PREFIX + key, record)
                return True

        logger.warning(f"Rate limit hit for {key!r} ({self.max_requests}/{self.window_seconds:.0f}s)")
        return False

    def sweep(self) -> int:
        """Drop records whose window has already closed. Returns how many were removed."""
        now = self.clock.now()
        removed = 0
        for full_key, record in self.store.scan(_KEY_PREFIX):
            if now > record.reset_time:
                key = full_key[len(_KEY_PREFIX):]
                with self._lock_for(key):
                    current = self.store.get(full_key)
                    if current is not None and now > current.reset_time:
                        self.store.delete(full_key)
                        removed += 1
        if removed:
            logger.debug(f"Rate-limit sweep removed {removed} expired records")
        return removed


def client_key(headers: Mapping[str, str]) -> str:
    """Identify the caller: first X-Forwarded-For hop, then X-Real-IP, else 'anonymous'."""
    forwarded = (headers.get("x-forwarded-for") or "").split(",")[0].strip()
    if forwarded:
        return forwarded
    real_ip = (headers.get("x-real-ip") or "").strip()
    return real_ip or "anonymous"


_default_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Process-wide limiter shared by the API routes."""
    global _default_limiter
    if _default_limiter is None:
        _default_limiter = RateLimiter()
    return _default_limiter


def reset_rate_limiter(limiter: Optional[RateLimiter] = None) -> None:
    """Replace the process-wide limiter (fresh one when ``limiter`` is None)."""
    global _default_limiter
    _default_limiter = limiter
