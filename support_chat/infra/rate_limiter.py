"""
In-memory fixed-window rate limiter

A window opens on the first request for a key and lasts ``window_ms``.
Every request inside the window bumps the counter; once the counter passes
``max_requests`` the rest of that window is limited. An expired entry is
replaced as if the key were new.

State lives in process memory and is mutated without locks: every method is
synchronous, so under the asyncio event loop no request can interleave with
another mid-update.
"""

import asyncio
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from loguru import logger


def _now_ms() -> float:
    return time.time() * 1000


@dataclass(frozen=True)
class RateLimitConfig:
    """Window length and request budget for one limiter policy"""
    window_ms: int = 60_000
    max_requests: int = 20
    message: Optional[str] = None


@dataclass
class RateLimitEntry:
    count: int
    reset_time: float  # epoch millis


class RateLimiter:
    """Per-key fixed-window request counter"""

    def __init__(self, clock: Callable[[], float] = _now_ms):
        """
        Args:
            clock: Returns the current time in epoch milliseconds
        """
        self._clock = clock
        self._store: Dict[str, RateLimitEntry] = {}
        self._sweeper: Optional[asyncio.Task] = None

    def check(self, key: str, config: RateLimitConfig) -> bool:
        """
        Record one request for ``key`` and report whether it is limited.

        Returns:
            True if the request exceeds the window budget
        """
        now = self._clock()
        entry = self._store.get(key)

        if entry is None or now > entry.reset_time:
            self._store[key] = RateLimitEntry(count=1, reset_time=now + config.window_ms)
            return False

        entry.count += 1
        return entry.count > config.max_requests

    def remaining(self, key: str, config: RateLimitConfig) -> int:
        """Requests left in the live window (full budget if none)"""
        entry = self._store.get(key)
        if entry is None or self._clock() > entry.reset_time:
            return config.max_requests
        return max(0, config.max_requests - entry.count)

    def reset_time(self, key: str) -> Optional[float]:
        """Window end in epoch milliseconds, or None if the key is unknown"""
        entry = self._store.get(key)
        return entry.reset_time if entry else None

    def retry_after_seconds(self, key: str, default: int = 60) -> int:
        """Whole seconds until the key's window resets"""
        reset_time = self.reset_time(key)
        if reset_time is None:
            return default
        return max(0, math.ceil((reset_time - self._clock()) / 1000))

    def sweep(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._store.items() if now > entry.reset_time]
        for key in expired:
            del self._store[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._store)

    def start_sweeper(self, interval_seconds: float = 60.0):
        """Start the periodic sweep on the running event loop"""
        if self._sweeper is not None and not self._sweeper.done():
            return

        async def periodic_sweep():
            while True:
                try:
                    await asyncio.sleep(interval_seconds)
                    removed = self.sweep()
                    if removed:
                        logger.debug(f"Rate limiter sweep removed {removed} expired entries")
                except asyncio.CancelledError:
                    logger.debug("Rate limiter sweeper cancelled")
                    break
                except Exception as e:
                    logger.error(f"Rate limiter sweep failed: {e}")

        self._sweeper = asyncio.create_task(periodic_sweep())

    async def stop_sweeper(self):
        """Stop the periodic sweep (shutdown/testing)"""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None


# Default policy for chat endpoints is built from settings by the API layer
_rate_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Get global rate limiter instance (singleton)"""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter()
    return _rate_limiter
