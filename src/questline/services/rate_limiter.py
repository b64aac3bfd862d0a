"""Per-member, per-action request throttling.

Windows are fixed, not sliding: a member may burst up to twice the ceiling
across a window boundary. State lives in process memory only.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from contextlib import suppress
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

HOUR_SECONDS = 60 * 60
MAX_ENTRIES = 10_000
CLEANUP_INTERVAL_SECONDS = 5 * 60


@dataclass(frozen=True, slots=True)
class RateLimit:
    max_requests: int
    window_seconds: float = HOUR_SECONDS


DEFAULT_LIMITS: Dict[str, RateLimit] = {
    "quest": RateLimit(5),
    "confirm": RateLimit(5),
    "xp": RateLimit(5),
    "leaderboard": RateLimit(5),
    "questdebug": RateLimit(5),
    "builder": RateLimit(10),
}


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    allowed: bool
    retry_after_seconds: int = 0


@dataclass(slots=True)
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    def __init__(
        self,
        limits: Optional[Mapping[str, RateLimit]] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = MAX_ENTRIES,
        cleanup_interval: float = CLEANUP_INTERVAL_SECONDS,
    ) -> None:
        self._limits: Dict[str, RateLimit] = dict(limits or DEFAULT_LIMITS)
        self._clock = clock
        self._max_entries = max_entries
        self._cleanup_interval = cleanup_interval
        self._windows: Dict[Tuple[str, str], _Window] = {}
        self._cleanup_task: Optional[asyncio.Task[None]] = None

    def _limit_for(self, action: str) -> RateLimit:
        try:
            return self._limits[action]
        except KeyError:
            raise ValueError(f"Unknown rate-limited action: {action}") from None

    def check(self, user_id: str, action: str) -> RateLimitDecision:
        limit = self._limit_for(action)
        now = self._clock()

        if len(self._windows) > self._max_entries:
            self.cleanup()

        key = (str(user_id), action)
        window = self._windows.get(key)
        if window is None or window.reset_at <= now:
            self._windows[key] = _Window(count=1, reset_at=now + limit.window_seconds)
            return RateLimitDecision(True)

        if window.count < limit.max_requests:
            window.count += 1
            return RateLimitDecision(True)

        retry_after = max(1, math.ceil(window.reset_at - now))
        logger.warning(
            "Rate limit hit",
            extra={"user_id": str(user_id), "action": action, "retry_after": retry_after},
        )
        return RateLimitDecision(False, retry_after)

    def remaining(self, user_id: str, action: str) -> int:
        limit = self._limit_for(action)
        window = self._windows.get((str(user_id), action))
        if window is None or window.reset_at <= self._clock():
            return limit.max_requests
        return max(0, limit.max_requests - window.count)

    def cleanup(self) -> int:
        now = self._clock()
        expired = [key for key, window in self._windows.items() if window.reset_at <= now]
        for key in expired:
            del self._windows[key]
        if expired:
            logger.debug("Evicted expired rate-limit windows", extra={"count": len(expired)})
        return len(expired)

    def reset(self) -> None:
        self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)

    # ---------- Background cleanup ----------

    def start(self) -> None:
        if self._cleanup_task is not None:
            logger.warning("Rate limit cleanup already running")
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop(self) -> None:
        task = self._cleanup_task
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self._cleanup_interval)
            self.cleanup()
