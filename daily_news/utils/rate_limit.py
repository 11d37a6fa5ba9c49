# daily_news/utils/rate_limit.py
from __future__ import annotations
import asyncio
import math
import time
from dataclasses import dataclass
from typing import Optional

from ..exceptions import RateLimitError


@dataclass
class _DayWindow:
    day_epoch: int
    count: int


class AsyncRateLimiter:
    """
    Token-bucket limiter with optional daily-quota guard, for asyncio callers.

    - rpm: tokens added per minute (rate)
    - burst: bucket capacity (max tokens)
    - rpd: optional daily cap (UTC day); exceeding it raises RateLimitError
    - max_wait: optional cap in seconds on one sleep; a longer wait raises
      RateLimitError instead of blocking

    Usage:
        limiter = AsyncRateLimiter("alphavantage", rpm=5, burst=8, rpd=25)
        await limiter.wait()  # sleeps until a token is available
    """
    def __init__(self, name: str, rpm: int, burst: int, rpd: Optional[int] = None,
                 max_wait: Optional[float] = None):
        if rpm <= 0 or burst <= 0:
            raise ValueError("rpm and burst must be positive")
        self.name = name
        self._rps = float(rpm) / 60.0
        self._capacity = float(burst)
        self._tokens = float(burst)
        self._last = time.monotonic()
        self._lock = asyncio.Lock()
        self._rpd = rpd
        self._max_wait = max_wait
        self._day = _DayWindow(day_epoch=self._day_epoch(), count=0)

    def _day_epoch(self) -> int:
        return int(time.time() // 86400)

    def _maybe_reset_day(self):
        d = self._day_epoch()
        if d != self._day.day_epoch:
            self._day = _DayWindow(day_epoch=d, count=0)

    def _refill(self):
        now = time.monotonic()
        elapsed = now - self._last
        self._last = now
        self._tokens = min(self._capacity, self._tokens + elapsed * self._rps)

    @property
    def used_today(self) -> int:
        return self._day.count

    async def wait(self):
        """Sleep until a token is available; raise once the daily quota is spent or the wait would exceed max_wait."""
        async with self._lock:
            self._maybe_reset_day()
            if self._rpd is not None and self._day.count >= self._rpd:
                secs_to_midnight = int(86400 - (time.time() % 86400))
                raise RateLimitError(self.name, retry_after=secs_to_midnight)

            self._refill()
            if self._tokens < 1.0:
                delay = (1.0 - self._tokens) / self._rps
                if self._max_wait is not None and delay > self._max_wait:
                    raise RateLimitError(self.name, retry_after=math.ceil(delay))
                await asyncio.sleep(delay)
                self._refill()

            self._tokens -= 1.0
            self._day.count += 1
