"""上游调用限流器。

AniList 的公开配额是 90 次/分钟。限流器保证：
- 同一时间最多一个上游调用在进行中
- 相邻两次调用的开始时间至少间隔 min_interval_sec
- 任意滑动窗口 window_sec 内最多 max_calls 次调用

只会延迟调用方，从不失败，也不替调用方重试。
"""

import asyncio
import time
from collections import deque
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from loguru import logger


@dataclass(frozen=True)
class RateLimitToken:
    """Right to issue exactly one upstream call."""

    sequence: int
    granted_at: float
    waited_sec: float


class RateLimiter:
    """Single-slot limiter with minimum spacing and a sliding-window budget.

    Usage:
        async with rate_limiter.acquire() as token:
            await client.post(...)
    """

    def __init__(
        self,
        *,
        min_interval_sec: float = 0.7,
        max_calls: int = 90,
        window_sec: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_calls < 1:
            raise ValueError("max_calls must be >= 1")
        if min_interval_sec < 0 or window_sec <= 0:
            raise ValueError("min_interval_sec must be >= 0 and window_sec > 0")

        self.min_interval_sec = min_interval_sec
        self.max_calls = max_calls
        self.window_sec = window_sec
        self._clock = clock
        self._sleep = sleep

        # asyncio.Lock 按 FIFO 唤醒等待者，持有期间即“调用进行中”
        self._lock = asyncio.Lock()
        self._grants: deque[float] = deque()
        self._last_grant_at: float | None = None
        self._sequence = 0

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[RateLimitToken]:
        """Wait until one upstream call may start; release when the block exits."""
        requested_at = self._clock()
        async with self._lock:
            granted_at = await self._wait_for_slot()
            self._grants.append(granted_at)
            self._last_grant_at = granted_at
            self._sequence += 1
            token = RateLimitToken(
                sequence=self._sequence,
                granted_at=granted_at,
                waited_sec=granted_at - requested_at,
            )
            yield token

    async def _wait_for_slot(self) -> float:
        while True:
            now = self._clock()
            self._evict_expired(now)

            delay = 0.0
            if self._last_grant_at is not None:
                delay = self._last_grant_at + self.min_interval_sec - now
            if len(self._grants) >= self.max_calls:
                budget_delay = self._grants[0] + self.window_sec - now
                if budget_delay > delay:
                    logger.debug(
                        f"Rate limit budget exhausted ({self.max_calls}/"
                        f"{self.window_sec}s), waiting {budget_delay:.2f}s"
                    )
                    delay = budget_delay

            if delay <= 0:
                return now
            await self._sleep(delay)

    def _evict_expired(self, now: float) -> None:
        while self._grants and now - self._grants[0] >= self.window_sec:
            self._grants.popleft()

    def calls_in_window(self) -> int:
        self._evict_expired(self._clock())
        return len(self._grants)

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()
