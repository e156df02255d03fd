# landbot/adapters/browser/rate_limiter.py
from __future__ import annotations

import asyncio
import random
import time
from typing import Awaitable, Callable


def random_delay(base_ms: float, variance: float = 0.3, rng: random.Random | None = None) -> float:
    """Uniform in [base * (1 - variance), base * (1 + variance)]."""
    r = rng or random
    return base_ms + (r.random() * 2 - 1) * base_ms * variance


class RateLimiter:
    """
    Per-source throttle. `wait()` returns no sooner than `current_delay_ms`
    after the previous `wait()` returned. One instance per running source.
    """

    def __init__(
        self,
        initial_delay_ms: float,
        *,
        min_delay_ms: float | None = None,
        max_delay_ms: float | None = None,
        adaptive_step_ms: float = 1000,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.initial_delay_ms = float(initial_delay_ms)
        self.min_delay_ms = float(min_delay_ms if min_delay_ms is not None else initial_delay_ms)
        self.max_delay_ms = float(max_delay_ms if max_delay_ms is not None else initial_delay_ms * 3)
        self.adaptive_step_ms = float(adaptive_step_ms)
        self.current_delay_ms = self.initial_delay_ms

        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        async with self._lock:
            if self._last is not None:
                elapsed_ms = (self._clock() - self._last) * 1000.0
                remaining_ms = self.current_delay_ms - elapsed_ms
                if remaining_ms > 0:
                    await self._sleep(remaining_ms / 1000.0)
            self._last = self._clock()

    def reset(self) -> None:
        self._last = None
        self.current_delay_ms = self.initial_delay_ms

    def increase_delay(self) -> None:
        self.current_delay_ms = min(self.current_delay_ms + self.adaptive_step_ms, self.max_delay_ms)

    def decrease_delay(self) -> None:
        self.current_delay_ms = max(self.current_delay_ms - self.adaptive_step_ms, self.min_delay_ms)
