import random

import pytest

from landbot.adapters.browser.rate_limiter import RateLimiter, random_delay


class _FakeTime:
    def __init__(self) -> None:
        self.t = 0.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.t

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.t += seconds


def _limiter(ft: _FakeTime, delay_ms: float = 2000, **kw) -> RateLimiter:
    return RateLimiter(delay_ms, clock=ft.clock, sleep=ft.sleep, **kw)


async def test_first_wait_does_not_sleep():
    ft = _FakeTime()
    await _limiter(ft).wait()
    assert ft.sleeps == []


async def test_wait_enforces_minimum_spacing():
    ft = _FakeTime()
    rl = _limiter(ft)
    await rl.wait()
    ft.t += 0.5
    await rl.wait()
    assert ft.sleeps == [pytest.approx(1.5)]

    ft.t += 5.0
    await rl.wait()
    assert len(ft.sleeps) == 1


async def test_adaptive_delay_is_bounded():
    ft = _FakeTime()
    rl = _limiter(ft, 1000, adaptive_step_ms=1000)
    for _ in range(10):
        rl.increase_delay()
    assert rl.current_delay_ms == 3000

    for _ in range(10):
        rl.decrease_delay()
    assert rl.current_delay_ms == 1000


async def test_reset_restores_initial_state():
    ft = _FakeTime()
    rl = _limiter(ft, 1000)
    await rl.wait()
    rl.increase_delay()
    rl.reset()
    assert rl.current_delay_ms == 1000
    await rl.wait()
    assert ft.sleeps == []


def test_random_delay_stays_within_variance():
    rng = random.Random(42)
    for _ in range(500):
        d = random_delay(1000, 0.3, rng)
        assert 700 <= d <= 1300
