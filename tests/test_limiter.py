"""Tests for the blocking rate limiter."""

import threading
import time

import pytest

from conftest import FakeClock
from marketseries.config import LimiterConfig
from marketseries.limiter import RateLimiter


class TestSpacing:
    def test_ten_calls_take_nine_intervals(self, fake_clock):
        limiter = RateLimiter(1, 1.0, clock=fake_clock, sleep=fake_clock.sleep)
        for _ in range(10):
            limiter.schedule(lambda: None)
        assert fake_clock.now >= 9.0
        assert limiter.dispatched == 10

    def test_first_call_not_delayed(self, fake_clock):
        limiter = RateLimiter(1, 5.0, clock=fake_clock, sleep=fake_clock.sleep)
        limiter.schedule(lambda: None)
        assert fake_clock.sleeps == []

    def test_elapsed_time_counts_toward_spacing(self):
        clock = FakeClock()
        limiter = RateLimiter(1, 2.0, clock=clock, sleep=clock.sleep)
        limiter.schedule(lambda: None)
        clock.now += 1.5
        limiter.schedule(lambda: None)
        assert clock.sleeps == [pytest.approx(0.5)]

    def test_failed_call_consumes_budget(self, fake_clock):
        limiter = RateLimiter(1, 1.0, clock=fake_clock, sleep=fake_clock.sleep)

        def boom():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            limiter.schedule(boom)
        limiter.schedule(lambda: None)
        assert fake_clock.now == pytest.approx(1.0)
        assert limiter.in_flight == 0

    def test_real_clock_spacing(self):
        limiter = RateLimiter(1, 0.05)
        started = time.monotonic()
        for _ in range(4):
            limiter.schedule(lambda: None)
        assert time.monotonic() - started >= 0.15


class TestConcurrency:
    def test_never_exceeds_max_concurrent(self):
        limiter = RateLimiter(max_concurrent=2)
        lock = threading.Lock()
        active = 0
        peak = 0

        def work():
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.02)
            with lock:
                active -= 1

        threads = [threading.Thread(target=limiter.schedule, args=(work,)) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert peak <= 2
        assert limiter.dispatched == 8

    def test_returns_result(self):
        assert RateLimiter().schedule(lambda a, b=0: a + b, 2, b=3) == 5


class TestValidation:
    def test_rejects_zero_concurrency(self):
        with pytest.raises(ValueError):
            RateLimiter(max_concurrent=0)

    def test_rejects_negative_spacing(self):
        with pytest.raises(ValueError):
            RateLimiter(min_time=-1)

    def test_release_without_acquire(self):
        with pytest.raises(RuntimeError):
            RateLimiter().release()

    def test_from_config(self):
        limiter = RateLimiter.from_config(LimiterConfig(max_concurrent=3, min_time=1.3))
        assert limiter.max_concurrent == 3
        assert limiter.min_time == 1.3
