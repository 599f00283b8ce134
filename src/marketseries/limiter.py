"""Blocking rate limiter: bounded concurrency plus minimum dispatch spacing."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from marketseries.config import LimiterConfig

T = TypeVar("T")


class RateLimiter:
    """Admit calls under a concurrency ceiling and a minimum interval.

    ``acquire`` blocks until a concurrency slot is free and ``min_time``
    seconds have elapsed since the previous dispatch. Dispatch times are
    reserved in admission order, so every admitted call consumes budget
    whether it later succeeds or fails.

    Usage::

        limiter = RateLimiter(max_concurrent=3, min_time=1.3)
        bars = limiter.schedule(provider.get_daily_bars, "AAPL", start, end)
    """

    def __init__(
        self,
        max_concurrent: int = 1,
        min_time: float = 0.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        if min_time < 0:
            raise ValueError("min_time must be >= 0")
        self.max_concurrent = max_concurrent
        self.min_time = min_time
        self._clock = clock
        self._sleep = sleep
        self._cond = threading.Condition()
        self._in_flight = 0
        self._next_dispatch: float | None = None
        self.dispatched = 0

    @classmethod
    def from_config(cls, config: LimiterConfig, **kwargs: Any) -> RateLimiter:
        return cls(config.max_concurrent, config.min_time, **kwargs)

    @property
    def in_flight(self) -> int:
        with self._cond:
            return self._in_flight

    def acquire(self) -> None:
        with self._cond:
            while self._in_flight >= self.max_concurrent:
                self._cond.wait()
            self._in_flight += 1
            now = self._clock()
            dispatch_at = now if self._next_dispatch is None else max(now, self._next_dispatch)
            self._next_dispatch = dispatch_at + self.min_time
            self.dispatched += 1
        delay = dispatch_at - now
        if delay > 0:
            self._sleep(delay)

    def release(self) -> None:
        with self._cond:
            if self._in_flight <= 0:
                raise RuntimeError("release() called without a matching acquire()")
            self._in_flight -= 1
            self._cond.notify()

    @contextmanager
    def slot(self) -> Iterator[None]:
        self.acquire()
        try:
            yield
        finally:
            self.release()

    def schedule(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``fn`` once admitted and return its result."""
        with self.slot():
            return fn(*args, **kwargs)
