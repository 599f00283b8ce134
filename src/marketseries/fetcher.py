"""Rate-limited fetcher with exponential-backoff retries."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

from marketseries.config import ProviderClass, RetryPolicy, ServiceConfig
from marketseries.errors import MarketDataError
from marketseries.limiter import RateLimiter

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Fetcher:
    """Dispatch provider calls through the limiter of their provider class.

    Retryable ``MarketDataError`` failures are retried up to
    ``retry.max_retries`` times; rate-limit responses back off from
    ``retry.rate_limit_delay`` instead of ``retry.base_delay``. Non-retryable
    errors and exhausted retries are raised to the caller.

    Limiters are shared by every symbol of a provider class, so one Fetcher
    per process enforces a global ceiling on provider load.
    """

    def __init__(
        self,
        limiters: dict[ProviderClass, RateLimiter],
        retry: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.limiters = limiters
        self.retry = retry or RetryPolicy()
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: ServiceConfig) -> Fetcher:
        limiters = {pc: RateLimiter.from_config(config.limiter_for(pc)) for pc in ProviderClass}
        return cls(limiters, retry=config.retry)

    @property
    def total_concurrency(self) -> int:
        return sum(lim.max_concurrent for lim in self.limiters.values())

    def fetch(
        self,
        provider_class: ProviderClass,
        fn: Callable[..., T],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        limiter = self.limiters[provider_class]
        attempt = 0
        while True:
            try:
                return limiter.schedule(fn, *args, **kwargs)
            except MarketDataError as e:
                if not e.retryable:
                    raise
                if attempt >= self.retry.max_retries:
                    logger.error(
                        "%s call failed after %d attempts: %s",
                        provider_class.value, attempt + 1, e,
                    )
                    raise
                delay = self.retry.delay_for(attempt, rate_limited=e.rate_limited)
                logger.warning(
                    "%s call failed (%s, attempt %d/%d); retrying in %.1fs",
                    provider_class.value, e.code.value, attempt + 1,
                    self.retry.max_retries + 1, delay,
                )
                self._sleep(delay)
                attempt += 1

    def fetch_pages(
        self,
        provider_class: ProviderClass,
        fn: Callable[..., tuple[list[T], str | None]],
        *args: Any,
    ) -> list[T]:
        """Follow a paginated provider call until it returns no cursor.

        Each page is its own dispatch: it takes a limiter slot and gets its
        own retries.
        """
        items: list[T] = []
        cursor: str | None = None
        while True:
            page, cursor = self.fetch(provider_class, fn, *args, cursor=cursor)
            items.extend(page)
            if cursor is None:
                return items
