"""Shared fixtures for marketseries tests."""

from __future__ import annotations

import sys
from datetime import date, timedelta
from pathlib import Path

import pytest

# Ensure src/ is on the path for editable-style imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from marketseries.config import (
    AssetClass,
    LimiterConfig,
    ProviderClass,
    RetryPolicy,
    ServiceConfig,
)
from marketseries.fetcher import Fetcher
from marketseries.limiter import RateLimiter
from marketseries.models.bar import Bar
from marketseries.providers.mock import MockProvider
from marketseries.service import MarketDataService
from marketseries.store import MemoryBarStore


class FakeClock:
    """Monotonic clock that only moves when ``sleep`` is called."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_bars(prices: list[float], start: date = date(2024, 1, 1), vol: int = 1000) -> list[Bar]:
    """Consecutive calendar-day bars for the given prices."""
    return [
        Bar(date=start + timedelta(days=i), adj=p, vol=vol + i)
        for i, p in enumerate(prices)
    ]


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def crypto_provider() -> MockProvider:
    return MockProvider(ProviderClass.CRYPTO)


@pytest.fixture
def store() -> MemoryBarStore:
    return MemoryBarStore()


@pytest.fixture
def sample_bars() -> list[Bar]:
    """5 consecutive daily bars."""
    return make_bars([100.0, 101.0, 99.0, 105.0, 110.0])


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fetcher(sleeps) -> Fetcher:
    """Fetcher without spacing; backoff delays are recorded instead of slept."""
    limiters = {pc: RateLimiter(max_concurrent=2) for pc in ProviderClass}
    return Fetcher(limiters, retry=RetryPolicy(), sleep=sleeps.append)


@pytest.fixture
def service_config(tmp_path) -> ServiceConfig:
    return ServiceConfig(
        data_dir=tmp_path / "data",
        universe={
            "AAPL": AssetClass.STOCK,
            "MSFT": AssetClass.STOCK,
            "SPY": AssetClass.ETF,
            "bitcoin": AssetClass.CRYPTO,
        },
        equity_provider="mock",
        crypto_provider="mock",
        equity_limiter=LimiterConfig(max_concurrent=3),
        crypto_limiter=LimiterConfig(max_concurrent=1),
    )


@pytest.fixture
def service(service_config, store, fetcher, mock_provider, crypto_provider) -> MarketDataService:
    return MarketDataService(
        service_config,
        store=store,
        fetcher=fetcher,
        providers={
            ProviderClass.EQUITY: mock_provider,
            ProviderClass.CRYPTO: crypto_provider,
        },
    )
