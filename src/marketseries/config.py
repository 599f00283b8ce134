"""Service configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class AssetClass(Enum):
    """Asset classes carried in snapshots."""

    STOCK = "stock"
    ETF = "etf"
    CRYPTO = "crypto"

    @property
    def provider_class(self) -> ProviderClass:
        if self is AssetClass.CRYPTO:
            return ProviderClass.CRYPTO
        return ProviderClass.EQUITY


class ProviderClass(Enum):
    """Provider families, each with its own limiter budget."""

    EQUITY = "equity"
    CRYPTO = "crypto"


class ConfigError(ValueError):
    """Invalid or missing startup configuration."""


@dataclass(frozen=True)
class LimiterConfig:
    """Concurrency/interval budget for one provider class.

    Attributes:
        max_concurrent: Calls allowed in flight at once.
        min_time: Minimum seconds between two dispatches.
    """

    max_concurrent: int = 1
    min_time: float = 0.0


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff settings for provider calls.

    Attributes:
        max_retries: Retries after the first attempt.
        base_delay: Initial delay (seconds) for transient failures.
        rate_limit_delay: Initial delay (seconds) after a rate-limit response.
    """

    max_retries: int = 3
    base_delay: float = 2.0
    rate_limit_delay: float = 61.0

    def delay_for(self, attempt: int, rate_limited: bool = False) -> float:
        base = self.rate_limit_delay if rate_limited else self.base_delay
        return base * (2 ** attempt)


@dataclass
class ServiceConfig:
    """Configuration for MarketDataService.

    Attributes:
        data_dir: Root directory for the series files and the snapshot file.
        universe: Tracked symbols mapped to their asset class.
        equity_provider: Equity/ETF provider name ("polygon" or "mock").
        crypto_provider: Crypto provider name ("coingecko" or "mock").
        polygon_api_key: Polygon.io API key.
        coingecko_api_key: CoinGecko API key (``cg_pro_`` prefix for pro plans).
        equity_limiter: Limiter budget for the equity provider.
        crypto_limiter: Limiter budget for the crypto provider.
        retry: Backoff policy shared by both providers.
        request_timeout: Per-request HTTP timeout in seconds.
        equity_lookback_days: Initial history window for equities/ETFs.
        crypto_lookback_days: Initial history window for crypto (free-tier cap).
        update_interval_seconds: Scheduler period.
        risk_free_rate: Annual risk-free rate used for Sharpe ratios.
        benchmark_symbol: Benchmark used for beta.
    """

    data_dir: Path = Path("data")
    universe: dict[str, AssetClass] = field(default_factory=dict)

    equity_provider: str = "polygon"
    crypto_provider: str = "coingecko"
    polygon_api_key: str | None = None
    coingecko_api_key: str | None = None

    equity_limiter: LimiterConfig = field(
        default_factory=lambda: LimiterConfig(max_concurrent=3, min_time=1.3)
    )
    crypto_limiter: LimiterConfig = field(
        default_factory=lambda: LimiterConfig(max_concurrent=1, min_time=12.5)
    )
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    request_timeout: float = 10.0

    equity_lookback_days: int = 730
    crypto_lookback_days: int = 90

    update_interval_seconds: float = 4 * 60 * 60
    risk_free_rate: float = 0.02
    benchmark_symbol: str = "SPY"

    @property
    def series_dir(self) -> Path:
        return Path(self.data_dir) / "timeseries"

    @property
    def snapshot_path(self) -> Path:
        return Path(self.data_dir) / "market_data.json"

    def limiter_for(self, provider_class: ProviderClass) -> LimiterConfig:
        if provider_class is ProviderClass.CRYPTO:
            return self.crypto_limiter
        return self.equity_limiter

    def validate(self) -> None:
        """Raise ConfigError when a required provider key is missing."""
        if self.equity_provider == "polygon" and not self.polygon_api_key:
            raise ConfigError("POLYGON_API_KEY is required for the polygon provider")
        if self.crypto_provider == "coingecko" and not self.coingecko_api_key:
            raise ConfigError("COINGECKO_API_KEY is required for the coingecko provider")
