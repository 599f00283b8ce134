"""marketseries — daily series ingestion and risk metrics.

Rate-limited ingestion from Polygon (equities/ETFs) and CoinGecko (crypto),
deduplicated per-symbol JSON series, snapshot publishing, and
volatility/Sharpe/drawdown/beta/VaR metrics for assets and portfolios.

Quick start::

    from marketseries import create_service_from_env
    svc = create_service_from_env()
    svc.update_all()
    metrics = svc.asset_risk("AAPL", quantity=10)
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from marketseries.config import (
    AssetClass,
    ConfigError,
    LimiterConfig,
    ProviderClass,
    RetryPolicy,
    ServiceConfig,
)
from marketseries.errors import MarketDataError, MarketDataErrorCode
from marketseries.fetcher import Fetcher
from marketseries.limiter import RateLimiter
from marketseries.metrics import Timeframe
from marketseries.models.bar import Bar
from marketseries.models.portfolio import PortfolioHolding
from marketseries.models.quote import Quote
from marketseries.models.risk import AssetMetrics, RiskMetrics
from marketseries.models.snapshot import Snapshot
from marketseries.service import MarketDataService, Scheduler
from marketseries.store import BarStore, JsonBarStore, MemoryBarStore, dedupe_bars
from marketseries.universe import default_universe

__version__ = "0.1.0"

__all__ = [
    # Service
    "MarketDataService",
    "Scheduler",
    "create_service_from_env",
    "load_config_from_env",
    # Building blocks
    "BarStore",
    "JsonBarStore",
    "MemoryBarStore",
    "dedupe_bars",
    "RateLimiter",
    "Fetcher",
    "Timeframe",
    # Config
    "ServiceConfig",
    "LimiterConfig",
    "RetryPolicy",
    "AssetClass",
    "ProviderClass",
    "ConfigError",
    # Errors
    "MarketDataError",
    "MarketDataErrorCode",
    # Models
    "Bar",
    "Quote",
    "Snapshot",
    "PortfolioHolding",
    "RiskMetrics",
    "AssetMetrics",
]


def load_config_from_env() -> ServiceConfig:
    """Build a validated ServiceConfig from env vars (and ``.env``).

    Environment variables:
        MARKETSERIES_DATA_DIR: Root for series and snapshot files (default: "data").
        MARKETSERIES_OFFLINE: "1" to use mock providers; no keys needed.
        MARKETSERIES_UPDATE_HOURS: Scheduler period in hours (default: 4).
        MARKETSERIES_REQUEST_TIMEOUT: HTTP timeout in seconds (default: 10).
        MARKETSERIES_RISK_FREE: Annual risk-free rate (default: 0.02).
        MARKETSERIES_BENCHMARK: Benchmark symbol for beta (default: "SPY").
        POLYGON_API_KEY: Polygon.io API key (required unless offline).
        COINGECKO_API_KEY: CoinGecko API key (required unless offline).

    Raises:
        ConfigError: A required key is missing or a value does not parse.
    """
    load_dotenv()
    offline = os.getenv("MARKETSERIES_OFFLINE", "0").strip().lower() in ("1", "true", "yes")
    try:
        config = ServiceConfig(
            data_dir=Path(os.getenv("MARKETSERIES_DATA_DIR", "data")),
            universe=default_universe(),
            equity_provider="mock" if offline else "polygon",
            crypto_provider="mock" if offline else "coingecko",
            polygon_api_key=os.getenv("POLYGON_API_KEY"),
            coingecko_api_key=os.getenv("COINGECKO_API_KEY"),
            request_timeout=float(os.getenv("MARKETSERIES_REQUEST_TIMEOUT", "10")),
            update_interval_seconds=float(os.getenv("MARKETSERIES_UPDATE_HOURS", "4")) * 3600,
            risk_free_rate=float(os.getenv("MARKETSERIES_RISK_FREE", "0.02")),
            benchmark_symbol=os.getenv("MARKETSERIES_BENCHMARK", "SPY"),
        )
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration value: {exc}") from exc
    config.validate()
    return config


def create_service_from_env() -> MarketDataService:
    """Zero-config factory; reads provider keys and paths from env vars."""
    return MarketDataService(load_config_from_env())
