"""CoinGecko provider for cryptocurrencies.

``market_chart`` returns ``[timestamp_ms, price]`` pairs (hourly for short
windows, daily beyond 90 days); they are resampled to the last observation
of each UTC day.
"""

from __future__ import annotations

import os
from datetime import date, datetime, timezone
from typing import Any

import pandas as pd
import requests

from marketseries.config import ProviderClass
from marketseries.errors import MarketDataError, MarketDataErrorCode
from marketseries.models.bar import Bar
from marketseries.models.quote import Quote
from marketseries.providers.base import BaseSeriesProvider, check_response


def resample_daily(prices: list[list[float]]) -> list[Bar]:
    """Collapse ``[timestamp_ms, price]`` pairs into one bar per UTC day."""
    if not prices:
        return []
    df = pd.DataFrame(prices, columns=["ts", "price"]).dropna()
    df["day"] = pd.to_datetime(df["ts"], unit="ms", utc=True).dt.date
    daily = df.sort_values("ts", kind="mergesort").groupby("day", sort=True)["price"].last()
    return [Bar(date=day, adj=float(price), vol=0) for day, price in daily.items()]


class CoinGeckoProvider(BaseSeriesProvider):
    """Fetch crypto price history and spot prices from CoinGecko.

    Symbols are CoinGecko coin ids (``bitcoin``, ``ethereum``...). Keys
    starting with ``cg_pro_`` use the pro host and header; other keys are
    sent as demo keys.
    """

    provider_class = ProviderClass.CRYPTO

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 10.0,
        vs_currency: str = "usd",
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key or os.getenv("COINGECKO_API_KEY")
        if not self.api_key:
            raise MarketDataError(
                "CoinGecko API key required. Set COINGECKO_API_KEY env var or pass api_key.",
                code=MarketDataErrorCode.AUTH_FAILED,
            )
        self.timeout = timeout
        self.vs_currency = vs_currency
        self.session = session or requests.Session()

        if self.api_key.startswith("cg_pro_"):
            self.base_url = "https://pro-api.coingecko.com/api/v3"
            header = "x-cg-pro-api-key"
        else:
            self.base_url = "https://api.coingecko.com/api/v3"
            header = "x-cg-demo-api-key"
        self.session.headers.update({"User-Agent": "marketseries/0.1", header: self.api_key})

    # ------------------------------------------------------------------ bars

    def get_daily_bars(self, symbol: str, start: date, end: date) -> list[Bar]:
        today = datetime.now(timezone.utc).date()
        days = max(1, (today - start).days + 1)
        data = self._get_json(
            f"/coins/{symbol}/market_chart",
            {"vs_currency": self.vs_currency, "days": days},
            "get_daily_bars",
        )
        bars = resample_daily(data.get("prices") or [])
        return [b for b in bars if start <= b.date <= end]

    # --------------------------------------------------------------- quotes

    def get_quote(self, symbol: str) -> Quote:
        data = self._get_json(
            "/simple/price",
            {
                "ids": symbol,
                "vs_currencies": self.vs_currency,
                "include_24hr_vol": "true",
                "include_24hr_change": "true",
            },
            "get_quote",
        )
        cur = data.get(symbol)
        if not cur or self.vs_currency not in cur:
            raise MarketDataError(
                f"Coin '{symbol}' not found on CoinGecko",
                code=MarketDataErrorCode.NOT_FOUND,
            )
        return Quote(
            symbol=symbol,
            timestamp=datetime.now(timezone.utc),
            price=float(cur[self.vs_currency]),
            volume=float(cur.get(f"{self.vs_currency}_24h_vol") or 0),
            change_pct=cur.get(f"{self.vs_currency}_24h_change"),
        )

    # ------------------------------------------------------------ internals

    def _get_json(self, path: str, params: dict[str, Any], op: str) -> dict[str, Any]:
        try:
            resp = self.session.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        except requests.Timeout as exc:
            raise MarketDataError(
                f"CoinGecko {op} timed out: {exc}",
                code=MarketDataErrorCode.TIMEOUT,
            ) from exc
        except requests.RequestException as exc:
            raise MarketDataError(
                f"CoinGecko {op} failed: {exc}",
                code=MarketDataErrorCode.PROVIDER_ERROR,
            ) from exc
        check_response(resp, "CoinGecko")
        try:
            return resp.json()
        except ValueError as exc:
            raise MarketDataError(
                f"CoinGecko {op} returned invalid JSON: {exc}",
                code=MarketDataErrorCode.PROVIDER_ERROR,
            ) from exc
