"""Polygon.io provider for equities and ETFs.

Daily adjusted aggregates over the REST API using ``requests``.
"""

from __future__ import annotations

import os
from datetime import date, datetime, timezone
from typing import Any

import requests

from marketseries.config import ProviderClass
from marketseries.errors import MarketDataError, MarketDataErrorCode
from marketseries.models.bar import Bar
from marketseries.models.quote import Quote
from marketseries.providers.base import BaseSeriesProvider, check_response


class PolygonProvider(BaseSeriesProvider):
    """Fetch daily bars and previous-close quotes from Polygon.io."""

    provider_class = ProviderClass.EQUITY
    base_url = "https://api.polygon.io"

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key or os.getenv("POLYGON_API_KEY")
        if not self.api_key:
            raise MarketDataError(
                "Polygon API key required. Set POLYGON_API_KEY env var or pass api_key.",
                code=MarketDataErrorCode.AUTH_FAILED,
            )
        self.timeout = timeout
        self.session = session or requests.Session()

    # ------------------------------------------------------------------ bars

    def get_daily_bars(self, symbol: str, start: date, end: date) -> list[Bar]:
        bars, cursor = self.get_daily_bars_page(symbol, start, end)
        while cursor:
            page, cursor = self.get_daily_bars_page(symbol, start, end, cursor)
            bars.extend(page)
        return bars

    def get_daily_bars_page(
        self,
        symbol: str,
        start: date,
        end: date,
        cursor: str | None = None,
    ) -> tuple[list[Bar], str | None]:
        """One page of aggregates; the cursor is Polygon's ``next_url``."""
        if cursor:
            url = cursor
            params: dict[str, Any] = {"apiKey": self.api_key}
        else:
            url = (
                f"{self.base_url}/v2/aggs/ticker/{symbol.upper()}"
                f"/range/1/day/{start.isoformat()}/{end.isoformat()}"
            )
            params = {
                "apiKey": self.api_key,
                "adjusted": "true",
                "sort": "asc",
                "limit": 50000,
            }

        data = self._get_json(url, params, "get_daily_bars")
        bars = [
            Bar(
                date=datetime.fromtimestamp(r["t"] / 1000, tz=timezone.utc).date(),
                adj=float(r["c"]),
                vol=int(r.get("v") or 0),
            )
            for r in data.get("results") or []
        ]
        return bars, data.get("next_url") or None

    # --------------------------------------------------------------- quotes

    def get_quote(self, symbol: str) -> Quote:
        url = f"{self.base_url}/v2/aggs/ticker/{symbol.upper()}/prev"
        data = self._get_json(url, {"apiKey": self.api_key, "adjusted": "true"}, "get_quote")
        results = data.get("results") or []
        if not results:
            raise MarketDataError(
                f"No previous close for {symbol} on Polygon",
                code=MarketDataErrorCode.NO_DATA,
            )
        r = results[0]
        change_pct = None
        if r.get("o"):
            change_pct = (float(r["c"]) / float(r["o"]) - 1) * 100
        return Quote(
            symbol=symbol.upper(),
            timestamp=datetime.fromtimestamp(r["t"] / 1000, tz=timezone.utc),
            price=float(r["c"]),
            volume=float(r.get("v") or 0),
            change_pct=change_pct,
        )

    # ------------------------------------------------------------ internals

    def _get_json(self, url: str, params: dict[str, Any], op: str) -> dict[str, Any]:
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.Timeout as exc:
            raise MarketDataError(
                f"Polygon {op} timed out: {exc}",
                code=MarketDataErrorCode.TIMEOUT,
            ) from exc
        except requests.RequestException as exc:
            raise MarketDataError(
                f"Polygon {op} failed: {exc}",
                code=MarketDataErrorCode.PROVIDER_ERROR,
            ) from exc
        check_response(resp, "Polygon")
        try:
            return resp.json()
        except ValueError as exc:
            raise MarketDataError(
                f"Polygon {op} returned invalid JSON: {exc}",
                code=MarketDataErrorCode.PROVIDER_ERROR,
            ) from exc
