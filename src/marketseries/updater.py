"""Incremental series updater. Fetches only what the store is missing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from marketseries.config import AssetClass, ProviderClass
from marketseries.errors import MarketDataError, MarketDataErrorCode
from marketseries.fetcher import Fetcher
from marketseries.models.bar import Bar
from marketseries.providers.base import BaseSeriesProvider
from marketseries.quality import validate_bars
from marketseries.store import BarStore

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def compute_fetch_range(
    last_date: date | None,
    today: date,
    lookback_days: int,
) -> tuple[date, date] | None:
    """Return the inclusive ``(start, end)`` range to fetch, or None when current.

    With history the range is ``(last_date, today]``; without it the last
    ``lookback_days`` days. A zero-width range is widened one day backward.
    """
    if last_date is not None:
        if last_date >= today:
            return None
        start = last_date + timedelta(days=1)
    else:
        start = today - timedelta(days=lookback_days)
    end = today
    if start == end:
        start = start - timedelta(days=1)
    return start, end


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of one symbol's update pass.

    Attributes:
        symbol: Ticker symbol or coin id.
        bars: Series after the pass.
        new_rows: Bars returned by the provider (before dedup).
        fetched: Whether a provider call was issued.
    """

    symbol: str
    bars: list[Bar]
    new_rows: int = 0
    fetched: bool = False


class SeriesUpdater:
    """Bring one symbol's stored series up to date.

    Usage::

        updater = SeriesUpdater(store, fetcher, {ProviderClass.EQUITY: polygon,
                                                 ProviderClass.CRYPTO: coingecko})
        result = updater.update("AAPL", AssetClass.STOCK)
    """

    def __init__(
        self,
        store: BarStore,
        fetcher: Fetcher,
        providers: dict[ProviderClass, BaseSeriesProvider],
        equity_lookback_days: int = 730,
        crypto_lookback_days: int = 90,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.providers = providers
        self.lookback_days = {
            ProviderClass.EQUITY: equity_lookback_days,
            ProviderClass.CRYPTO: crypto_lookback_days,
        }

    def update(
        self,
        symbol: str,
        asset_class: AssetClass,
        today: date | None = None,
    ) -> UpdateResult:
        today = today or utc_today()
        provider_class = asset_class.provider_class
        last = self.store.last_date(symbol)

        fetch_range = compute_fetch_range(last, today, self.lookback_days[provider_class])
        if fetch_range is None:
            logger.debug("%s is current (last bar %s); skipping fetch", symbol, last)
            return UpdateResult(symbol=symbol, bars=self.store.load(symbol))

        start, end = fetch_range
        provider = self.providers[provider_class]
        new_rows = self.fetcher.fetch_pages(
            provider_class, provider.get_daily_bars_page, symbol, start, end
        )
        if not new_rows:
            logger.info("%s: no new bars for %s..%s", symbol, start, end)
            return UpdateResult(symbol=symbol, bars=self.store.load(symbol), fetched=True)

        self._check(symbol, new_rows, today)
        merged = self.store.merge(symbol, new_rows)
        logger.info("%s: merged %d bars (%s..%s)", symbol, len(new_rows), start, end)
        return UpdateResult(symbol=symbol, bars=merged, new_rows=len(new_rows), fetched=True)

    def refresh_spot(self, symbol: str, asset_class: AssetClass, today: date | None = None) -> list[Bar]:
        """Merge the provider's current price as today's bar.

        Used for crypto, whose history endpoint lags the spot price. A later
        refresh on the same day replaces the earlier bar.
        """
        today = today or utc_today()
        provider_class = asset_class.provider_class
        provider = self.providers[provider_class]
        quote = self.fetcher.fetch(provider_class, provider.get_quote, symbol)
        bar = Bar(date=today, adj=quote.price, vol=int(quote.volume))
        self._check(symbol, [bar], today)
        return self.store.merge(symbol, [bar])

    @staticmethod
    def _check(symbol: str, bars: list[Bar], today: date) -> None:
        result = validate_bars(bars, today=today)
        if not result.passed:
            msgs = "; ".join(c.message for c in result.failed_checks)
            raise MarketDataError(
                f"Validation failed for {symbol}: {msgs}",
                code=MarketDataErrorCode.VALIDATION_FAILED,
            )
