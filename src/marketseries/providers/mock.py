"""Mock provider for testing and offline runs — no API keys required."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from marketseries.config import ProviderClass
from marketseries.models.bar import Bar
from marketseries.models.quote import Quote
from marketseries.providers.base import BaseSeriesProvider


class MockProvider(BaseSeriesProvider):
    """In-memory provider that returns configurable static data.

    Use ``set_bars`` / ``set_quote`` to pre-load data, or leave defaults for
    synthetic data (weekdays only for equities, every day for crypto).
    ``queue_errors`` makes the next calls raise the given exceptions in order.
    Every call is recorded in ``calls``.
    """

    def __init__(self, provider_class: ProviderClass | str = ProviderClass.EQUITY) -> None:
        self.provider_class = ProviderClass(provider_class)
        self._bars: dict[str, list[Bar]] = {}
        self._quotes: dict[str, Quote] = {}
        self._errors: list[Exception] = []
        self.calls: list[tuple[str, str, date | None, date | None]] = []

    # --- Pre-load helpers ---

    def set_bars(self, symbol: str, bars: list[Bar]) -> None:
        self._bars[symbol.upper()] = bars

    def set_quote(self, symbol: str, quote: Quote) -> None:
        self._quotes[symbol.upper()] = quote

    def queue_errors(self, *errors: Exception) -> None:
        self._errors.extend(errors)

    # --- Provider implementation ---

    def get_daily_bars(self, symbol: str, start: date, end: date) -> list[Bar]:
        self.calls.append(("get_daily_bars", symbol, start, end))
        self._raise_queued()
        key = symbol.upper()
        if key in self._bars:
            return [b for b in self._bars[key] if start <= b.date <= end]
        return self._generate_bars(start, end)

    def get_quote(self, symbol: str) -> Quote:
        self.calls.append(("get_quote", symbol, None, None))
        self._raise_queued()
        key = symbol.upper()
        if key in self._quotes:
            return self._quotes[key]
        return Quote(
            symbol=symbol,
            timestamp=datetime.now(timezone.utc),
            price=150.0,
            volume=1_000_000.0,
            change_pct=0.0,
        )

    # --- Synthetic data generation ---

    def _raise_queued(self) -> None:
        if self._errors:
            raise self._errors.pop(0)

    def _generate_bars(self, start: date, end: date) -> list[Bar]:
        bars: list[Bar] = []
        current = start
        i = 0
        while current <= end:
            if self.provider_class is ProviderClass.EQUITY and current.weekday() >= 5:
                current += timedelta(days=1)
                continue
            price = 150.0 + (i % 5) * 0.5 - (i % 3) * 0.25
            vol = 0 if self.provider_class is ProviderClass.CRYPTO else 10_000 + i * 100
            bars.append(Bar(date=current, adj=round(price, 2), vol=vol))
            current += timedelta(days=1)
            i += 1
        return bars
