"""Abstract base class for series providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Any

from marketseries.config import ProviderClass
from marketseries.errors import MarketDataError, MarketDataErrorCode
from marketseries.models.bar import Bar
from marketseries.models.quote import Quote


class BaseSeriesProvider(ABC):
    """Abstract base for all daily-series providers.

    Subclasses must implement ``get_daily_bars``. Providers translate every
    library/HTTP failure into ``MarketDataError`` so the fetcher can decide
    whether to retry.
    """

    provider_class: ProviderClass = ProviderClass.EQUITY

    @abstractmethod
    def get_daily_bars(self, symbol: str, start: date, end: date) -> list[Bar]:
        """Fetch daily bars.

        Args:
            symbol: Ticker symbol or coin id.
            start: Start date (inclusive).
            end: End date (inclusive).

        Returns:
            Bars ordered by date ascending, at most one per day.
        """
        ...

    def get_daily_bars_page(
        self,
        symbol: str,
        start: date,
        end: date,
        cursor: str | None = None,
    ) -> tuple[list[Bar], str | None]:
        """Fetch one page of daily bars.

        Returns the page and the cursor of the next page, or None on the last
        page. Providers without pagination return everything as one page.
        """
        return self.get_daily_bars(symbol, start, end), None

    def get_quote(self, symbol: str) -> Quote:
        """Get the latest quote for a symbol."""
        raise NotImplementedError


def check_response(resp: Any, provider: str) -> None:
    """Map an HTTP response status onto the error taxonomy."""
    status = resp.status_code
    if status == 429:
        raise MarketDataError(
            f"{provider} rate limited",
            code=MarketDataErrorCode.RATE_LIMITED,
        )
    if status in (401, 403):
        raise MarketDataError(
            f"{provider} authentication failed",
            code=MarketDataErrorCode.AUTH_FAILED,
        )
    if status == 404:
        raise MarketDataError(
            f"Symbol not found on {provider}",
            code=MarketDataErrorCode.NOT_FOUND,
        )
    if 400 <= status < 500:
        raise MarketDataError(
            f"{provider} rejected request ({status})",
            code=MarketDataErrorCode.BAD_REQUEST,
        )
    if status >= 500:
        raise MarketDataError(
            f"{provider} server error ({status})",
            code=MarketDataErrorCode.PROVIDER_ERROR,
        )
