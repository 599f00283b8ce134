"""Quote data model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Quote:
    """Latest price for a symbol as reported by its provider.

    Attributes:
        symbol: Ticker symbol or coin id.
        timestamp: Time the quote refers to.
        price: Last (or previous close) price.
        volume: Volume over the quote's period (24h for crypto).
        change_pct: Percent change over the period, if reported.
    """

    symbol: str
    timestamp: datetime
    price: float
    volume: float = 0.0
    change_pct: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "timestamp": self.timestamp.isoformat(),
            "price": self.price,
            "volume": self.volume,
            "changePct": self.change_pct,
        }
