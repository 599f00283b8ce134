"""Snapshot data model — current price plus 1D/7D/30D/90D reference prices."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from marketseries.config import AssetClass


@dataclass(frozen=True)
class Snapshot:
    """Per-symbol summary published after each ingestion cycle.

    Attributes:
        symbol: Ticker symbol or coin id.
        asset_class: stock, etf or crypto.
        current_price: Latest adjusted close.
        one_day_ago_price: Close one bar back.
        seven_day_ago_price: Close seven bars back.
        thirty_day_ago_price: Close thirty bars back.
        ninety_day_ago_price: Close ninety bars back.
        volume: Latest bar's volume.
        last_updated: Build time in epoch milliseconds.
    """

    symbol: str
    asset_class: AssetClass
    current_price: float
    one_day_ago_price: float
    seven_day_ago_price: float
    thirty_day_ago_price: float
    ninety_day_ago_price: float
    volume: float
    last_updated: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "type": self.asset_class.value,
            "currentPrice": self.current_price,
            "oneDayAgoPrice": self.one_day_ago_price,
            "sevenDayAgoPrice": self.seven_day_ago_price,
            "thirtyDayAgoPrice": self.thirty_day_ago_price,
            "ninetyDayAgoPrice": self.ninety_day_ago_price,
            "volume": self.volume,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Snapshot:
        return cls(
            symbol=raw["symbol"],
            asset_class=AssetClass(raw["type"]),
            current_price=float(raw["currentPrice"]),
            one_day_ago_price=float(raw["oneDayAgoPrice"]),
            seven_day_ago_price=float(raw["sevenDayAgoPrice"]),
            thirty_day_ago_price=float(raw["thirtyDayAgoPrice"]),
            ninety_day_ago_price=float(raw["ninetyDayAgoPrice"]),
            volume=float(raw.get("volume") or 0),
            last_updated=int(raw["lastUpdated"]),
        )
