"""Daily bar data model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any


@dataclass(frozen=True)
class Bar:
    """One day's adjusted close and volume for a symbol.

    Attributes:
        date: Calendar day of the bar (unique per symbol).
        adj: Adjusted close price.
        vol: Traded volume (0 when the provider has none).
    """

    date: date
    adj: float
    vol: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date.isoformat(), "adj": self.adj, "vol": self.vol}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Bar:
        return cls(
            date=date.fromisoformat(str(raw["date"])[:10]),
            adj=float(raw["adj"]),
            vol=int(raw.get("vol") or 0),
        )
