"""Portfolio data models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PortfolioHolding:
    """A quantity of one asset held in a portfolio.

    Attributes:
        asset_id: Ticker symbol or coin id (matched case-insensitively).
        quantity: Units held, non-negative.
    """

    asset_id: str
    quantity: float

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError(f"quantity must be >= 0, got {self.quantity}")
