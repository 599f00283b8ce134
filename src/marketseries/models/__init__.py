"""Market series models."""

from marketseries.models.bar import Bar
from marketseries.models.portfolio import PortfolioHolding
from marketseries.models.quote import Quote
from marketseries.models.risk import AssetMetrics, RiskMetrics
from marketseries.models.snapshot import Snapshot

__all__ = [
    "Bar",
    "Quote",
    "Snapshot",
    "PortfolioHolding",
    "RiskMetrics",
    "AssetMetrics",
]
