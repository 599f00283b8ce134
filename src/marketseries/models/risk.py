"""Risk metric result models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RiskMetrics:
    """Risk/performance summary for an asset or a portfolio.

    Attributes:
        total_value: Current market value.
        volatility: Annualized volatility.
        sharpe: Sharpe ratio (0.0 when volatility is zero).
        max_drawdown: Largest peak-to-trough decline, 0..1.
        ytd_return: Year-to-date return (portfolios only).
        beta: Beta against the benchmark, when benchmark data exists.
        value_at_risk: 95% one-period VaR in currency units.
    """

    total_value: float
    volatility: float
    sharpe: float
    max_drawdown: float
    ytd_return: float | None = None
    beta: float | None = None
    value_at_risk: float | None = None

    @classmethod
    def zero(cls) -> RiskMetrics:
        return cls(
            total_value=0.0,
            volatility=0.0,
            sharpe=0.0,
            max_drawdown=0.0,
            ytd_return=0.0,
            beta=0.0,
            value_at_risk=0.0,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "totalValue": self.total_value,
            "volatility": self.volatility,
            "sharpe": self.sharpe,
            "maxDrawdown": self.max_drawdown,
        }
        if self.ytd_return is not None:
            data["ytdReturn"] = self.ytd_return
        if self.beta is not None:
            data["beta"] = self.beta
        if self.value_at_risk is not None:
            data["valueAtRisk"] = self.value_at_risk
        return data


@dataclass(frozen=True)
class AssetMetrics:
    """Per-asset summary with percentage tail-risk figures.

    Attributes:
        returns: Daily simple returns.
        volatility: Annualized daily volatility.
        sharpe: Sharpe ratio.
        max_drawdown: Largest peak-to-trough decline.
        var95: 95% VaR as a percentage loss.
        cvar95: 95% CVaR (expected shortfall) as a percentage loss.
    """

    returns: tuple[float, ...]
    volatility: float
    sharpe: float
    max_drawdown: float
    var95: float
    cvar95: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "volatility": self.volatility,
            "sharpe": self.sharpe,
            "maxDrawdown": self.max_drawdown,
            "var95": self.var95,
            "cvar95": self.cvar95,
            "observations": len(self.returns),
        }
