"""Asset and portfolio risk metrics built on stored series."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import date

import numpy as np

from marketseries import metrics
from marketseries.metrics import Timeframe
from marketseries.models.bar import Bar
from marketseries.models.portfolio import PortfolioHolding
from marketseries.models.risk import AssetMetrics, RiskMetrics
from marketseries.store import dedupe_bars

logger = logging.getLogger(__name__)

SeriesLoader = Callable[[str], list[Bar]]


def asset_metrics(bars: list[Bar], risk_free: float = 0.02) -> AssetMetrics:
    """Daily metrics for one asset with VaR/CVaR as percentage losses."""
    prices = [b.adj for b in dedupe_bars(bars)]
    rets = metrics.returns(prices)
    if rets.size == 0:
        return AssetMetrics((), 0.0, 0.0, 0.0, 0.0, 0.0)
    return AssetMetrics(
        returns=tuple(float(r) for r in rets),
        volatility=metrics.volatility(rets),
        sharpe=metrics.finite_or_zero(metrics.sharpe(rets, risk_free)),
        max_drawdown=metrics.max_drawdown(rets),
        var95=-metrics.tail_return(rets) * 100,
        cvar95=metrics.conditional_value_at_risk_95(rets) * 100,
    )


def compute_asset_risk(
    bars: list[Bar],
    quantity: float = 1.0,
    benchmark_bars: list[Bar] | None = None,
    timeframe: Timeframe | str = Timeframe.DAILY,
    risk_free: float = 0.02,
) -> RiskMetrics:
    """RiskMetrics for a single holding of ``quantity`` units."""
    tf = Timeframe.parse(timeframe)
    series = dedupe_bars(bars)
    if not series:
        return RiskMetrics.zero()
    prices = [b.adj for b in series]
    last_price = prices[-1]
    rets = metrics.returns(prices)

    bench_beta = None
    if benchmark_bars:
        bench = metrics.returns([b.adj for b in dedupe_bars(benchmark_bars)])
        bench_beta = metrics.beta(rets, bench)

    return RiskMetrics(
        total_value=last_price * quantity,
        volatility=metrics.volatility(rets, tf),
        sharpe=metrics.finite_or_zero(metrics.sharpe(rets, risk_free, tf.periods_per_year)),
        max_drawdown=metrics.max_drawdown(rets),
        beta=bench_beta,
        value_at_risk=metrics.value_at_risk_95(rets, last_price, quantity),
    )


def portfolio_weights(values: Mapping[str, float]) -> dict[str, float]:
    """Normalize market values into weights summing to 1."""
    total = sum(values.values())
    if total <= 0:
        return {k: 0.0 for k in values}
    return {k: v / total for k, v in values.items()}


def portfolio_returns(
    returns_map: Mapping[str, np.ndarray],
    weights: Mapping[str, float],
) -> np.ndarray:
    """Value-weighted return per step, cut to the shortest series (aligned from the start)."""
    if not returns_map:
        return np.empty(0)
    n = min(len(r) for r in returns_map.values())
    port = np.zeros(n)
    for key, rets in returns_map.items():
        port += weights.get(key, 0.0) * np.asarray(rets[:n], dtype=float)
    return port


def load_holding_series(load: SeriesLoader, asset_id: str) -> list[Bar]:
    """Load a holding's series, tolerating id casing (``BTC`` vs ``btc``)."""
    for key in dict.fromkeys((asset_id, asset_id.lower(), asset_id.upper())):
        bars = load(key)
        if bars:
            return dedupe_bars(bars)
    return []


def compute_portfolio_metrics(
    holdings: Iterable[PortfolioHolding],
    load: SeriesLoader,
    timeframe: Timeframe | str = Timeframe.DAILY,
    risk_free: float = 0.02,
    benchmark_bars: list[Bar] | None = None,
    today: date | None = None,
) -> RiskMetrics:
    """Blend holdings into one synthetic series and apply the asset metrics.

    Holdings without at least two bars are skipped. With no usable holding
    or a non-positive total value an all-zero RiskMetrics is returned.
    """
    tf = Timeframe.parse(timeframe)
    year_start = date((today or date.today()).year, 1, 1)
    returns_map: dict[str, np.ndarray] = {}
    values: dict[str, float] = {}
    ytd_value = 0.0

    for holding in holdings:
        bars = load_holding_series(load, holding.asset_id)
        if len(bars) < 2:
            logger.warning("No usable series for holding %s; skipped", holding.asset_id)
            continue
        key = holding.asset_id.lower()
        last_price = bars[-1].adj
        ytd_bar = next((b for b in bars if b.date >= year_start), bars[0])
        values[key] = values.get(key, 0.0) + last_price * holding.quantity
        ytd_value += ytd_bar.adj * holding.quantity
        returns_map[key] = metrics.returns([b.adj for b in bars])

    total_value = sum(values.values())
    if not returns_map or total_value <= 0:
        return RiskMetrics.zero()

    weights = portfolio_weights(values)
    port = portfolio_returns(returns_map, weights)

    # simulated path: first point is total_value compounded by the first return
    path = metrics.compound(total_value, port)[1:]
    path_returns = metrics.returns(path)

    bench_beta = None
    if benchmark_bars and len(benchmark_bars) >= 2:
        bench = metrics.returns([b.adj for b in dedupe_bars(benchmark_bars)])
        bench_beta = metrics.beta(port, bench)

    return RiskMetrics(
        total_value=total_value,
        ytd_return=total_value / ytd_value - 1 if ytd_value > 0 else 0.0,
        volatility=metrics.volatility(path_returns, tf),
        sharpe=metrics.finite_or_zero(metrics.sharpe(path_returns, risk_free, tf.periods_per_year)),
        max_drawdown=metrics.max_drawdown(path_returns),
        beta=bench_beta,
        value_at_risk=metrics.value_at_risk_95(path_returns, float(path[-1]) if path.size else 0.0),
    )
