"""
Returns and risk metric calculations.
Pure functions over price and return sequences; safe to call concurrently.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from enum import Enum

import numpy as np

VAR_CONFIDENCE = 0.95


class Timeframe(Enum):
    """Granularity used for annualization.

    Weekly and monthly modes keep every 5th / 20th daily return rather than
    resampling prices into true weekly/monthly closes.
    """

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def periods_per_year(self) -> int:
        return {"daily": 252, "weekly": 52, "monthly": 12}[self.value]

    @property
    def stride(self) -> int:
        return {"daily": 1, "weekly": 5, "monthly": 20}[self.value]

    @classmethod
    def parse(cls, value: Timeframe | str) -> Timeframe:
        if isinstance(value, Timeframe):
            return value
        return cls(value.strip().lower())


def _array(values: Sequence[float] | np.ndarray) -> np.ndarray:
    return np.asarray(values, dtype=float)


def returns(prices: Sequence[float] | np.ndarray) -> np.ndarray:
    """
    Simple period-over-period returns.

    Formula: r_i = p_i / p_{i-1} - 1

    Args:
        prices: Prices in chronological order

    Returns:
        Array of length len(prices) - 1 (empty for fewer than 2 prices)
    """
    p = _array(prices)
    if p.size < 2:
        return np.empty(0)
    return p[1:] / p[:-1] - 1.0


def compound(start: float, rets: Sequence[float] | np.ndarray) -> np.ndarray:
    """Price path ``[start, start*(1+r0), ...]`` of length len(rets) + 1."""
    r = _array(rets)
    return start * np.concatenate(([1.0], np.cumprod(1.0 + r)))


def subsample(rets: Sequence[float] | np.ndarray, stride: int) -> np.ndarray:
    """Keep observations at indices 0, stride, 2*stride, ..."""
    return _array(rets)[::stride]


def volatility(
    rets: Sequence[float] | np.ndarray,
    timeframe: Timeframe | str = Timeframe.DAILY,
) -> float:
    """
    Annualized volatility.

    Formula: σ = std(r[::stride], ddof=1) × √periods_per_year

    Returns 0.0 when fewer than 2 observations survive subsampling.
    """
    tf = Timeframe.parse(timeframe)
    r = subsample(rets, tf.stride)
    if r.size < 2:
        return 0.0
    return float(np.std(r, ddof=1) * math.sqrt(tf.periods_per_year))


def annualized_return(rets: Sequence[float] | np.ndarray, periods_per_year: int = 252) -> float:
    """Arithmetic mean return × periods_per_year (not compounded)."""
    r = _array(rets)
    if r.size == 0:
        return 0.0
    return float(np.mean(r) * periods_per_year)


def sharpe(
    rets: Sequence[float] | np.ndarray,
    risk_free_annual: float = 0.02,
    periods_per_year: int = 252,
) -> float:
    """
    Sharpe ratio.

    Formula: (annualized_return - rf) / (std(r, ddof=1) × √periods_per_year)

    Every return is used; weekly/monthly subsampling only applies to the
    reported volatility. Zero dispersion gives ±inf (or nan for a zero
    numerator); callers guard with ``finite_or_zero``.
    """
    r = _array(rets)
    excess = annualized_return(r, periods_per_year) - risk_free_annual
    vol = float(np.std(r, ddof=1) * math.sqrt(periods_per_year)) if r.size >= 2 else 0.0
    if vol == 0.0:
        if excess == 0.0:
            return math.nan
        return math.copysign(math.inf, excess)
    return excess / vol


def max_drawdown(rets: Sequence[float] | np.ndarray) -> float:
    """
    Largest proportional decline from a running peak.

    Wealth starts at 1 and compounds each return; the peak includes the
    starting value.
    """
    r = _array(rets)
    if r.size == 0:
        return 0.0
    wealth = np.cumprod(1.0 + r)
    peak = np.maximum.accumulate(np.concatenate(([1.0], wealth)))[1:]
    drawdowns = (peak - wealth) / peak
    return float(max(0.0, drawdowns.max()))


def beta(
    asset_returns: Sequence[float] | np.ndarray,
    bench_returns: Sequence[float] | np.ndarray,
) -> float:
    """
    Beta of an asset against a benchmark.

    Formula: cov(asset, bench) / var(bench)

    Both series are aligned from the start and cut to the shorter length.
    Returns 1.0 when fewer than 2 aligned points exist or the benchmark has
    zero variance.
    """
    a = _array(asset_returns)
    b = _array(bench_returns)
    n = min(a.size, b.size)
    if n < 2:
        return 1.0
    a, b = a[:n], b[:n]
    var_b = float(np.var(b, ddof=1))
    if var_b == 0.0:
        return 1.0
    cov = float(np.cov(a, b, ddof=1)[0, 1])
    return cov / var_b


def _tail_index(n: int) -> int:
    return int(math.floor((1 - VAR_CONFIDENCE) * n))


def tail_return(rets: Sequence[float] | np.ndarray) -> float:
    """Empirical 5th-percentile return: sorted(r)[floor(0.05 × n)]; 0.0 when empty."""
    r = np.sort(_array(rets))
    if r.size == 0:
        return 0.0
    return float(r[_tail_index(r.size)])


def value_at_risk_95(
    rets: Sequence[float] | np.ndarray,
    last_price: float,
    quantity: float = 1.0,
) -> float:
    """
    Empirical 95% one-period VaR in currency units.

    Formula: |tail_return(r)| × last_price × quantity
    """
    return abs(tail_return(rets)) * last_price * quantity


def conditional_value_at_risk_95(rets: Sequence[float] | np.ndarray) -> float:
    """Mean loss of the worst returns up to and including the VaR index, as a fraction."""
    r = np.sort(_array(rets))
    if r.size == 0:
        return 0.0
    tail = r[: _tail_index(r.size) + 1]
    return float(-tail.mean())


def finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0
