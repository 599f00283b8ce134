"""Tests for returns and risk metric calculations."""

import math
import statistics

import numpy as np
import pytest

from marketseries import metrics
from marketseries.metrics import Timeframe

PRICES = [100.0, 101.0, 99.0, 105.0, 110.0]


class TestReturns:
    def test_simple_returns(self):
        r = metrics.returns(PRICES)
        assert r == pytest.approx([0.01, -0.0198019802, 0.0606060606, 0.0476190476])

    def test_short_input(self):
        assert metrics.returns([]).size == 0
        assert metrics.returns([100.0]).size == 0

    def test_compound_reconstructs_prices(self):
        r = metrics.returns(PRICES)
        assert metrics.compound(PRICES[0], r) == pytest.approx(PRICES)


class TestVolatility:
    def test_regression(self):
        r = metrics.returns(PRICES)
        expected = statistics.stdev(r.tolist()) * math.sqrt(252)
        assert metrics.volatility(r) == pytest.approx(expected)
        assert metrics.volatility(r) == pytest.approx(0.58045, abs=1e-4)

    def test_constant_returns_zero(self):
        assert metrics.volatility([0.01] * 30) == pytest.approx(0.0)

    def test_too_few_points(self):
        assert metrics.volatility([0.05]) == 0.0
        assert metrics.volatility([]) == 0.0

    def test_weekly_stride(self):
        rets = np.linspace(-0.02, 0.02, 20)
        expected = statistics.stdev(rets[::5].tolist()) * math.sqrt(52)
        assert metrics.volatility(rets, "weekly") == pytest.approx(expected)

    def test_monthly_needs_two_strides(self):
        assert metrics.volatility(np.full(20, 0.01), Timeframe.MONTHLY) == 0.0


class TestSharpe:
    def test_regression(self):
        r = metrics.returns(PRICES)
        assert metrics.sharpe(r, 0.02) == pytest.approx(10.648, rel=1e-3)

    def test_zero_volatility_signs(self):
        assert metrics.sharpe([0.25] * 10, 0.0) == math.inf
        assert metrics.sharpe([-0.25] * 10, 0.0) == -math.inf
        assert math.isnan(metrics.sharpe([0.0] * 10, 0.0))

    def test_weekly_uses_every_return(self):
        rets = np.linspace(-0.02, 0.03, 40)
        expected = (rets.mean() * 52 - 0.02) / (statistics.stdev(rets.tolist()) * math.sqrt(52))
        assert metrics.sharpe(rets, 0.02, 52) == pytest.approx(expected)
        assert metrics.sharpe(rets, 0.02, 52) != pytest.approx(
            (rets.mean() * 52 - 0.02) / metrics.volatility(rets, "weekly")
        )

    def test_finite_or_zero(self):
        assert metrics.finite_or_zero(math.inf) == 0.0
        assert metrics.finite_or_zero(math.nan) == 0.0
        assert metrics.finite_or_zero(1.5) == 1.5


class TestMaxDrawdown:
    def test_regression(self):
        assert metrics.max_drawdown(metrics.returns(PRICES)) == pytest.approx(0.019802, abs=1e-6)

    def test_bounds(self):
        rng = np.random.default_rng(7)
        rets = rng.normal(0, 0.03, 500)
        dd = metrics.max_drawdown(rets)
        assert 0.0 <= dd <= 1.0

    def test_rising_series_has_none(self):
        assert metrics.max_drawdown([0.01, 0.02, 0.03]) == 0.0

    def test_first_return_loss_counts(self):
        assert metrics.max_drawdown([-0.5]) == pytest.approx(0.5)

    def test_empty(self):
        assert metrics.max_drawdown([]) == 0.0


class TestBeta:
    def test_self_beta_is_one(self):
        r = metrics.returns(PRICES)
        assert metrics.beta(r, r) == pytest.approx(1.0)

    def test_scaled_series(self):
        b = np.array([0.01, -0.02, 0.015, 0.005])
        assert metrics.beta(2 * b, b) == pytest.approx(2.0)

    def test_truncates_to_shorter(self):
        b = np.array([0.01, -0.02, 0.015])
        a = np.concatenate((3 * b, [0.5, -0.5]))
        assert metrics.beta(a, b) == pytest.approx(3.0)

    def test_degenerate_inputs(self):
        assert metrics.beta([0.01], [0.02]) == 1.0
        assert metrics.beta([0.01, 0.02], [0.0, 0.0]) == 1.0


class TestValueAtRisk:
    def test_regression(self):
        r = metrics.returns(PRICES)
        assert metrics.value_at_risk_95(r, 110.0) == pytest.approx(0.0198019802 * 110.0)

    def test_scales_with_quantity(self):
        r = metrics.returns(PRICES)
        assert metrics.value_at_risk_95(r, 110.0, 3) == pytest.approx(3 * metrics.value_at_risk_95(r, 110.0))

    def test_non_negative(self):
        assert metrics.value_at_risk_95([0.01, 0.02, 0.03], 50.0) >= 0.0

    def test_tail_index(self):
        rets = np.arange(-50, 50) / 1000.0
        # floor(0.05 * 100) = 5 -> sixth-worst return
        assert metrics.tail_return(rets) == pytest.approx(-0.045)

    def test_empty(self):
        assert metrics.value_at_risk_95([], 100.0) == 0.0
        assert metrics.conditional_value_at_risk_95([]) == 0.0

    def test_cvar_at_least_var(self):
        rets = np.arange(-50, 50) / 1000.0
        assert metrics.conditional_value_at_risk_95(rets) >= -metrics.tail_return(rets)


class TestTimeframe:
    def test_parse(self):
        assert Timeframe.parse("Weekly") is Timeframe.WEEKLY
        assert Timeframe.parse(Timeframe.DAILY) is Timeframe.DAILY

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            Timeframe.parse("hourly")

    def test_annualization(self):
        assert [t.periods_per_year for t in Timeframe] == [252, 52, 12]
        assert [t.stride for t in Timeframe] == [1, 5, 20]
