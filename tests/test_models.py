"""Tests for data models."""

from datetime import date, datetime, timezone

import pytest

from marketseries.config import AssetClass
from marketseries.models import (
    Bar,
    PortfolioHolding,
    Quote,
    AssetMetrics,
    RiskMetrics,
    Snapshot,
)


class TestBar:
    def test_frozen(self):
        bar = Bar(date(2024, 1, 2), 10.0, 5)
        with pytest.raises(AttributeError):
            bar.adj = 11.0  # type: ignore[misc]

    def test_to_dict(self):
        assert Bar(date(2024, 1, 2), 10.5, 7).to_dict() == {"date": "2024-01-02", "adj": 10.5, "vol": 7}

    def test_from_dict_defaults_volume(self):
        assert Bar.from_dict({"date": "2024-01-02", "adj": "10.5"}) == Bar(date(2024, 1, 2), 10.5, 0)


class TestSnapshot:
    def test_from_dict(self):
        snap = Snapshot.from_dict({
            "symbol": "QQQ",
            "type": "etf",
            "currentPrice": 440.1,
            "oneDayAgoPrice": 438.0,
            "sevenDayAgoPrice": 430.0,
            "thirtyDayAgoPrice": 420.0,
            "ninetyDayAgoPrice": 400.0,
            "volume": 1200,
            "lastUpdated": 1718352000000,
        })
        assert snap.asset_class is AssetClass.ETF
        assert snap.ninety_day_ago_price == 400.0
        assert snap.to_dict()["type"] == "etf"


class TestQuote:
    def test_to_dict(self):
        ts = datetime(2024, 6, 14, 20, 0, tzinfo=timezone.utc)
        d = Quote("AAPL", ts, 212.49, volume=1e6, change_pct=0.5).to_dict()
        assert d["timestamp"] == "2024-06-14T20:00:00+00:00"
        assert d["changePct"] == 0.5


class TestPortfolioHolding:
    def test_negative_quantity_rejected(self):
        with pytest.raises(ValueError):
            PortfolioHolding("AAPL", -1)

    def test_zero_quantity_allowed(self):
        assert PortfolioHolding("SPY", 0).quantity == 0


class TestRiskMetrics:
    def test_zero(self):
        zero = RiskMetrics.zero()
        assert zero.to_dict() == {
            "totalValue": 0.0,
            "volatility": 0.0,
            "sharpe": 0.0,
            "maxDrawdown": 0.0,
            "ytdReturn": 0.0,
            "beta": 0.0,
            "valueAtRisk": 0.0,
        }

    def test_optional_keys_omitted(self):
        d = RiskMetrics(total_value=1.0, volatility=0.1, sharpe=1.0, max_drawdown=0.0).to_dict()
        assert set(d) == {"totalValue", "volatility", "sharpe", "maxDrawdown"}


class TestAssetMetrics:
    def test_to_dict_reports_observations(self):
        m = AssetMetrics((0.01, -0.02), 0.2, 1.1, 0.02, 2.0, 2.0)
        assert m.to_dict() == {
            "volatility": 0.2,
            "sharpe": 1.1,
            "maxDrawdown": 0.02,
            "var95": 2.0,
            "cvar95": 2.0,
            "observations": 2,
        }
