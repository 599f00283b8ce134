"""Tests for MarketDataService and the Scheduler."""

import json
import threading
from datetime import date

import pytest

from conftest import make_bars
from marketseries.config import AssetClass, ProviderClass
from marketseries.errors import MarketDataError, MarketDataErrorCode
from marketseries.models.bar import Bar
from marketseries.models.portfolio import PortfolioHolding
from marketseries.service import MarketDataService, Scheduler

TODAY = date(2024, 6, 14)


class TestUpdateAll:
    def test_updates_universe_and_writes_snapshot(self, service, service_config, store):
        snapshots = service.update_all(today=TODAY)

        assert set(snapshots) == {"AAPL", "MSFT", "SPY", "bitcoin"}
        assert store.last_date("AAPL") == TODAY
        raw = json.loads(service_config.snapshot_path.read_text())
        assert set(raw) == set(snapshots)
        assert raw["bitcoin"]["type"] == "crypto"

    def test_crypto_gets_spot_bar(self, service, store):
        service.update_all(today=TODAY)
        last = store.load("bitcoin")[-1]
        assert last.date == TODAY
        assert last.adj == 150.0
        assert last.vol == 1_000_000

    def test_failing_symbol_is_isolated(self, service, mock_provider, store):
        mock_provider.set_bars("MSFT", [Bar(TODAY, -5.0)])
        snapshots = service.update_all(today=TODAY)
        assert "MSFT" not in snapshots
        assert {"AAPL", "SPY", "bitcoin"} <= set(snapshots)
        assert store.load("MSFT") == []

    def test_persistence_failure_is_isolated(self, service, service_config, store, monkeypatch):
        write = store._write

        def failing_write(symbol, bars):
            if symbol == "MSFT":
                raise OSError("disk full")
            write(symbol, bars)

        monkeypatch.setattr(store, "_write", failing_write)
        snapshots = service.update_all(today=TODAY)

        assert set(snapshots) == {"AAPL", "SPY", "bitcoin"}
        assert store.load("MSFT") == []
        raw = json.loads(service_config.snapshot_path.read_text())
        assert set(raw) == {"AAPL", "SPY", "bitcoin"}
        assert not service.running

    def test_second_cycle_fetches_nothing_new(self, service, mock_provider):
        service.update_all(today=TODAY)
        calls = len(mock_provider.calls)
        service.update_all(today=TODAY)
        assert len(mock_provider.calls) == calls

    def test_single_flight(self, service):
        service._cycle_lock.acquire()
        try:
            assert service.running
            assert service.update_all(today=TODAY) is None
        finally:
            service._cycle_lock.release()
        assert not service.running

    def test_snapshot_write_failure_propagates(self, service, monkeypatch):
        def fail(snapshots):
            raise OSError("read-only")

        monkeypatch.setattr(service.snapshot_file, "save", fail)
        with pytest.raises(OSError):
            service.update_all(today=TODAY)
        assert not service.running


class TestReads:
    def test_snapshots_by_class(self, service):
        service.update_all(today=TODAY)
        assert {s.symbol for s in service.snapshots(AssetClass.STOCK)} == {"AAPL", "MSFT"}
        assert [s.symbol for s in service.snapshots(AssetClass.ETF)] == ["SPY"]
        assert len(service.snapshots()) == 4

    def test_quote_goes_through_limiter(self, service, fetcher):
        quote = service.quote("AAPL")
        assert quote.price == 150.0
        assert fetcher.limiters[ProviderClass.EQUITY].dispatched == 1

    def test_crypto_quote_uses_crypto_provider(self, service, crypto_provider, mock_provider):
        service.quote("bitcoin")
        assert crypto_provider.calls and not mock_provider.calls

    def test_history_rejects_bad_days(self, service):
        with pytest.raises(MarketDataError) as exc_info:
            service.history("AAPL", days=0)
        assert exc_info.value.code is MarketDataErrorCode.BAD_REQUEST

    def test_history(self, service, mock_provider):
        bars = service.history("AAPL", days=10)
        assert bars
        assert mock_provider.calls[0][0] == "get_daily_bars"


class TestMetrics:
    def test_asset_risk_with_benchmark(self, service, store):
        store.merge("AAPL", make_bars([100.0, 101.0, 99.0, 105.0, 110.0]))
        store.merge("SPY", make_bars([400.0, 402.0, 398.0, 405.0, 410.0]))
        risk = service.asset_risk("AAPL", quantity=2)
        assert risk.total_value == 220.0
        assert risk.beta is not None

    def test_asset_summary_percentages(self, service, store):
        store.merge("AAPL", make_bars([100.0, 101.0, 99.0, 105.0, 110.0]))
        summary = service.asset_summary("aapl")
        assert summary.var95 == pytest.approx(1.98019802)
        assert len(summary.returns) == 4

    def test_portfolio_risk(self, service, store):
        store.merge("AAPL", make_bars([100.0, 110.0, 121.0]))
        store.merge("bitcoin", make_bars([1.0, 2.0, 3.0]))
        risk = service.portfolio_risk(
            [PortfolioHolding("aapl", 1), PortfolioHolding("BITCOIN", 10)],
            today=TODAY,
        )
        assert risk.total_value == pytest.approx(151.0)

    def test_portfolio_risk_without_data(self, service):
        risk = service.portfolio_risk([PortfolioHolding("NOPE", 1)], today=TODAY)
        assert risk.total_value == 0.0


class StubService:
    def __init__(self, fail=False):
        self.calls = 0
        self.fail = fail
        self.called = threading.Event()

    def update_all(self):
        self.calls += 1
        self.called.set()
        if self.fail:
            raise OSError("boom")


class TestScheduler:
    def test_runs_immediately_and_stops(self):
        stub = StubService()
        scheduler = Scheduler(stub, interval_seconds=3600)
        scheduler.start()
        assert stub.called.wait(5)
        scheduler.stop(timeout=5)
        assert stub.calls == 1
        assert scheduler.ticks == 1

    def test_tick_survives_failure(self):
        stub = StubService(fail=True)
        scheduler = Scheduler(stub, interval_seconds=3600)
        scheduler.tick()
        scheduler.tick()
        assert stub.calls == 2

    def test_default_interval_from_config(self, service):
        assert Scheduler(service).interval == 4 * 60 * 60

    def test_delayed_start(self):
        stub = StubService()
        scheduler = Scheduler(stub, interval_seconds=3600)
        scheduler.start(run_immediately=False)
        scheduler.stop(timeout=5)
        assert stub.calls == 0


def test_service_builds_mock_providers(service_config):
    svc = MarketDataService(service_config)
    assert svc.store.base_path == service_config.series_dir
    assert set(svc.providers) == set(svc.fetcher.limiters)
