"""MarketDataService and its periodic Scheduler."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from typing import Any

from marketseries import analytics
from marketseries.config import AssetClass, ProviderClass, ServiceConfig
from marketseries.errors import MarketDataError, MarketDataErrorCode
from marketseries.fetcher import Fetcher
from marketseries.metrics import Timeframe
from marketseries.models.bar import Bar
from marketseries.models.portfolio import PortfolioHolding
from marketseries.models.quote import Quote
from marketseries.models.risk import AssetMetrics, RiskMetrics
from marketseries.models.snapshot import Snapshot
from marketseries.providers import create_provider
from marketseries.providers.base import BaseSeriesProvider
from marketseries.snapshot import SnapshotFile, build_snapshot
from marketseries.store import BarStore, JsonBarStore
from marketseries.updater import SeriesUpdater, utc_today

logger = logging.getLogger(__name__)


class MarketDataService:
    """Central orchestrator: update cycle -> store -> snapshots -> metrics.

    Usage::

        from marketseries import create_service_from_env
        svc = create_service_from_env()
        svc.update_all()
        snaps = svc.snapshots(AssetClass.ETF)
    """

    def __init__(
        self,
        config: ServiceConfig,
        store: BarStore | None = None,
        fetcher: Fetcher | None = None,
        providers: dict[ProviderClass, BaseSeriesProvider] | None = None,
        snapshot_file: SnapshotFile | None = None,
    ) -> None:
        self.config = config
        self.store = store or JsonBarStore(config.series_dir)
        self.fetcher = fetcher or Fetcher.from_config(config)
        self.providers = providers or self._build_providers(config)
        self.snapshot_file = snapshot_file or SnapshotFile(config.snapshot_path)
        self.updater = SeriesUpdater(
            self.store,
            self.fetcher,
            self.providers,
            equity_lookback_days=config.equity_lookback_days,
            crypto_lookback_days=config.crypto_lookback_days,
        )
        self._cycle_lock = threading.Lock()

    @staticmethod
    def _build_providers(config: ServiceConfig) -> dict[ProviderClass, BaseSeriesProvider]:
        providers: dict[ProviderClass, BaseSeriesProvider] = {}
        for pc, name in (
            (ProviderClass.EQUITY, config.equity_provider),
            (ProviderClass.CRYPTO, config.crypto_provider),
        ):
            kwargs: dict[str, Any] = {}
            if name == "polygon":
                kwargs = {"api_key": config.polygon_api_key, "timeout": config.request_timeout}
            elif name == "coingecko":
                kwargs = {"api_key": config.coingecko_api_key, "timeout": config.request_timeout}
            elif name == "mock":
                kwargs = {"provider_class": pc}
            providers[pc] = create_provider(name, **kwargs)
        return providers

    # ------------------------------------------------------------ ingestion

    @property
    def running(self) -> bool:
        return self._cycle_lock.locked()

    def update_symbol(self, symbol: str, asset_class: AssetClass, today: date | None = None) -> Snapshot:
        """Fetch, merge and summarize one symbol."""
        today = today or utc_today()
        result = self.updater.update(symbol, asset_class, today=today)
        bars = result.bars
        if asset_class is AssetClass.CRYPTO:
            bars = self.updater.refresh_spot(symbol, asset_class, today=today)
        return build_snapshot(symbol, asset_class, bars)

    def update_all(self, today: date | None = None) -> dict[str, Snapshot] | None:
        """Run one ingestion cycle over the whole universe.

        Single-flight: returns None without doing anything when a cycle is
        already running. Per-symbol failures are logged and the symbol is
        left out of this cycle's snapshot map. A failure writing the
        snapshot file propagates.
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.info("Update cycle already running; skipping")
            return None
        try:
            return self._run_cycle(today or utc_today())
        finally:
            self._cycle_lock.release()

    def _run_cycle(self, today: date) -> dict[str, Snapshot]:
        universe = self.config.universe
        logger.info("Updating %d series + snapshots", len(universe))
        snapshots: dict[str, Snapshot] = {}

        with ThreadPoolExecutor(
            max_workers=max(1, self.fetcher.total_concurrency),
            thread_name_prefix="marketseries-update",
        ) as pool:
            futures = {
                symbol: pool.submit(self.update_symbol, symbol, asset_class, today)
                for symbol, asset_class in universe.items()
            }
            for symbol, future in futures.items():
                try:
                    snap = future.result()
                except MarketDataError as e:
                    logger.warning("%s skipped (%s): %s", symbol, e.code.value, e)
                    continue
                except Exception:
                    logger.exception("%s skipped: unexpected failure", symbol)
                    continue
                snapshots[symbol] = snap
                logger.info("%s updated (%.4f)", symbol, snap.current_price)

        self.snapshot_file.save(snapshots)
        logger.info("Snapshot saved (%d/%d symbols)", len(snapshots), len(universe))
        return snapshots

    # ------------------------------------------------------------ snapshots

    def snapshots(self, asset_class: AssetClass | None = None) -> list[Snapshot]:
        snaps = list(self.snapshot_file.load().values())
        if asset_class is not None:
            snaps = [s for s in snaps if s.asset_class is asset_class]
        return snaps

    def series(self, symbol: str) -> list[Bar]:
        return analytics.load_holding_series(self.store.load, symbol)

    # --------------------------------------------------------------- proxy

    def _provider_class_for(self, symbol: str) -> ProviderClass:
        asset_class = self.config.universe.get(symbol) or self.config.universe.get(symbol.lower())
        if asset_class is None:
            return ProviderClass.EQUITY
        return asset_class.provider_class

    def quote(self, symbol: str) -> Quote:
        """Latest quote, proxied through the symbol's provider limiter."""
        pc = self._provider_class_for(symbol)
        return self.fetcher.fetch(pc, self.providers[pc].get_quote, symbol)

    def history(self, symbol: str, days: int = 365) -> list[Bar]:
        """Daily bars for the last ``days`` days, fetched live (not stored)."""
        if days < 1:
            raise MarketDataError(
                f"days must be >= 1, got {days}",
                code=MarketDataErrorCode.BAD_REQUEST,
            )
        pc = self._provider_class_for(symbol)
        end = utc_today()
        start = end - timedelta(days=days)
        return self.fetcher.fetch_pages(pc, self.providers[pc].get_daily_bars_page, symbol, start, end)

    # ------------------------------------------------------------- metrics

    def asset_risk(
        self,
        symbol: str,
        quantity: float = 1.0,
        timeframe: Timeframe | str = Timeframe.DAILY,
    ) -> RiskMetrics:
        return analytics.compute_asset_risk(
            self.series(symbol),
            quantity=quantity,
            benchmark_bars=self.series(self.config.benchmark_symbol) or None,
            timeframe=timeframe,
            risk_free=self.config.risk_free_rate,
        )

    def asset_summary(self, symbol: str) -> AssetMetrics:
        """Daily metrics with VaR/CVaR as percentage losses."""
        return analytics.asset_metrics(self.series(symbol), risk_free=self.config.risk_free_rate)

    def portfolio_risk(
        self,
        holdings: list[PortfolioHolding],
        timeframe: Timeframe | str = Timeframe.DAILY,
        today: date | None = None,
    ) -> RiskMetrics:
        return analytics.compute_portfolio_metrics(
            holdings,
            self.store.load,
            timeframe=timeframe,
            risk_free=self.config.risk_free_rate,
            benchmark_bars=self.series(self.config.benchmark_symbol) or None,
            today=today,
        )


class Scheduler:
    """Periodic driver calling ``service.update_all`` on a daemon thread.

    The next tick is only scheduled after the previous cycle returns, so
    cycles never overlap within a process.
    """

    def __init__(self, service: MarketDataService, interval_seconds: float | None = None) -> None:
        self.service = service
        self.interval = (
            interval_seconds if interval_seconds is not None
            else service.config.update_interval_seconds
        )
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.ticks = 0

    def start(self, run_immediately: bool = True) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            args=(run_immediately,),
            name="marketseries-scheduler",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def _loop(self, run_immediately: bool) -> None:
        if not run_immediately and self._stop.wait(self.interval):
            return
        while not self._stop.is_set():
            self.tick()
            if self._stop.wait(self.interval):
                return

    def tick(self) -> None:
        self.ticks += 1
        try:
            self.service.update_all()
        except Exception:
            logger.exception("Update cycle aborted; retrying at next tick")
