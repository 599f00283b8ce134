"""HTTP surface over MarketDataService (FastAPI)."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from marketseries.config import AssetClass
from marketseries.errors import MarketDataError, MarketDataErrorCode
from marketseries.metrics import Timeframe
from marketseries.models.portfolio import PortfolioHolding
from marketseries.service import MarketDataService, Scheduler

logger = logging.getLogger(__name__)

_STATUS_BY_CODE = {
    MarketDataErrorCode.NOT_FOUND: 404,
    MarketDataErrorCode.BAD_REQUEST: 400,
}


class HoldingIn(BaseModel):
    assetId: str = Field(min_length=1)
    quantity: float = Field(ge=0)


class PortfolioMetricsRequest(BaseModel):
    holdings: list[HoldingIn]
    timeframe: str = "daily"


def _require_symbol(symbol: str | None) -> str:
    if symbol is None or not symbol.strip():
        raise HTTPException(status_code=400, detail="Symbol is required")
    return symbol.strip()


def _timeframe(value: str) -> Timeframe:
    try:
        return Timeframe.parse(value)
    except ValueError:
        allowed = ", ".join(t.value for t in Timeframe)
        raise HTTPException(status_code=400, detail=f"Unknown timeframe '{value}'. Allowed: {allowed}") from None


def create_app(service: MarketDataService, scheduler: Scheduler | None = None) -> FastAPI:
    """Build the API app. When ``scheduler`` is given it runs for the app's lifetime."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if scheduler is not None:
            scheduler.start()
            logger.info("Scheduler started (every %.0fs)", scheduler.interval)
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.stop(timeout=5)

    app = FastAPI(title="marketseries", lifespan=lifespan)
    app.state.service = service

    @app.exception_handler(MarketDataError)
    async def market_data_error_handler(request: Request, exc: MarketDataError) -> JSONResponse:
        status = _STATUS_BY_CODE.get(exc.code, 502)
        logger.warning("%s %s failed (%s): %s", request.method, request.url.path, exc.code.value, exc)
        return JSONResponse(status_code=status, content={"error": str(exc), "code": exc.code.value})

    # --- snapshots ---

    @app.get("/api/market-data")
    def market_data() -> list[dict[str, Any]]:
        return [s.to_dict() for s in service.snapshots()]

    @app.get("/api/stocks")
    def stocks() -> list[dict[str, Any]]:
        return [s.to_dict() for s in service.snapshots(AssetClass.STOCK)]

    @app.get("/api/etfs")
    def etfs() -> list[dict[str, Any]]:
        return [s.to_dict() for s in service.snapshots(AssetClass.ETF)]

    @app.get("/api/crypto")
    def crypto() -> list[dict[str, Any]]:
        return [s.to_dict() for s in service.snapshots(AssetClass.CRYPTO)]

    # --- proxied provider reads ---

    @app.get("/api/quote")
    def quote(symbol: str | None = None) -> dict[str, Any]:
        return service.quote(_require_symbol(symbol)).to_dict()

    @app.get("/api/history")
    def history(symbol: str | None = None, days: int = 365) -> list[dict[str, Any]]:
        return [b.to_dict() for b in service.history(_require_symbol(symbol), days=days)]

    @app.get("/api/series/{symbol}")
    def series(symbol: str) -> list[dict[str, Any]]:
        bars = service.series(symbol)
        if not bars:
            raise HTTPException(status_code=404, detail=f"No stored series for {symbol}")
        return [b.to_dict() for b in bars]

    # --- ingestion ---

    @app.post("/api/update")
    def update() -> dict[str, Any]:
        result = service.update_all()
        if result is None:
            return {"started": False, "reason": "already running"}
        return {"started": True, "updated": sorted(result)}

    # --- metrics ---

    @app.post("/api/metrics/portfolio")
    def portfolio_metrics(body: PortfolioMetricsRequest) -> dict[str, Any]:
        holdings = [PortfolioHolding(asset_id=h.assetId, quantity=h.quantity) for h in body.holdings]
        return service.portfolio_risk(holdings, timeframe=_timeframe(body.timeframe)).to_dict()

    @app.get("/api/metrics/asset/{symbol}")
    def asset_metrics(symbol: str, quantity: float = 1.0, timeframe: str = "daily") -> dict[str, Any]:
        if quantity < 0:
            raise HTTPException(status_code=400, detail="quantity must be >= 0")
        body = service.asset_risk(symbol, quantity=quantity, timeframe=_timeframe(timeframe)).to_dict()
        summary = service.asset_summary(symbol)
        body["var95"] = summary.var95
        body["cvar95"] = summary.cvar95
        return body

    return app
