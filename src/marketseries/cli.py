"""marketseries command line (Typer)."""

from __future__ import annotations

import json
import logging
import os

import typer

from marketseries import create_service_from_env
from marketseries.config import AssetClass, ConfigError
from marketseries.models.portfolio import PortfolioHolding
from marketseries.service import MarketDataService

app = typer.Typer(
    name="marketseries",
    help="marketseries CLI: series updates, snapshots, risk metrics and the HTTP API.",
    no_args_is_help=True,
)
metrics_app = typer.Typer(no_args_is_help=True, help="Risk metrics over stored series.")
app.add_typer(metrics_app, name="metrics")


def configure_logging(level: str | None = None) -> None:
    level = (level or os.getenv("MARKETSERIES_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _service() -> MarketDataService:
    try:
        return create_service_from_env()
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=1)


def _echo_json(payload: object) -> None:
    typer.echo(json.dumps(payload, indent=2))


def parse_holding(raw: str) -> PortfolioHolding:
    """Parse ``SYMBOL=QUANTITY`` into a holding."""
    symbol, sep, qty = raw.partition("=")
    if not sep or not symbol.strip():
        raise typer.BadParameter(f"Expected SYMBOL=QUANTITY, got '{raw}'")
    try:
        return PortfolioHolding(asset_id=symbol.strip(), quantity=float(qty))
    except ValueError as e:
        raise typer.BadParameter(f"Invalid quantity in '{raw}': {e}")


@app.command("update")
def update() -> None:
    """
    Run one ingestion cycle over the whole universe and publish snapshots.
    """
    configure_logging()
    result = _service().update_all()
    if result is None:
        typer.echo("Update already running; nothing done.")
        return
    typer.echo(f"Updated {len(result)} symbols.")


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address."),
    port: int = typer.Option(None, help="Port (defaults to $PORT or 3001)."),
    schedule: bool = typer.Option(True, help="Run the periodic update scheduler."),
) -> None:
    """
    Serve the HTTP API, updating series in the background.
    """
    import uvicorn

    from marketseries.api import create_app
    from marketseries.service import Scheduler

    configure_logging()
    service = _service()
    scheduler = Scheduler(service) if schedule else None
    port = port or int(os.getenv("PORT", "3001"))
    uvicorn.run(create_app(service, scheduler), host=host, port=port)


@app.command("snapshot")
def snapshot(
    asset_type: str = typer.Option(None, "--type", help="stock|etf|crypto"),
) -> None:
    """
    Print the published snapshots as JSON.
    """
    configure_logging("WARNING")
    try:
        asset_class = AssetClass(asset_type) if asset_type else None
    except ValueError:
        raise typer.BadParameter(f"Unknown type '{asset_type}'; expected stock, etf or crypto")
    _echo_json([s.to_dict() for s in _service().snapshots(asset_class)])


@metrics_app.command("asset")
def asset(
    symbol: str = typer.Argument(..., help="Ticker symbol or coin id."),
    quantity: float = typer.Option(1.0, help="Units held."),
    timeframe: str = typer.Option("daily", help="daily|weekly|monthly"),
    percent: bool = typer.Option(False, "--percent", help="Daily summary with VaR/CVaR as % losses."),
) -> None:
    """
    Risk metrics for one stored series.
    """
    configure_logging("WARNING")
    service = _service()
    if percent:
        _echo_json(service.asset_summary(symbol).to_dict())
        return
    _echo_json(service.asset_risk(symbol, quantity=quantity, timeframe=timeframe).to_dict())


@metrics_app.command("portfolio")
def portfolio(
    holdings: list[str] = typer.Argument(..., help="Holdings as SYMBOL=QUANTITY."),
    timeframe: str = typer.Option("daily", help="daily|weekly|monthly"),
) -> None:
    """
    Risk metrics for a portfolio of stored series.
    """
    configure_logging("WARNING")
    parsed = [parse_holding(h) for h in holdings]
    _echo_json(_service().portfolio_risk(parsed, timeframe=timeframe).to_dict())


def main() -> None:
    app()


if __name__ == "__main__":
    main()
