"""Static universe of tracked symbols."""

from __future__ import annotations

from marketseries.config import AssetClass

STOCKS: tuple[str, ...] = (
    "AAPL", "MSFT", "GOOGL", "AMZN", "TSLA",
    "NVDA", "META", "BRK.B", "TSM", "V",
    "JNJ", "WMT", "MA", "JPM", "PG",
    "UNH", "HD", "DIS", "ADBE", "PYPL",
    "NFLX", "KO", "PEP", "XOM", "CVX",
    "INTC", "CSCO", "CRM", "ORCL", "PFE",
    "MRK", "ABT", "TMO", "ASML", "AVGO",
    "MCD", "NKE", "LLY", "TXN", "COST",
    "BAC", "C", "WFC", "GS", "MS",
    "UPS", "NEE", "DHR", "BMY", "HON",
)

ETFS: tuple[str, ...] = (
    "SPY", "QQQ", "VTI", "IWM", "EEM",
    "EFA", "AGG", "LQD", "HYG", "VNQ",
    "XLF", "XLY", "XLP", "XLV", "XLI",
    "XLE", "XLK", "XLB", "XLC", "GLD",
    "XWD.TO", "XDWL.DE",
)

# CoinGecko coin ids
CRYPTOS: tuple[str, ...] = ("bitcoin", "ethereum", "ripple", "solana")


def default_universe() -> dict[str, AssetClass]:
    """Return ``{symbol: asset_class}`` for every tracked symbol."""
    universe: dict[str, AssetClass] = {}
    for sym in STOCKS:
        universe[sym] = AssetClass.STOCK
    for sym in ETFS:
        universe[sym] = AssetClass.ETF
    for coin in CRYPTOS:
        universe[coin] = AssetClass.CRYPTO
    return universe
