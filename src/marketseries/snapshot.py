"""Snapshot builder and the published snapshot file."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from pathlib import Path

from marketseries.config import AssetClass
from marketseries.errors import MarketDataError, MarketDataErrorCode
from marketseries.models.bar import Bar
from marketseries.models.snapshot import Snapshot
from marketseries.store import dedupe_bars, write_json_atomic

logger = logging.getLogger(__name__)

OFFSETS = (0, 1, 7, 30, 90)


def build_snapshot(
    symbol: str,
    asset_class: AssetClass,
    bars: list[Bar],
    now_ms: int | None = None,
) -> Snapshot:
    """Reduce a series to current and 1/7/30/90-bar-ago prices.

    Offsets count bars, not calendar days. When the series is shorter than
    an offset the oldest bar is used.

    Raises:
        MarketDataError: NO_DATA for an empty series.
    """
    series = dedupe_bars(bars)
    if not series:
        raise MarketDataError(
            f"No bars for {symbol}; cannot build snapshot",
            code=MarketDataErrorCode.NO_DATA,
        )

    def pick(n: int) -> float:
        idx = max(len(series) - 1 - n, 0)
        return series[idx].adj

    current, d1, d7, d30, d90 = (pick(n) for n in OFFSETS)
    return Snapshot(
        symbol=symbol,
        asset_class=asset_class,
        current_price=current,
        one_day_ago_price=d1,
        seven_day_ago_price=d7,
        thirty_day_ago_price=d30,
        ninety_day_ago_price=d90,
        volume=series[-1].vol,
        last_updated=now_ms if now_ms is not None else int(time.time() * 1000),
    )


class SnapshotFile:
    """The published snapshot map, one JSON object keyed by symbol."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, Snapshot]:
        if not self.path.exists():
            return {}
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        return {sym: Snapshot.from_dict(entry) for sym, entry in raw.items()}

    def save(self, snapshots: Mapping[str, Snapshot]) -> None:
        payload = {sym: snap.to_dict() for sym, snap in snapshots.items()}
        write_json_atomic(self.path, payload, indent=2)
        logger.info("Wrote %d snapshots to %s", len(payload), self.path)
