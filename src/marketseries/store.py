"""Bar stores: per-symbol JSON files on disk, or in memory."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date
from pathlib import Path

import pandas as pd

from marketseries.errors import MarketDataError, MarketDataErrorCode
from marketseries.models.bar import Bar

logger = logging.getLogger(__name__)


def series_key(symbol: str) -> str:
    """Canonical store key for a symbol; ``aapl`` and ``AAPL`` are one series."""
    return symbol.strip().upper()


def dedupe_bars(bars: Iterable[Bar]) -> list[Bar]:
    """Keep the last-arriving bar per calendar day, sorted ascending.

    Input order is the arrival order: for two bars on the same day the one
    appearing later wins.
    """
    bars = list(bars)
    if not bars:
        return []
    df = pd.DataFrame(
        {
            "date": [b.date for b in bars],
            "pos": range(len(bars)),
        }
    )
    # stable sort keeps arrival order within a day
    df = df.sort_values("date", kind="mergesort")
    df = df.drop_duplicates(subset="date", keep="last")
    return [bars[i] for i in df["pos"]]


class BarStore(ABC):
    """Abstract per-symbol series store.

    A series only grows through ``merge``; nothing is ever deleted.
    """

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @abstractmethod
    def load(self, symbol: str) -> list[Bar]:
        """Return the stored series, or an empty list when none exists."""
        ...

    @abstractmethod
    def _write(self, symbol: str, bars: list[Bar]) -> None:
        """Persist a complete series, replacing the previous one."""
        ...

    def merge(self, symbol: str, new_bars: Iterable[Bar]) -> list[Bar]:
        """Combine stored and new bars, persist and return the result.

        Raises:
            MarketDataError: PERSISTENCE_FAILED when the write fails.
        """
        new_bars = list(new_bars)
        with self._lock_for(symbol):
            stored = self.load(symbol)
            if not new_bars:
                return stored
            merged = dedupe_bars(stored + new_bars)
            try:
                self._write(symbol, merged)
            except OSError as exc:
                raise MarketDataError(
                    f"Failed to persist series for {symbol}: {exc}",
                    code=MarketDataErrorCode.PERSISTENCE_FAILED,
                ) from exc
            logger.debug("Merged %d bars into %s (%d total)", len(new_bars), symbol, len(merged))
            return merged

    def last_date(self, symbol: str) -> date | None:
        bars = self.load(symbol)
        return bars[-1].date if bars else None

    def _lock_for(self, symbol: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(series_key(symbol), threading.Lock())


class JsonBarStore(BarStore):
    """Disk store: one JSON array per symbol.

    Storage layout: ``{base_path}/{SYMBOL}.json`` holding
    ``[{"date": "YYYY-MM-DD", "adj": float, "vol": int}, ...]``.
    """

    def __init__(self, base_path: Path | str) -> None:
        super().__init__()
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _file_path(self, symbol: str) -> Path:
        return self.base_path / f"{series_key(symbol)}.json"

    def load(self, symbol: str) -> list[Bar]:
        """Read the series file.

        Raises:
            MarketDataError: PERSISTENCE_FAILED when the file is unreadable.
        """
        fp = self._file_path(symbol)
        if not fp.exists():
            return []
        try:
            raw = json.loads(fp.read_text(encoding="utf-8"))
            return [Bar.from_dict(r) for r in raw]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.error("Unreadable series file %s: %s", fp, exc)
            raise MarketDataError(
                f"Stored series for {symbol} is unreadable: {exc}",
                code=MarketDataErrorCode.PERSISTENCE_FAILED,
            ) from exc

    def _write(self, symbol: str, bars: list[Bar]) -> None:
        write_json_atomic(self._file_path(symbol), [b.to_dict() for b in bars])


class MemoryBarStore(BarStore):
    """In-memory store for tests and offline runs."""

    def __init__(self) -> None:
        super().__init__()
        self._series: dict[str, list[Bar]] = {}
        self.writes = 0

    def load(self, symbol: str) -> list[Bar]:
        return list(self._series.get(series_key(symbol), []))

    def _write(self, symbol: str, bars: list[Bar]) -> None:
        self._series[series_key(symbol)] = list(bars)
        self.writes += 1


def write_json_atomic(path: Path, payload: object, indent: int | None = None) -> None:
    """Write JSON to a temp file in the same directory, then rename over ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=indent)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
