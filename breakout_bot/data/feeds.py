"""
Bar sources. fetch() never raises: on any failure it logs and returns an empty list.
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from breakout_bot.core.errors import FeedError
from breakout_bot.core.types import Bar

logger = logging.getLogger("breakout_bot.data")

OHLCV_COLUMNS = ["time", "open", "high", "low", "close", "volume"]

TimeBound = Optional[Union[str, datetime]]


def bars_from_frame(df: pd.DataFrame, symbol: str = "") -> List[Bar]:
    """
    Convert an OHLCV DataFrame (columns: time, open, high, low, close, volume) to bars,
    sorted by time with duplicate timestamps dropped.
    """
    missing = [c for c in OHLCV_COLUMNS if c not in df.columns]
    if missing:
        raise FeedError(f"missing columns: {', '.join(missing)}")
    df = df[OHLCV_COLUMNS].copy()
    df["time"] = pd.to_datetime(df["time"])
    df[OHLCV_COLUMNS[1:]] = df[OHLCV_COLUMNS[1:]].astype(float)
    df = df.dropna().sort_values("time", kind="stable")
    dupes = df["time"].duplicated(keep="first")
    if dupes.any():
        logger.warning("Dropping %d bars with duplicate timestamps", int(dupes.sum()))
        df = df[~dupes]
    return [
        Bar(
            time=row.time.to_pydatetime(),
            open=row.open,
            high=row.high,
            low=row.low,
            close=row.close,
            volume=row.volume,
            symbol=symbol,
        )
        for row in df.itertuples(index=False)
    ]


def _bound(value: TimeBound, tz) -> Optional[pd.Timestamp]:
    if not value:
        return None
    ts = pd.Timestamp(value)
    if tz is not None and ts.tzinfo is None:
        return ts.tz_localize(tz)
    if tz is None and ts.tzinfo is not None:
        return ts.tz_convert(None)
    return ts


def filter_range(bars: List[Bar], start: TimeBound = None, end: TimeBound = None) -> List[Bar]:
    """
    Keep bars with start <= time <= end. Naive bounds are read in the bars' timezone;
    aware bounds against naive bars are taken as UTC.
    """
    if not bars:
        return []
    tz = bars[0].time.tzinfo
    lo, hi = _bound(start, tz), _bound(end, tz)
    return [b for b in bars if (lo is None or b.time >= lo) and (hi is None or b.time <= hi)]


class BarFeed(ABC):
    """Historical bar source for one exchange or file."""

    @abstractmethod
    def fetch(self, symbol: str, timeframe: str, start: TimeBound = None, end: TimeBound = None) -> List[Bar]:
        """Bars ascending by time, or [] on failure."""
        pass


class CsvBarFeed(BarFeed):
    """
    CSV with time, open, high, low, close, volume columns. An optional `symbol` column
    lets one file hold several symbols. timeframe is not checked; the file is what it is.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def fetch(self, symbol: str, timeframe: str = "", start: TimeBound = None, end: TimeBound = None) -> List[Bar]:
        try:
            df = pd.read_csv(self.path)
            if "time" not in df.columns and "timestamp" in df.columns:
                df = df.rename(columns={"timestamp": "time"})
            if "symbol" in df.columns:
                df = df[df["symbol"].astype(str).str.upper() == symbol.upper()]
            bars = filter_range(bars_from_frame(df, symbol), start, end)
        except (OSError, TypeError, ValueError, FeedError) as e:
            logger.error("Could not load bars from %s: %s", self.path, e)
            return []
        if not bars:
            logger.warning("No bars for %s in %s", symbol, self.path)
        else:
            logger.info("Loaded %d bars for %s from %s", len(bars), symbol, self.path)
        return bars
