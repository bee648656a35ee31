"""
Bar-series indicators and entry filters used by the breakout strategy.
All functions look only at bars up to and including the given index (no lookahead).
"""

from __future__ import annotations
from typing import Sequence

import numpy as np

from breakout_bot.core.types import Bar


def true_ranges(bars: Sequence[Bar]) -> np.ndarray:
    """True range of each bar after the first: max(high, prev_close) - min(low, prev_close)."""
    if len(bars) < 2:
        return np.empty(0)
    high = np.array([b.high for b in bars[1:]])
    low = np.array([b.low for b in bars[1:]])
    prev_close = np.array([b.close for b in bars[:-1]])
    return np.maximum(high, prev_close) - np.minimum(low, prev_close)


def average_true_range(bars: Sequence[Bar], period: int) -> float:
    """
    Simple (not exponential) mean of the most recent `period` true ranges.
    Returns 0.0 until period + 1 bars are available.
    """
    if period <= 0 or len(bars) < period + 1:
        return 0.0
    tr = true_ranges(bars)
    return float(tr[-period:].mean())


def is_strong_trend(bars: Sequence[Bar], index: int, lookback: int = 5) -> bool:
    """
    True if the `lookback` bars before `index` form a strict run of higher highs and
    higher lows, or of lower highs and lower lows.
    """
    if index < lookback + 1:
        return False
    window = bars[index - lookback - 1:index]
    highs = np.diff([b.high for b in window])
    lows = np.diff([b.low for b in window])
    uptrend = bool(np.all(highs > 0) and np.all(lows > 0))
    downtrend = bool(np.all(highs < 0) and np.all(lows < 0))
    return uptrend or downtrend


def is_range_expansion(bars: Sequence[Bar], index: int, lookback: int = 5, mult: float = 1.2) -> bool:
    """True if bar `index` ranges more than `mult` x the mean range of the `lookback` bars before it."""
    if index < lookback:
        return False
    avg_range = np.mean([b.range for b in bars[index - lookback:index]])
    return bool(bars[index].range > avg_range * mult)
