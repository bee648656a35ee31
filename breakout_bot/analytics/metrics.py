"""
Performance metrics over an equity curve or a list of realized trade profits.
"""

from __future__ import annotations
from typing import Sequence

import numpy as np


def total_return(initial_balance: float, final_balance: float) -> float:
    """Percent change from initial to final balance."""
    if initial_balance == 0:
        return 0.0
    return (final_balance - initial_balance) / initial_balance * 100.0


def max_drawdown(equity_curve: Sequence[float]) -> float:
    """
    Largest peak-to-trough decline in percent (15.0 = 15%), as a positive number.
    Peak is carried forward; non-positive peaks are skipped.
    """
    if len(equity_curve) == 0:
        return 0.0
    arr = np.asarray(equity_curve, dtype=float)
    peak = np.maximum.accumulate(arr)
    dd = np.where(peak > 0, (peak - arr) / np.where(peak > 0, peak, 1.0), 0.0)
    return float(dd.max()) * 100.0


def win_rate(winning_trades: int, total_trades: int) -> float:
    """Winning share of trades in percent. 0 when there are no trades."""
    if total_trades <= 0:
        return 0.0
    return winning_trades / total_trades * 100.0


def profit_factor(profits: Sequence[float]) -> float:
    """Gross profit / gross loss. inf if there are wins and no losses."""
    wins = sum(p for p in profits if p > 0)
    losses = sum(-p for p in profits if p < 0)
    if losses <= 0:
        return float("inf") if wins > 0 else 0.0
    return wins / losses


def expectancy(profits: Sequence[float]) -> float:
    """Average profit per trade."""
    if not profits:
        return 0.0
    return sum(profits) / len(profits)
