"""Plain-text rendering of backtest results."""

from __future__ import annotations
from typing import Sequence, Tuple

from breakout_bot.analytics.metrics import expectancy, profit_factor
from breakout_bot.backtesting.engine import BacktestResult


def render_report(result: BacktestResult) -> str:
    profits = [t.profit for t in result.trades if not t.is_open]
    lines = [
        "--- Backtest Results ---",
        f"Initial balance: {result.initial_balance:,.2f}",
        f"Final balance:   {result.final_balance:,.2f}",
        f"Total return:    {result.total_return:.2f}%",
        f"Max drawdown:    {result.max_drawdown:.2f}%",
        f"Total trades:    {result.total_trades} (wins: {result.winning_trades}, losses: {result.losing_trades})",
        f"Win rate:        {result.win_rate:.1f}%",
    ]
    if profits:
        lines.append(f"Profit factor:   {profit_factor(profits):.2f}")
        lines.append(f"Expectancy:      {expectancy(profits):.2f} per trade")
    return "\n".join(lines)


def render_sweep(rows: Sequence[Tuple[float, BacktestResult]]) -> str:
    """One line per breakout factor."""
    header = f"{'factor':>8} {'trades':>7} {'win %':>7} {'return %':>9} {'max dd %':>9} {'final':>12}"
    lines = [header, "-" * len(header)]
    for factor, r in rows:
        lines.append(
            f"{factor:>8.2f} {r.total_trades:>7d} {r.win_rate:>7.1f} {r.total_return:>9.2f} "
            f"{r.max_drawdown:>9.2f} {r.final_balance:>12,.2f}"
        )
    return "\n".join(lines)
