"""Analytics: return, drawdown, win rate, profit factor, expectancy."""

from breakout_bot.analytics.metrics import (
    expectancy,
    max_drawdown,
    profit_factor,
    total_return,
    win_rate,
)

__all__ = [
    "expectancy",
    "max_drawdown",
    "profit_factor",
    "total_return",
    "win_rate",
]
