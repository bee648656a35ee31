"""Strategies: base interface and the volatility breakout implementation."""

from breakout_bot.strategies.base import BaseStrategy
from breakout_bot.strategies.volatility_breakout import BreakoutParams, VolatilityBreakoutStrategy

__all__ = ["BaseStrategy", "BreakoutParams", "VolatilityBreakoutStrategy"]
