"""Utils: timeframe parsing."""

from breakout_bot.utils.timeframes import timeframe_minutes

__all__ = ["timeframe_minutes"]
