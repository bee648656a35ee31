"""Data: bar feed interface, CSV loader, DataFrame conversion."""

from breakout_bot.data.feeds import BarFeed, CsvBarFeed, bars_from_frame, filter_range

__all__ = ["BarFeed", "CsvBarFeed", "bars_from_frame", "filter_range"]
