"""Core: config, types, errors, logging."""

from breakout_bot.core.config import load_config, Config
from breakout_bot.core.errors import ConfigurationError, FeedError
from breakout_bot.core.types import (
    ActiveTrade,
    Bar,
    Signal,
    SignalAction,
    SignalSide,
    Trade,
    TradingDay,
)
from breakout_bot.core.logger import setup_logging

__all__ = [
    "load_config",
    "Config",
    "ConfigurationError",
    "FeedError",
    "ActiveTrade",
    "Bar",
    "Signal",
    "SignalAction",
    "SignalSide",
    "Trade",
    "TradingDay",
    "setup_logging",
]
