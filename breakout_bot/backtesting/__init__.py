"""Backtesting: prefix replay with flat commission, reports, factor sweeps."""

from breakout_bot.backtesting.engine import BacktestEngine, BacktestResult
from breakout_bot.backtesting.report import render_report, render_sweep
from breakout_bot.backtesting.sweep import run_factor_sweep

__all__ = ["BacktestEngine", "BacktestResult", "render_report", "render_sweep", "run_factor_sweep"]
