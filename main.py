#!/usr/bin/env python3
"""
Volatility breakout CLI: backtest | sweep
Usage:
  python main.py backtest [--config config.yaml] [--data bars.csv] [--symbol BTCUSDT]
  python main.py sweep [--config config.yaml] [--factors 0.3,0.4,0.5]
"""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from breakout_bot.core.config import Config, load_config
from breakout_bot.core.errors import ConfigurationError
from breakout_bot.core.logger import setup_logging
from breakout_bot.core.types import Bar
from breakout_bot.backtesting.engine import BacktestEngine
from breakout_bot.backtesting.report import render_report, render_sweep
from breakout_bot.backtesting.sweep import run_factor_sweep
from breakout_bot.data.feeds import CsvBarFeed
from breakout_bot.strategies.volatility_breakout import VolatilityBreakoutStrategy

logger = logging.getLogger("breakout_bot")


def load_bars(config: Config) -> list[Bar]:
    """Bars from data_file if configured, else Binance futures klines."""
    if config.data_file:
        feed = CsvBarFeed(config.data_file)
    else:
        from breakout_bot.data.binance import BinanceBarFeed
        feed = BinanceBarFeed(config.binance_api_key, config.binance_api_secret, testnet=config.use_testnet)
    return feed.fetch(config.symbol, config.timeframe, config.backtest_start, config.backtest_end)


def _prepare(args: argparse.Namespace) -> tuple[Config, list[Bar]]:
    config = load_config(args.config, ROOT)
    if args.data:
        config.data_file = args.data
    if args.symbol:
        config.symbol = args.symbol.upper()
    setup_logging(config.log_level, config.log_dir, config.log_file)
    logger.info("Loading %s %s bars", config.symbol, config.timeframe)
    return config, load_bars(config)


def run_backtest(args: argparse.Namespace) -> int:
    """Single backtest with the configured parameters."""
    config, bars = _prepare(args)
    if not bars:
        logger.error("No bars available for %s; nothing to backtest", config.symbol)
        return 1
    try:
        strategy = VolatilityBreakoutStrategy(**config.strategy_params())
        engine = BacktestEngine(commission_rate=config.commission_rate, settlement=config.settlement)
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        return 1
    logger.info("Running %s on %d bars", strategy.name, len(bars))
    result = engine.run(strategy, bars, config.backtest_initial_capital)
    print()
    print(render_report(result))
    return 0


def run_sweep(args: argparse.Namespace) -> int:
    """Backtest once per breakout factor and print a comparison table."""
    config, bars = _prepare(args)
    if not bars:
        logger.error("No bars available for %s; nothing to backtest", config.symbol)
        return 1
    factors = [float(x) for x in args.factors.split(",")] if args.factors else config.breakout_factors
    try:
        engine = BacktestEngine(commission_rate=config.commission_rate, settlement=config.settlement)
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        return 1
    params = config.strategy_params()
    params.pop("breakout_factor")
    rows = run_factor_sweep(bars, factors, params, config.backtest_initial_capital, engine)
    print()
    print(render_sweep(rows))
    return 0 if rows else 1


def main() -> int:
    parser = argparse.ArgumentParser(description="Volatility breakout backtester")
    parser.add_argument("mode", choices=["backtest", "sweep"], help="Single backtest or breakout-factor sweep")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--data", type=Path, default=None, help="CSV of bars (overrides config)")
    parser.add_argument("--symbol", default=None, help="Symbol (overrides config)")
    parser.add_argument("--factors", default=None, help="Comma-separated breakout factors for sweep")
    args = parser.parse_args()
    if args.mode == "backtest":
        return run_backtest(args)
    return run_sweep(args)


if __name__ == "__main__":
    sys.exit(main())
