"""
Breakout-factor sweep: same bars, same settings, one fresh strategy per factor.
"""

from __future__ import annotations
import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from breakout_bot.backtesting.engine import BacktestEngine, BacktestResult
from breakout_bot.core.errors import ConfigurationError
from breakout_bot.core.types import Bar
from breakout_bot.strategies.volatility_breakout import VolatilityBreakoutStrategy

logger = logging.getLogger("breakout_bot.backtest.sweep")


def run_factor_sweep(
    bars: Sequence[Bar],
    factors: Iterable[float],
    base_params: Optional[Mapping[str, Any]] = None,
    initial_capital: float = 10000.0,
    engine: Optional[BacktestEngine] = None,
) -> List[Tuple[float, BacktestResult]]:
    """Backtest each breakout factor. Factors rejected by the strategy are logged and skipped."""
    engine = engine or BacktestEngine()
    rows: List[Tuple[float, BacktestResult]] = []
    for factor in factors:
        params = dict(base_params or {})
        params["breakout_factor"] = factor
        try:
            strategy = VolatilityBreakoutStrategy(**params)
        except ConfigurationError as e:
            logger.error("Skipping breakout_factor=%s: %s", factor, e)
            continue
        logger.info("Running backtest with breakout_factor=%.2f", factor)
        rows.append((factor, engine.run(strategy, bars, initial_capital)))
    return rows
