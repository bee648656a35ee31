"""
Backtest engine: replays a strategy over a growing bar prefix with a simulated account.
Flat commission only, one open position per symbol, exits driven by the strategy's signals.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from breakout_bot.analytics.metrics import max_drawdown, total_return, win_rate
from breakout_bot.core.errors import ConfigurationError
from breakout_bot.core.types import Bar, Signal, SignalSide, Trade
from breakout_bot.strategies.base import BaseStrategy

logger = logging.getLogger("breakout_bot.backtest")

SETTLEMENTS = ("net", "gross")


@dataclass(frozen=True)
class BacktestResult:
    """Backtest output: account summary, equity curve and trade ledger."""
    initial_balance: float
    final_balance: float
    total_return: float
    max_drawdown: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    equity_curve: Tuple[float, ...] = ()
    trades: Tuple[Trade, ...] = field(default_factory=tuple)


class BacktestEngine:
    """
    Runs a strategy on historical bars. For bar i the strategy sees bars[0..i] and only
    signals stamped with bar i's time are acted on.

    settlement="net" credits realized profit on exit. settlement="gross" also credits
    quantity * exit_price, which is how the legacy loop settled; it overstates balance
    and is kept only for comparing old runs.
    """

    def __init__(self, commission_rate: float = 0.001, settlement: str = "net"):
        if not 0 <= commission_rate < 1:
            raise ConfigurationError(f"commission_rate {commission_rate} must be in [0, 1)")
        if settlement not in SETTLEMENTS:
            raise ConfigurationError(f"settlement must be one of {SETTLEMENTS}, got {settlement!r}")
        self.commission_rate = commission_rate
        self.settlement = settlement

    def run(
        self,
        strategy: BaseStrategy,
        bars: Sequence[Bar],
        initial_capital: float = 10000.0,
    ) -> BacktestResult:
        balance = initial_capital
        equity_curve: List[float] = [initial_capital]
        ledger: List[Trade] = []
        open_trades: Dict[str, Trade] = {}
        winning = losing = 0

        if not bars:
            logger.warning("No bars to backtest; returning empty result")

        for i in range(1, len(bars)):
            bar = bars[i]
            equity_curve.append(balance)
            signals = strategy.process_data(bars[: i + 1])
            for signal in signals:
                if signal.timestamp != bar.time:
                    continue
                open_trade = open_trades.get(signal.symbol)
                if signal.is_exit:
                    if open_trade is None:
                        logger.debug("Exit for %s with no open position ignored", signal.symbol)
                        continue
                    balance = self._close(open_trade, signal.suggested_price, signal, balance)
                    del open_trades[signal.symbol]
                    if open_trade.profit > 0:
                        winning += 1
                    else:
                        losing += 1
                    continue
                if open_trade is not None:
                    logger.debug("Entry for %s ignored: position already open", signal.symbol)
                    continue
                if signal.suggested_quantity <= 0:
                    logger.warning("Entry for %s ignored: quantity %s", signal.symbol, signal.suggested_quantity)
                    continue
                trade, balance = self._open(signal, balance)
                open_trades[signal.symbol] = trade
                ledger.append(trade)

        # Force-close anything still open at the last close
        for trade in list(open_trades.values()):
            last = bars[-1]
            balance = self._close(trade, last.close, None, balance, exit_time=last.time)
            if trade.profit > 0:
                winning += 1
            else:
                losing += 1
        open_trades.clear()

        total = len(ledger)
        result = BacktestResult(
            initial_balance=initial_capital,
            final_balance=balance,
            total_return=total_return(initial_capital, balance),
            max_drawdown=max_drawdown(equity_curve),
            total_trades=total,
            winning_trades=winning,
            losing_trades=losing,
            win_rate=win_rate(winning, total),
            equity_curve=tuple(equity_curve),
            trades=tuple(ledger),
        )
        logger.info(
            "Backtest done: %d trades, final balance %.2f (%.2f%%), max drawdown %.2f%%",
            total, result.final_balance, result.total_return, result.max_drawdown,
        )
        return result

    def _open(self, signal: Signal, balance: float) -> Tuple[Trade, float]:
        price, qty = signal.suggested_price, signal.suggested_quantity
        commission = price * qty * self.commission_rate
        trade = Trade(
            symbol=signal.symbol,
            side=signal.side,
            quantity=qty,
            entry_price=price,
            entry_time=signal.timestamp,
            fees=commission,
        )
        logger.debug("Open %s %s qty=%s at %.5f", signal.side.value, signal.symbol, qty, price)
        return trade, balance - commission

    def _close(
        self,
        trade: Trade,
        exit_price: float,
        signal: Optional[Signal],
        balance: float,
        exit_time=None,
    ) -> float:
        """Finalize trade in place and return the new balance."""
        if trade.side is SignalSide.BUY:
            profit = (exit_price - trade.entry_price) * trade.quantity
        else:
            profit = (trade.entry_price - exit_price) * trade.quantity
        commission = exit_price * trade.quantity * self.commission_rate
        profit -= commission
        trade.exit_price = exit_price
        trade.exit_time = signal.timestamp if signal is not None else exit_time
        trade.exit_reason = signal.reason if signal is not None else "end_of_data"
        trade.profit = profit
        notional = trade.entry_price * trade.quantity
        trade.profit_pct = profit / notional * 100.0 if notional else 0.0
        trade.fees += commission
        logger.debug("Close %s at %.5f (%s): profit %.2f", trade.symbol, exit_price, trade.exit_reason, profit)
        if self.settlement == "gross":
            return balance + trade.quantity * exit_price + profit
        return balance + profit
