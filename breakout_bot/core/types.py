"""
Core data types for bars, signals, breakout state, and the backtest ledger.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class SignalSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @property
    def opposite(self) -> "SignalSide":
        return SignalSide.SELL if self is SignalSide.BUY else SignalSide.BUY


class SignalAction(str, Enum):
    ENTRY = "ENTRY"
    EXIT = "EXIT"


@dataclass(frozen=True)
class Bar:
    """OHLCV candle for one symbol."""
    time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    symbol: str = ""

    @property
    def range(self) -> float:
        return self.high - self.low


@dataclass(frozen=True)
class Signal:
    """Request to open or close a position. Not a guarantee of execution."""
    symbol: str
    side: SignalSide
    suggested_price: float
    suggested_quantity: float
    timestamp: datetime
    reason: str
    action: SignalAction = SignalAction.ENTRY
    metadata: dict = field(default_factory=dict)

    @property
    def is_exit(self) -> bool:
        return self.action is SignalAction.EXIT


@dataclass
class TradingDay:
    """Breakout levels for one calendar day. Signal flags never reset within the day."""
    date: date
    open_price: float
    upper_bound: float
    lower_bound: float
    range_size: float
    long_signal_emitted: bool = False
    short_signal_emitted: bool = False


@dataclass
class ActiveTrade:
    """Position the strategy is currently managing for a symbol."""
    symbol: str
    direction: SignalSide
    entry_price: float
    entry_time: datetime
    stop_loss: float
    profit_target: float
    quantity: float


@dataclass
class Trade:
    """Backtest ledger entry. Open until exit_time is set."""
    symbol: str
    side: SignalSide
    quantity: float
    entry_price: float
    entry_time: datetime
    exit_price: Optional[float] = None
    exit_time: Optional[datetime] = None
    profit: float = 0.0
    profit_pct: float = 0.0
    exit_reason: str = ""  # "Take Profit" | "Stop Loss" | "Time Exit" | "end_of_data"
    fees: float = 0.0

    @property
    def is_open(self) -> bool:
        return self.exit_time is None
