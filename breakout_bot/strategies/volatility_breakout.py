"""
Larry Williams volatility breakout.

Each trading day gets breakout bounds at today's open +/- a fraction of the previous
day's range (or of ATR). The first bar to pierce a bound opens a trade at the bound,
which is then closed by profit target, stop loss, or a time-of-day exit, in that order.
"""

from __future__ import annotations
import logging
from dataclasses import asdict, dataclass, fields, replace
from datetime import date, datetime, tzinfo
from typing import Any, Callable, Mapping, Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from breakout_bot.core.errors import ConfigurationError
from breakout_bot.core.types import (
    ActiveTrade,
    Bar,
    Signal,
    SignalAction,
    SignalSide,
    TradingDay,
)
from breakout_bot.risk.sizing import fixed_fractional_quantity
from breakout_bot.strategies.base import BaseStrategy
from breakout_bot.strategies.indicators import (
    average_true_range,
    is_range_expansion,
    is_strong_trend,
)

logger = logging.getLogger("breakout_bot.strategy")

TREND_LOOKBACK = 5


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return float(value) > 0.5


def _as_int(value: Any) -> int:
    return int(float(value))


def _as_tz(value: Any) -> Optional[str]:
    return str(value) if value else None


@dataclass(frozen=True)
class BreakoutParams:
    """Validated strategy parameters."""
    breakout_factor: float = 0.25
    profit_factor: float = 2.0
    stop_loss_factor: float = 1.0
    required_bars: int = 2
    exclude_first_n_bars: int = 1
    use_atr: bool = False
    atr_period: int = 14
    exit_hour: int = 21
    exit_minute: int = 59
    trend_filter: bool = False
    range_filter: bool = False
    skip_first_hour: bool = False
    avoid_last_half_hour: bool = False
    market_open_hour: int = 9
    market_close_hour: int = 16
    account_size: float = 10000.0
    risk_percent: float = 0.01
    timezone: Optional[str] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], base: Optional["BreakoutParams"] = None) -> "BreakoutParams":
        """Coerce and validate a parameter dict on top of `base` (defaults if None)."""
        converters: dict[str, Callable[[Any], Any]] = {}
        for f in fields(cls):
            if f.type in ("bool", bool):
                converters[f.name] = _as_bool
            elif f.type in ("int", int):
                converters[f.name] = _as_int
            elif f.name == "timezone":
                converters[f.name] = _as_tz
            else:
                converters[f.name] = float
        unknown = sorted(set(values) - set(converters))
        if unknown:
            raise ConfigurationError(f"unknown parameter(s): {', '.join(unknown)}")
        coerced = {}
        for key, value in values.items():
            try:
                coerced[key] = converters[key](value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"{key}={value!r} is not a valid value") from e
        params = replace(base or cls(), **coerced)
        params.validate()
        return params

    def validate(self) -> None:
        if not 0 < self.breakout_factor <= 1.0:
            raise ConfigurationError(f"breakout_factor {self.breakout_factor} must be in (0, 1]")
        if not self.profit_factor > 0:
            raise ConfigurationError(f"profit_factor {self.profit_factor} must be > 0")
        if not self.stop_loss_factor > 0:
            raise ConfigurationError(f"stop_loss_factor {self.stop_loss_factor} must be > 0")
        if self.required_bars < 1:
            raise ConfigurationError(f"required_bars {self.required_bars} must be >= 1")
        if self.exclude_first_n_bars < 0:
            raise ConfigurationError(f"exclude_first_n_bars {self.exclude_first_n_bars} must be >= 0")
        if self.atr_period < 1:
            raise ConfigurationError(f"atr_period {self.atr_period} must be >= 1")
        for key in ("exit_hour", "market_open_hour", "market_close_hour"):
            if not 0 <= getattr(self, key) <= 23:
                raise ConfigurationError(f"{key} {getattr(self, key)} must be in 0..23")
        if not 0 <= self.exit_minute <= 59:
            raise ConfigurationError(f"exit_minute {self.exit_minute} must be in 0..59")
        if not self.account_size > 0:
            raise ConfigurationError(f"account_size {self.account_size} must be > 0")
        if not 0 < self.risk_percent <= 1.0:
            raise ConfigurationError(f"risk_percent {self.risk_percent} must be in (0, 1]")
        if self.timezone:
            try:
                ZoneInfo(self.timezone)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ConfigurationError(f"unknown timezone {self.timezone!r}") from e


class VolatilityBreakoutStrategy(BaseStrategy):
    """
    Stateful per-symbol breakout evaluator.

    process_data() replays the history it is given from a clean per-symbol state, so
    calling it twice with the same bars returns the same signals. The resulting
    trading-day and active-trade maps are kept on the instance for inspection.
    """

    def __init__(self, **parameters: Any):
        self._params = BreakoutParams.from_mapping(parameters)
        self._tz: Optional[tzinfo] = ZoneInfo(self._params.timezone) if self._params.timezone else None
        self._trading_days: dict[str, dict[date, TradingDay]] = {}
        self._active_trades: dict[str, ActiveTrade] = {}

    @property
    def name(self) -> str:
        return "Larry Williams Volatility Breakout"

    @property
    def params(self) -> BreakoutParams:
        return self._params

    @property
    def parameters(self) -> dict[str, Any]:
        return asdict(self._params)

    def initialize(self, parameters: Mapping[str, Any]) -> bool:
        try:
            params = BreakoutParams.from_mapping(parameters, base=self._params)
        except ConfigurationError as e:
            logger.error("Rejected strategy parameters: %s", e)
            return False
        self._params = params
        self._tz = ZoneInfo(params.timezone) if params.timezone else None
        self.reset()
        logger.info(
            "%s: breakout_factor=%.3f profit_factor=%.2f stop_loss_factor=%.2f atr=%s exit=%02d:%02d",
            self.name, params.breakout_factor, params.profit_factor, params.stop_loss_factor,
            f"on({params.atr_period})" if params.use_atr else "off", params.exit_hour, params.exit_minute,
        )
        return True

    def reset(self) -> None:
        """Drop all per-symbol state."""
        self._trading_days.clear()
        self._active_trades.clear()

    def trading_days(self, symbol: str) -> dict[date, TradingDay]:
        return self._trading_days.get(symbol, {})

    def active_trade(self, symbol: str) -> Optional[ActiveTrade]:
        return self._active_trades.get(symbol)

    def process_data(self, bars: Sequence[Bar]) -> list[Signal]:
        p = self._params
        if len(bars) < p.required_bars:
            return []
        symbol = bars[0].symbol or "UNKNOWN"
        days: dict[date, TradingDay] = {}
        self._trading_days[symbol] = days
        self._active_trades.pop(symbol, None)

        local = [self._local_time(b.time) for b in bars]
        signals: list[Signal] = []
        for i, bar in enumerate(bars):
            today = local[i].date()
            if i > 0 and today != local[i - 1].date() and today not in days:
                days[today] = self._open_day(bars, local, i)
            if i < p.exclude_first_n_bars:
                continue
            day = days.get(today)
            if day is not None and self._is_valid_trading_time(local[i]):
                signals.extend(self._check_entries(symbol, bars, i, day))
            trade = self._active_trades.get(symbol)
            if trade is not None:
                exit_signal = self._check_exit(trade, bar, local[i])
                if exit_signal is not None:
                    signals.append(exit_signal)
                    del self._active_trades[symbol]
        return signals

    def _local_time(self, ts: datetime) -> datetime:
        """Naive timestamps are taken as local already."""
        if self._tz is not None and ts.tzinfo is not None:
            return ts.astimezone(self._tz)
        return ts

    def _open_day(self, bars: Sequence[Bar], local: Sequence[datetime], i: int) -> TradingDay:
        """Breakout levels for the day starting at bar i, from the day that ended at bar i-1."""
        p = self._params
        prev_date = local[i - 1].date()
        j = i - 1
        prev_high, prev_low = bars[j].high, bars[j].low
        while j > 0 and local[j - 1].date() == prev_date:
            j -= 1
            prev_high = max(prev_high, bars[j].high)
            prev_low = min(prev_low, bars[j].low)

        atr = average_true_range(bars[:i], p.atr_period) if p.use_atr else 0.0
        if atr > 0:
            range_size = atr * p.breakout_factor
        else:
            range_size = (prev_high - prev_low) * p.breakout_factor
        open_price = bars[i].open
        day = TradingDay(
            date=local[i].date(),
            open_price=open_price,
            upper_bound=open_price + range_size,
            lower_bound=open_price - range_size,
            range_size=range_size,
        )
        logger.debug(
            "New day %s for %s: upper=%.5f lower=%.5f range=%.5f",
            day.date, bars[i].symbol, day.upper_bound, day.lower_bound, range_size,
        )
        return day

    def _is_valid_trading_time(self, ts: datetime) -> bool:
        p = self._params
        if p.skip_first_hour and ts.hour == p.market_open_hour:
            return False
        if p.avoid_last_half_hour and ts.hour == p.market_close_hour - 1 and ts.minute >= 30:
            return False
        return True

    def _filters_pass(self, bars: Sequence[Bar], i: int) -> bool:
        p = self._params
        if p.trend_filter and not is_strong_trend(bars, i, TREND_LOOKBACK):
            return False
        if p.range_filter and not is_range_expansion(bars, i):
            return False
        return True

    def _check_entries(self, symbol: str, bars: Sequence[Bar], i: int, day: TradingDay) -> list[Signal]:
        if day.range_size <= 0:
            return []
        bar = bars[i]
        out: list[Signal] = []
        if (
            symbol not in self._active_trades
            and not day.long_signal_emitted
            and bar.high > day.upper_bound
            and self._filters_pass(bars, i)
        ):
            day.long_signal_emitted = True
            out.append(self._open_trade(symbol, SignalSide.BUY, day, bar.time))
        if (
            symbol not in self._active_trades
            and not day.short_signal_emitted
            and bar.low < day.lower_bound
            and self._filters_pass(bars, i)
        ):
            day.short_signal_emitted = True
            out.append(self._open_trade(symbol, SignalSide.SELL, day, bar.time))
        return out

    def _open_trade(self, symbol: str, side: SignalSide, day: TradingDay, ts: datetime) -> Signal:
        p = self._params
        if side is SignalSide.BUY:
            entry = day.upper_bound
            stop = entry - day.range_size * p.stop_loss_factor
            target = entry + day.range_size * p.profit_factor
            reason = "Volatility Breakout Long"
        else:
            entry = day.lower_bound
            stop = entry + day.range_size * p.stop_loss_factor
            target = entry - day.range_size * p.profit_factor
            reason = "Volatility Breakout Short"
        qty = fixed_fractional_quantity(p.account_size, p.risk_percent, entry, stop)
        self._active_trades[symbol] = ActiveTrade(
            symbol=symbol,
            direction=side,
            entry_price=entry,
            entry_time=ts,
            stop_loss=stop,
            profit_target=target,
            quantity=qty,
        )
        logger.debug(
            "%s %s at %.5f (target %.5f, stop %.5f, size %s)", side.value, symbol, entry, target, stop, qty,
        )
        return Signal(
            symbol=symbol,
            side=side,
            suggested_price=entry,
            suggested_quantity=qty,
            timestamp=ts,
            reason=reason,
            action=SignalAction.ENTRY,
            metadata={"stop_loss": stop, "profit_target": target, "range_size": day.range_size},
        )

    def _check_exit(self, trade: ActiveTrade, bar: Bar, local_ts: datetime) -> Optional[Signal]:
        """Profit target, then stop loss, then time exit. First match only."""
        p = self._params
        is_long = trade.direction is SignalSide.BUY
        if (is_long and bar.high >= trade.profit_target) or (not is_long and bar.low <= trade.profit_target):
            price, reason = trade.profit_target, "Take Profit"
        elif (is_long and bar.low <= trade.stop_loss) or (not is_long and bar.high >= trade.stop_loss):
            price, reason = trade.stop_loss, "Stop Loss"
        elif (local_ts.hour, local_ts.minute) >= (p.exit_hour, p.exit_minute):
            price, reason = bar.close, "Time Exit"
        else:
            return None
        logger.debug("%s for %s at %.5f", reason, trade.symbol, price)
        return Signal(
            symbol=trade.symbol,
            side=trade.direction.opposite,
            suggested_price=price,
            suggested_quantity=trade.quantity,
            timestamp=bar.time,
            reason=reason,
            action=SignalAction.EXIT,
            metadata={"entry_price": trade.entry_price, "entry_time": trade.entry_time},
        )
