"""Unit tests for strategies.volatility_breakout."""

from datetime import date, datetime, timezone

import pytest
from breakout_bot.core.errors import ConfigurationError
from breakout_bot.core.types import Bar, SignalAction, SignalSide
from breakout_bot.strategies.volatility_breakout import VolatilityBreakoutStrategy

SYMBOL = "BTCUSDT"


def bar(ts, o, h, l, c, symbol=SYMBOL):
    return Bar(time=datetime.fromisoformat(ts), open=o, high=h, low=l, close=c, volume=1.0, symbol=symbol)


def two_day_bars(day2_bar):
    return [bar("2024-01-01 10:00", 100, 100, 90, 95), day2_bar]


def open_long_bars():
    # prev range 20 * 0.25 = 5 -> upper 100, lower 90; long fills at 100, stop 95, target 110
    return [
        bar("2024-01-01 10:00", 100, 110, 90, 95),
        bar("2024-01-02 10:00", 95, 99, 94, 98),
        bar("2024-01-02 11:00", 98, 101, 97, 100),
    ]


def test_breakout_long_at_upper_bound():
    s = VolatilityBreakoutStrategy(breakout_factor=0.25)
    signals = s.process_data(two_day_bars(bar("2024-01-02 10:00", 96, 140, 95, 130)))
    day = s.trading_days(SYMBOL)[date(2024, 1, 2)]
    assert day.range_size == pytest.approx(2.5)
    assert day.upper_bound == pytest.approx(98.5)
    assert day.lower_bound == pytest.approx(93.5)
    entry = signals[0]
    assert entry.side == SignalSide.BUY
    assert entry.action == SignalAction.ENTRY
    assert entry.suggested_price == pytest.approx(98.5)
    # risk 100 / stop distance 2.5
    assert entry.suggested_quantity == pytest.approx(40.0)


def test_no_signal_below_upper_bound():
    s = VolatilityBreakoutStrategy(breakout_factor=0.25)
    signals = s.process_data(two_day_bars(bar("2024-01-02 10:00", 96, 97, 94, 96)))
    assert signals == []
    assert date(2024, 1, 2) in s.trading_days(SYMBOL)


def test_stop_and_target_around_entry():
    s = VolatilityBreakoutStrategy(breakout_factor=0.25, profit_factor=2.0, stop_loss_factor=1.0)
    signals = s.process_data(open_long_bars())
    assert len(signals) == 1
    meta = signals[0].metadata
    assert meta["stop_loss"] == pytest.approx(95.0)
    assert meta["profit_target"] == pytest.approx(110.0)
    trade = s.active_trade(SYMBOL)
    assert trade is not None
    assert trade.direction == SignalSide.BUY
    assert trade.entry_price == pytest.approx(100.0)
    assert trade.quantity == pytest.approx(20.0)


def test_profit_target_wins_over_time_exit():
    s = VolatilityBreakoutStrategy()
    last = bar("2024-01-02 22:00", 108, 112, 108, 111)
    signals = s.process_data(open_long_bars() + [last])
    on_last = [sig for sig in signals if sig.timestamp == last.time]
    assert len(on_last) == 1
    assert on_last[0].side == SignalSide.SELL
    assert on_last[0].action == SignalAction.EXIT
    assert on_last[0].suggested_price == pytest.approx(110.0)
    assert on_last[0].reason == "Take Profit"
    assert s.active_trade(SYMBOL) is None


def test_profit_target_wins_over_stop_on_same_bar():
    s = VolatilityBreakoutStrategy()
    last = bar("2024-01-02 12:00", 100, 112, 90, 100)
    exit_signal = s.process_data(open_long_bars() + [last])[-1]
    assert exit_signal.reason == "Take Profit"
    assert exit_signal.suggested_price == pytest.approx(110.0)


def test_stop_loss_exit():
    s = VolatilityBreakoutStrategy()
    exit_signal = s.process_data(open_long_bars() + [bar("2024-01-02 12:00", 99, 99.5, 94, 95)])[-1]
    assert exit_signal.reason == "Stop Loss"
    assert exit_signal.side == SignalSide.SELL
    assert exit_signal.suggested_price == pytest.approx(95.0)
    assert exit_signal.suggested_quantity == pytest.approx(20.0)


def test_time_exit_at_close():
    s = VolatilityBreakoutStrategy(exit_hour=21, exit_minute=59)
    exit_signal = s.process_data(open_long_bars() + [bar("2024-01-02 22:00", 101, 102, 100, 101.5)])[-1]
    assert exit_signal.reason == "Time Exit"
    assert exit_signal.suggested_price == pytest.approx(101.5)


def test_breakout_short_symmetric():
    s = VolatilityBreakoutStrategy()
    bars = [
        bar("2024-01-01 10:00", 100, 110, 90, 95),
        bar("2024-01-02 10:00", 95, 96, 92, 93),
        bar("2024-01-02 11:00", 93, 94, 89, 90),
    ]
    signals = s.process_data(bars)
    assert len(signals) == 1
    entry = signals[0]
    assert entry.side == SignalSide.SELL
    assert entry.suggested_price == pytest.approx(90.0)
    assert entry.metadata["stop_loss"] == pytest.approx(95.0)
    assert entry.metadata["profit_target"] == pytest.approx(80.0)
    assert s.active_trade(SYMBOL).direction == SignalSide.SELL


def open_short_bars():
    # upper 100, lower 90; short fills at 90, stop 95, target 80
    return [
        bar("2024-01-01 10:00", 100, 110, 90, 95),
        bar("2024-01-02 10:00", 95, 96, 92, 93),
        bar("2024-01-02 11:00", 93, 94, 89, 90),
    ]


def test_short_take_profit_priority():
    s = VolatilityBreakoutStrategy()
    exit_signal = s.process_data(open_short_bars() + [bar("2024-01-02 12:00", 90, 96, 79, 85)])[-1]
    assert exit_signal.reason == "Take Profit"
    assert exit_signal.side == SignalSide.BUY
    assert exit_signal.action == SignalAction.EXIT
    assert exit_signal.suggested_price == pytest.approx(80.0)


def test_short_stop_loss_exit():
    s = VolatilityBreakoutStrategy()
    exit_signal = s.process_data(open_short_bars() + [bar("2024-01-02 12:00", 90, 96, 89, 95)])[-1]
    assert exit_signal.reason == "Stop Loss"
    assert exit_signal.suggested_price == pytest.approx(95.0)


def test_one_short_entry_per_day():
    s = VolatilityBreakoutStrategy()
    bars = open_short_bars() + [
        bar("2024-01-02 12:00", 90, 96, 89, 95),
        bar("2024-01-02 13:00", 95, 97, 85, 86),
    ]
    signals = s.process_data(bars)
    entries = [sig for sig in signals if sig.action == SignalAction.ENTRY]
    assert len(entries) == 1
    assert entries[0].side == SignalSide.SELL
    assert s.trading_days(SYMBOL)[date(2024, 1, 2)].short_signal_emitted is True
    assert s.active_trade(SYMBOL) is None


def test_breakout_during_open_trade_can_enter_after_exit():
    s = VolatilityBreakoutStrategy()
    bars = open_long_bars() + [
        # breaks the lower bound while long: no short, long stopped out
        bar("2024-01-02 12:00", 99, 99.5, 89, 90),
        bar("2024-01-02 13:00", 90, 91, 88, 89),
    ]
    signals = s.process_data(bars)
    assert [(sig.action, sig.side) for sig in signals] == [
        (SignalAction.ENTRY, SignalSide.BUY),
        (SignalAction.EXIT, SignalSide.SELL),
        (SignalAction.ENTRY, SignalSide.SELL),
    ]
    assert signals[1].reason == "Stop Loss"
    assert signals[2].timestamp == bars[-1].time
    assert signals[2].suggested_price == pytest.approx(90.0)


def test_one_long_entry_per_day():
    s = VolatilityBreakoutStrategy()
    bars = two_day_bars(bar("2024-01-02 10:00", 96, 140, 95, 130)) + [
        bar("2024-01-02 11:00", 130, 150, 129, 140),
        bar("2024-01-02 12:00", 140, 160, 139, 150),
    ]
    signals = s.process_data(bars)
    entries = [sig for sig in signals if sig.action == SignalAction.ENTRY and sig.side == SignalSide.BUY]
    assert len(entries) == 1
    assert s.trading_days(SYMBOL)[date(2024, 1, 2)].long_signal_emitted is True


def test_process_data_is_idempotent():
    s = VolatilityBreakoutStrategy()
    bars = open_long_bars() + [bar("2024-01-02 12:00", 99, 99.5, 94, 95)]
    assert s.process_data(bars) == s.process_data(bars)


def test_insufficient_history_returns_empty():
    assert VolatilityBreakoutStrategy().process_data([bar("2024-01-01 10:00", 100, 100, 90, 95)]) == []
    s = VolatilityBreakoutStrategy(required_bars=5)
    assert s.process_data(open_long_bars()) == []


def test_zero_range_day_has_no_entries():
    s = VolatilityBreakoutStrategy()
    bars = [bar("2024-01-01 10:00", 100, 100, 100, 100), bar("2024-01-02 10:00", 100, 105, 95, 101)]
    assert s.process_data(bars) == []


def test_atr_range():
    s = VolatilityBreakoutStrategy(use_atr=True, atr_period=2)
    bars = [
        bar("2024-01-01 09:00", 10, 12, 9, 11),
        bar("2024-01-01 10:00", 11, 13, 10, 12),
        bar("2024-01-01 11:00", 12, 14, 11, 13),
        bar("2024-01-02 09:00", 13, 13.5, 12.5, 13),
    ]
    s.process_data(bars)
    # true ranges 3, 3 -> ATR 3 -> 0.75 (high-low range would give 1.25)
    assert s.trading_days(SYMBOL)[date(2024, 1, 2)].range_size == pytest.approx(0.75)


def test_filters_block_entry_without_history():
    bars = two_day_bars(bar("2024-01-02 10:00", 96, 140, 95, 130))
    assert VolatilityBreakoutStrategy(trend_filter=True).process_data(bars) == []
    assert VolatilityBreakoutStrategy(range_filter=True).process_data(bars) == []


def test_filters_allow_entry_with_history():
    # six bars of higher highs and higher lows, range 2 each; day range 7 * 0.25 = 1.75
    day1 = [bar(f"2024-01-01 {9 + k:02d}:00", 100 + k, 101 + k, 99 + k, 100.5 + k) for k in range(6)]
    # opens at 106, upper 107.75; range 6.5 > 1.2 * 2
    breakout = bar("2024-01-02 09:00", 106, 112, 105.5, 111)
    s = VolatilityBreakoutStrategy(trend_filter=True, range_filter=True)
    signals = s.process_data(day1 + [breakout])
    assert signals[0].action == SignalAction.ENTRY
    assert signals[0].side == SignalSide.BUY
    assert signals[0].suggested_price == pytest.approx(107.75)


def test_skip_first_hour():
    s = VolatilityBreakoutStrategy(skip_first_hour=True, market_open_hour=10)
    assert s.process_data(two_day_bars(bar("2024-01-02 10:00", 96, 140, 95, 130))) == []


def test_avoid_last_half_hour():
    s = VolatilityBreakoutStrategy(avoid_last_half_hour=True, market_close_hour=16)
    assert s.process_data(two_day_bars(bar("2024-01-02 15:30", 96, 140, 95, 130))) == []
    signals = s.process_data(two_day_bars(bar("2024-01-02 15:00", 96, 140, 95, 130)))
    assert signals[0].action == SignalAction.ENTRY
    assert signals[0].side == SignalSide.BUY


def test_timezone_moves_day_boundary():
    def utc_bar(ts, o, h, l, c):
        return Bar(time=datetime.fromisoformat(ts).replace(tzinfo=timezone.utc), open=o, high=h, low=l, close=c,
                   symbol=SYMBOL)

    bars = [utc_bar("2024-01-01 14:00", 100, 100, 90, 95), utc_bar("2024-01-01 16:00", 96, 97, 95, 96)]
    tokyo = VolatilityBreakoutStrategy(timezone="Asia/Tokyo")
    tokyo.process_data(bars)
    assert date(2024, 1, 2) in tokyo.trading_days(SYMBOL)
    plain = VolatilityBreakoutStrategy()
    plain.process_data(bars)
    assert plain.trading_days(SYMBOL) == {}


def test_state_is_keyed_by_symbol():
    s = VolatilityBreakoutStrategy()
    bars = [bar("2024-01-01 10:00", 100, 100, 90, 95, "ETHUSDT"), bar("2024-01-02 10:00", 96, 97, 94, 96, "ETHUSDT")]
    s.process_data(bars)
    assert s.trading_days("ETHUSDT")
    assert s.trading_days(SYMBOL) == {}


@pytest.mark.parametrize("factor", [0.0, -0.1, 1.5])
def test_invalid_breakout_factor_rejected(factor):
    with pytest.raises(ConfigurationError):
        VolatilityBreakoutStrategy(breakout_factor=factor)


def test_initialize_rejects_without_changing_state():
    s = VolatilityBreakoutStrategy(breakout_factor=0.3)
    assert s.initialize({"breakout_factor": 2.0}) is False
    assert s.initialize({"no_such_param": 1.0}) is False
    assert s.params.breakout_factor == pytest.approx(0.3)
    assert s.initialize({"breakout_factor": 1.0, "use_atr": 1.0, "atr_period": 3.0}) is True
    assert s.params.breakout_factor == pytest.approx(1.0)
    assert s.params.use_atr is True
    assert s.params.atr_period == 3


def test_name():
    assert VolatilityBreakoutStrategy().name == "Larry Williams Volatility Breakout"
