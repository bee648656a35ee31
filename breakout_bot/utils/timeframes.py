"""Timeframe string to minutes conversion."""

_UNIT_MINUTES = {"m": 1, "h": 60, "d": 60 * 24, "w": 60 * 24 * 7}


def timeframe_minutes(tf: str) -> int:
    """Convert Binance-style timeframe (e.g. '5m', '1h', '1d', '1w') to minutes."""
    tf = tf.strip().lower()
    unit, count = tf[-1:], tf[:-1]
    if unit not in _UNIT_MINUTES or not count.isdigit() or int(count) <= 0:
        raise ValueError(f"Unsupported timeframe: {tf}")
    return int(count) * _UNIT_MINUTES[unit]
