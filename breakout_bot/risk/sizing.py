"""
Fixed-fractional position sizing.
Position size = (account_size * risk_percent) / stop_distance, so a stop hit loses risk_percent of the account.
"""

from __future__ import annotations
import logging
import math

logger = logging.getLogger("breakout_bot.risk")

MIN_STOP_DISTANCE = 1e-5


def quantity_decimals(price: float) -> int:
    """Lot precision by price tier: 5 below 100, 4 below 1000, 3 above."""
    if price >= 1000:
        return 3
    if price >= 100:
        return 4
    return 5


def floor_to_decimals(qty: float, decimals: int) -> float:
    """Round down to the given number of decimals."""
    if qty <= 0:
        return 0.0
    scale = 10 ** decimals
    # 0.29 * 1e5 == 28999.999...; round before flooring
    return round(math.floor(round(qty * scale, 9)) / scale, decimals)


def fixed_fractional_quantity(
    account_size: float,
    risk_percent: float,
    entry_price: float,
    stop_price: float,
) -> float:
    """
    Quantity that loses account_size * risk_percent if the stop is hit.
    A zero stop distance is clamped to MIN_STOP_DISTANCE.
    """
    risk_amount = account_size * risk_percent
    dist = abs(entry_price - stop_price)
    if dist < MIN_STOP_DISTANCE:
        logger.debug("Stop distance %.8f clamped to %.5f", dist, MIN_STOP_DISTANCE)
        dist = MIN_STOP_DISTANCE
    return floor_to_decimals(risk_amount / dist, quantity_decimals(entry_price))
