"""Risk: fixed-fractional position sizing and lot rounding."""

from breakout_bot.risk.sizing import fixed_fractional_quantity, floor_to_decimals, quantity_decimals

__all__ = ["fixed_fractional_quantity", "floor_to_decimals", "quantity_decimals"]
