"""Abstract strategy: configure, then turn accumulated bar history into signals."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence

from breakout_bot.core.types import Bar, Signal


class BaseStrategy(ABC):
    """Strategy consumes the full bar history seen so far and returns zero or more signals."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def initialize(self, parameters: Mapping[str, Any]) -> bool:
        """
        Apply parameters. Returns False (and leaves the strategy unchanged)
        if any parameter is out of range.
        """
        pass

    @abstractmethod
    def process_data(self, bars: Sequence[Bar]) -> list[Signal]:
        """Evaluate history ordered by time ascending. Too little history returns []."""
        pass
