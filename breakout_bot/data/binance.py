"""
Binance USDT-M futures klines as a bar feed, with retry on rate limits.
"""

from __future__ import annotations
import logging
import time
from datetime import datetime
from functools import wraps
from typing import Any, List, Optional

import pandas as pd

from binance.client import Client
from binance.exceptions import BinanceAPIException, BinanceRequestException

from breakout_bot.core.errors import FeedError
from breakout_bot.core.types import Bar
from breakout_bot.data.feeds import BarFeed, TimeBound, bars_from_frame
from breakout_bot.utils.timeframes import timeframe_minutes

logger = logging.getLogger("breakout_bot.data.binance")

KLINE_COLUMNS = [
    "open_time", "open", "high", "low", "close", "volume",
    "close_time", "quote_av", "num_trades", "tb_base_av", "tb_quote_av", "ignore",
]


def retry_on_rate_limit(max_retries: int = 3, base_delay: float = 1.0):
    """Decorator: retry on 429 or 418 (rate limit) with exponential backoff."""
    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return f(*args, **kwargs)
                except BinanceAPIException as e:
                    if e.status_code in (429, 418) and attempt < max_retries - 1:
                        delay = base_delay * (2 ** attempt)
                        logger.warning("Rate limited, retry in %.1fs (attempt %d)", delay, attempt + 1)
                        time.sleep(delay)
                    else:
                        raise
        return wrapped
    return decorator


def _as_binance_time(bound: TimeBound) -> Optional[str]:
    if bound is None:
        return None
    if isinstance(bound, datetime):
        return str(int(pd.Timestamp(bound).timestamp() * 1000))
    return str(bound)


class BinanceBarFeed(BarFeed):
    """Public kline history; keys are optional for this endpoint."""

    def __init__(
        self,
        api_key: str = "",
        api_secret: str = "",
        testnet: bool = False,
        limit: int = 1000,
        client: Optional[Any] = None,
    ):
        if client is None:
            client = Client(api_key or None, api_secret or None, testnet=testnet)
            logger.info("Binance Futures feed: using %s", "TESTNET" if testnet else "LIVE")
        self._client = client
        self.limit = limit

    @retry_on_rate_limit(max_retries=3, base_delay=1.0)
    def _klines(self, symbol: str, interval: str, start: TimeBound, end: TimeBound) -> list:
        if start is None:
            return self._client.futures_klines(symbol=symbol, interval=interval, limit=self.limit)
        return self._client.futures_historical_klines(
            symbol, interval, _as_binance_time(start), _as_binance_time(end), limit=self.limit,
        )

    def fetch(self, symbol: str, timeframe: str, start: TimeBound = None, end: TimeBound = None) -> List[Bar]:
        try:
            timeframe_minutes(timeframe)
            raw = self._klines(symbol, timeframe, start, end)
            if not raw:
                raise FeedError(f"no klines returned for {symbol} {timeframe}")
            df = pd.DataFrame(raw, columns=KLINE_COLUMNS)
            df["time"] = pd.to_datetime(df["open_time"], unit="ms", utc=True)
            bars = bars_from_frame(df, symbol)
        except (BinanceAPIException, BinanceRequestException, FeedError, OSError, ValueError) as e:
            logger.error("Kline fetch failed for %s %s: %s", symbol, timeframe, e)
            return []
        logger.info("Fetched %d %s bars for %s", len(bars), timeframe, symbol)
        return bars
