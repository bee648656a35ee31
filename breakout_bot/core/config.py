"""
Load configuration from config.yaml and .env. API keys only from env.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def _parse_factors(raw: Any) -> list[float]:
    if isinstance(raw, str):
        return [float(x) for x in raw.split(",") if x.strip()]
    return [float(x) for x in raw or []]


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_bool(key: str, default: bool = False) -> bool:
        return os.getenv(key, str(default)).lower() in ("true", "1", "yes")

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    api = data.get("api", {})
    strategy = data.get("strategy", {})
    risk = data.get("risk", {})
    backtest = data.get("backtest", {})
    logging_cfg = data.get("logging", {})

    use_testnet = env_bool("USE_TESTNET", api.get("use_testnet", False))
    # Dedicated testnet/mainnet keys can live side by side in .env; USE_TESTNET picks one pair
    prefix = "BINANCE_TESTNET" if use_testnet else "BINANCE_MAINNET"
    binance_api_key = env(f"{prefix}_API_KEY") or env("BINANCE_API_KEY", api.get("binance_api_key", ""))
    binance_api_secret = env(f"{prefix}_API_SECRET") or env("BINANCE_API_SECRET", api.get("binance_api_secret", ""))

    data_file = env("DATA_FILE", backtest.get("data_file") or "")

    return Config(
        # API (env only; never put keys in config.yaml). Klines are public, so keys are optional.
        binance_api_key=binance_api_key,
        binance_api_secret=binance_api_secret,
        use_testnet=use_testnet,
        symbol=env("SYMBOL", strategy.get("symbol") or "BTCUSDT").upper(),
        timeframe=env("TIMEFRAME", strategy.get("timeframe") or "1h"),
        # Strategy
        breakout_factor=env_float("BREAKOUT_FACTOR", strategy.get("breakout_factor", 0.25)),
        profit_factor=env_float("PROFIT_FACTOR", strategy.get("profit_factor", 2.0)),
        stop_loss_factor=env_float("STOP_LOSS_FACTOR", strategy.get("stop_loss_factor", 1.0)),
        required_bars=env_int("REQUIRED_BARS", strategy.get("required_bars", 2)),
        exclude_first_n_bars=env_int("EXCLUDE_FIRST_N_BARS", strategy.get("exclude_first_n_bars", 1)),
        use_atr=env_bool("USE_ATR", strategy.get("use_atr", False)),
        atr_period=env_int("ATR_PERIOD", strategy.get("atr_period", 14)),
        exit_hour=env_int("EXIT_HOUR", strategy.get("exit_hour", 21)),
        exit_minute=env_int("EXIT_MINUTE", strategy.get("exit_minute", 59)),
        trend_filter=strategy.get("trend_filter", False),
        range_filter=strategy.get("range_filter", False),
        skip_first_hour=strategy.get("skip_first_hour", False),
        avoid_last_half_hour=strategy.get("avoid_last_half_hour", False),
        timezone=env("TZ_NAME", strategy.get("timezone") or "") or None,
        # Risk
        account_size=env_float("ACCOUNT_SIZE", risk.get("account_size", 10000.0)),
        risk_percent=env_float("RISK_PERCENT", risk.get("risk_percent", 0.01)),
        # Backtest
        data_file=Path(data_file) if data_file else None,
        backtest_start=backtest.get("start_date"),
        backtest_end=backtest.get("end_date"),
        backtest_initial_capital=env_float("INITIAL_CAPITAL", backtest.get("initial_capital", 10000.0)),
        commission_rate=env_float("COMMISSION_RATE", backtest.get("commission_rate", 0.001)),
        settlement=env("SETTLEMENT", backtest.get("settlement") or "net").lower(),
        breakout_factors=_parse_factors(env("BREAKOUT_FACTORS") or backtest.get("breakout_factors", [0.3, 0.4, 0.5])),
        # Logging
        log_level=logging_cfg.get("level", "INFO"),
        log_dir=Path(logging_cfg.get("log_dir", "logs")),
        log_file=logging_cfg.get("log_file", "breakout_bot.log"),
    )


class Config:
    """Unified configuration. CLI flags may override data_file and symbol after load."""

    __slots__ = (
        "binance_api_key", "binance_api_secret", "use_testnet", "symbol", "timeframe",
        "breakout_factor", "profit_factor", "stop_loss_factor", "required_bars", "exclude_first_n_bars",
        "use_atr", "atr_period", "exit_hour", "exit_minute", "trend_filter", "range_filter",
        "skip_first_hour", "avoid_last_half_hour", "timezone",
        "account_size", "risk_percent",
        "data_file", "backtest_start", "backtest_end", "backtest_initial_capital",
        "commission_rate", "settlement", "breakout_factors",
        "log_level", "log_dir", "log_file",
    )

    def __init__(
        self,
        binance_api_key: str = "",
        binance_api_secret: str = "",
        use_testnet: bool = False,
        symbol: str = "BTCUSDT",
        timeframe: str = "1h",
        breakout_factor: float = 0.25,
        profit_factor: float = 2.0,
        stop_loss_factor: float = 1.0,
        required_bars: int = 2,
        exclude_first_n_bars: int = 1,
        use_atr: bool = False,
        atr_period: int = 14,
        exit_hour: int = 21,
        exit_minute: int = 59,
        trend_filter: bool = False,
        range_filter: bool = False,
        skip_first_hour: bool = False,
        avoid_last_half_hour: bool = False,
        timezone: Optional[str] = None,
        account_size: float = 10000.0,
        risk_percent: float = 0.01,
        data_file: Optional[Path] = None,
        backtest_start: Optional[str] = None,
        backtest_end: Optional[str] = None,
        backtest_initial_capital: float = 10000.0,
        commission_rate: float = 0.001,
        settlement: str = "net",
        breakout_factors: Optional[list[float]] = None,
        log_level: str = "INFO",
        log_dir: Path = None,
        log_file: str = "breakout_bot.log",
    ):
        self.binance_api_key = binance_api_key
        self.binance_api_secret = binance_api_secret
        self.use_testnet = use_testnet
        self.symbol = symbol
        self.timeframe = timeframe
        self.breakout_factor = breakout_factor
        self.profit_factor = profit_factor
        self.stop_loss_factor = stop_loss_factor
        self.required_bars = required_bars
        self.exclude_first_n_bars = exclude_first_n_bars
        self.use_atr = use_atr
        self.atr_period = atr_period
        self.exit_hour = exit_hour
        self.exit_minute = exit_minute
        self.trend_filter = trend_filter
        self.range_filter = range_filter
        self.skip_first_hour = skip_first_hour
        self.avoid_last_half_hour = avoid_last_half_hour
        self.timezone = timezone
        self.account_size = account_size
        self.risk_percent = risk_percent
        self.data_file = Path(data_file) if data_file else None
        self.backtest_start = backtest_start
        self.backtest_end = backtest_end
        self.backtest_initial_capital = backtest_initial_capital
        self.commission_rate = commission_rate
        self.settlement = settlement
        self.breakout_factors = list(breakout_factors) if breakout_factors else [0.3, 0.4, 0.5]
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file

    def strategy_params(self) -> dict[str, Any]:
        """Parameter dict accepted by VolatilityBreakoutStrategy."""
        return {
            "breakout_factor": self.breakout_factor,
            "profit_factor": self.profit_factor,
            "stop_loss_factor": self.stop_loss_factor,
            "required_bars": self.required_bars,
            "exclude_first_n_bars": self.exclude_first_n_bars,
            "use_atr": self.use_atr,
            "atr_period": self.atr_period,
            "exit_hour": self.exit_hour,
            "exit_minute": self.exit_minute,
            "trend_filter": self.trend_filter,
            "range_filter": self.range_filter,
            "skip_first_hour": self.skip_first_hour,
            "avoid_last_half_hour": self.avoid_last_half_hour,
            "timezone": self.timezone,
            "account_size": self.account_size,
            "risk_percent": self.risk_percent,
        }
