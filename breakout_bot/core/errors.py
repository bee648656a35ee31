"""Error types raised at the configuration and data-feed boundaries."""


class ConfigurationError(ValueError):
    """Strategy or backtest parameter out of range. Raised before any state is created."""


class FeedError(Exception):
    """Bar source returned empty or malformed data."""
