from stratex_core.config.loader import ConfigError, read_settings_file, resolve_env_references
from stratex_core.config.settings import (
    BINANCE_FUTURES_TESTNET_URL,
    BINANCE_FUTURES_URL,
    CexConfig,
    DexConfig,
    EngineConfig,
    LoggingConfig,
    PairPrecision,
)

__all__ = [
    "BINANCE_FUTURES_TESTNET_URL",
    "BINANCE_FUTURES_URL",
    "CexConfig",
    "ConfigError",
    "DexConfig",
    "EngineConfig",
    "LoggingConfig",
    "PairPrecision",
    "read_settings_file",
    "resolve_env_references",
]
