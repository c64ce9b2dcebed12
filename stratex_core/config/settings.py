from __future__ import annotations

from pathlib import Path
from typing import Final

from beartype import beartype
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError

from stratex_core.config.loader import ConfigError, read_settings_file

BINANCE_FUTURES_URL: Final[str] = "https://fapi.binance.com"
BINANCE_FUTURES_TESTNET_URL: Final[str] = "https://testnet.binancefuture.com"


class PairPrecision(BaseModel):
    model_config = ConfigDict(frozen=True)
    quantity: int | None = Field(default=None, ge=0, le=18)
    price: int | None = Field(default=None, ge=0, le=18)


@beartype
class CexConfig(BaseModel):
    model_config = ConfigDict(frozen=True)
    base_url: str = BINANCE_FUTURES_URL
    order_path: str = "/fapi/v1/order"
    account_path: str = "/fapi/v3/account"
    time_path: str = "/fapi/v1/time"
    api_key: SecretStr | None = None
    api_secret: SecretStr | None = None
    recv_window_ms: int = Field(default=5000, ge=1, le=60000)
    quote_asset: str = Field(default="USDT", min_length=1)
    quantity_precision: int = Field(default=3, ge=0, le=18)
    price_precision: int = Field(default=2, ge=0, le=18)
    precision_overrides: dict[str, PairPrecision] = Field(default_factory=dict)
    sync_server_time: bool = True
    request_timeout_s: float = Field(default=10.0, gt=0)

    @classmethod
    def testnet(cls, **overrides: object) -> CexConfig:
        return cls(base_url=BINANCE_FUTURES_TESTNET_URL, **overrides)  # type: ignore[arg-type]

    def quantity_precision_for(self, pair: str) -> int:
        override = self.precision_overrides.get(pair)
        if override is not None and override.quantity is not None:
            return override.quantity
        return self.quantity_precision

    def price_precision_for(self, pair: str) -> int:
        override = self.precision_overrides.get(pair)
        if override is not None and override.price is not None:
            return override.price
        return self.price_precision


@beartype
class DexConfig(BaseModel):
    model_config = ConfigDict(frozen=True)
    base_url: str = Field(min_length=1)
    rpc_url: str = Field(min_length=1)
    private_key: SecretStr
    chain_id: int | None = Field(default=None, gt=0)
    slippage_bps: int = Field(default=100, ge=1, le=10000)
    max_split: int = Field(default=10, ge=1)
    max_edge: int = Field(default=3, ge=1)
    with_cycle: bool = False
    dex_id_filter: list[str] = Field(default_factory=list)
    request_timeout_s: float = Field(default=15.0, gt=0)
    confirmation_timeout_s: float = Field(default=120.0, gt=0)
    confirmation_poll_s: float = Field(default=2.0, gt=0)


class LoggingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)
    service_name: str = "stratex_core"
    log_level: str = "INFO"
    log_dir: str | None = "./logs"


@beartype
class EngineConfig(BaseModel):
    model_config = ConfigDict(frozen=True)
    cex: CexConfig | None = None
    dex: DexConfig | None = None
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> EngineConfig:
        data = read_settings_file(path)
        try:
            return cls.model_validate(data)
        except ValidationError as err:
            raise ConfigError(f"Invalid engine config in {path}: {err}") from err
