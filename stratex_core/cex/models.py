"""
Wire models for USD-M futures orders and accounts.

Request fields are declared in the order they are signed and sent; see
`PlaceOrderRequest.to_params`.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from beartype import beartype
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from stratex_core.decimals import format_decimal, is_zero


class OrderType(str, Enum):
    LIMIT = "LIMIT"
    MARKET = "MARKET"
    STOP = "STOP"
    STOP_MARKET = "STOP_MARKET"
    TAKE_PROFIT = "TAKE_PROFIT"
    TAKE_PROFIT_MARKET = "TAKE_PROFIT_MARKET"
    TRAILING_STOP_MARKET = "TRAILING_STOP_MARKET"
    LIMIT_MAKER = "LIMIT_MAKER"


class TimeInForce(str, Enum):
    GTC = "GTC"
    IOC = "IOC"
    FOK = "FOK"
    GTX = "GTX"


class PositionSide(str, Enum):
    BOTH = "BOTH"
    LONG = "LONG"
    SHORT = "SHORT"


class WorkingType(str, Enum):
    MARK_PRICE = "MARK_PRICE"
    CONTRACT_PRICE = "CONTRACT_PRICE"


class OrderStatus(str, Enum):
    """Normalized order status exposed to callers."""

    PENDING = "pending"
    FINISHED = "finished"
    UNKNOWN = "unknown"


class VenueOrderStatus(str, Enum):
    """Raw status strings reported by the venue."""

    NEW = "NEW"
    PARTIALLY_FILLED = "PARTIALLY_FILLED"
    FILLED = "FILLED"
    CANCELED = "CANCELED"
    EXPIRED = "EXPIRED"
    NEW_INSURANCE = "NEW_INSURANCE"
    NEW_ADL = "NEW_ADL"

    @classmethod
    def _missing_(cls, value: object) -> VenueOrderStatus | None:
        if isinstance(value, str):
            return _STATUS_ALIASES.get(value.upper())
        return None

    def normalized(self) -> OrderStatus:
        if self in (VenueOrderStatus.FILLED, VenueOrderStatus.CANCELED, VenueOrderStatus.EXPIRED):
            return OrderStatus.FINISHED
        return OrderStatus.PENDING


_STATUS_ALIASES: dict[str, VenueOrderStatus] = {
    "NEW": VenueOrderStatus.NEW,
    "ACCEPTED": VenueOrderStatus.NEW,
    "PARTIALLY_FILLED": VenueOrderStatus.PARTIALLY_FILLED,
    "FILLED": VenueOrderStatus.FILLED,
    "CANCELED": VenueOrderStatus.CANCELED,
    "CANCELLED": VenueOrderStatus.CANCELED,
    "REJECTED": VenueOrderStatus.CANCELED,
    "EXPIRED": VenueOrderStatus.EXPIRED,
    "NEW_INSURANCE": VenueOrderStatus.NEW_INSURANCE,
    "NEW_ADL": VenueOrderStatus.NEW_ADL,
}


@beartype
def normalize_status(raw: str) -> OrderStatus:
    """Map a venue status string to PENDING/FINISHED; unrecognized strings map to UNKNOWN."""
    try:
        return VenueOrderStatus(raw.strip()).normalized()
    except ValueError:
        return OrderStatus.UNKNOWN


@dataclass(frozen=True)
class OrderKind:
    order_type: OrderType
    time_in_force: TimeInForce | None
    close_position: bool


@beartype
def infer_order_kind(price: Decimal | None, stop_price: Decimal | None) -> OrderKind:
    """
    Pick the order type from which prices are present.

    price set          -> LIMIT, GTC
    only stop set      -> STOP_MARKET closing the position
    neither            -> MARKET
    """
    if price is not None:
        return OrderKind(OrderType.LIMIT, TimeInForce.GTC, close_position=False)
    if stop_price is not None:
        return OrderKind(OrderType.STOP_MARKET, None, close_position=True)
    return OrderKind(OrderType.MARKET, None, close_position=False)


def _wire_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return format_decimal(value)
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


@beartype
class PlaceOrderRequest(BaseModel):
    """Signed parameters of POST /fapi/v1/order. Field declaration order is the wire order."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    symbol: str = Field(min_length=1)
    side: str = Field(pattern="^(BUY|SELL)$")
    position_side: PositionSide | None = None
    order_type: OrderType = Field(alias="type")
    reduce_only: bool | None = None
    quantity: Decimal | None = Field(default=None, gt=0)
    price: Decimal | None = Field(default=None, gt=0)
    new_client_order_id: str | None = None
    stop_price: Decimal | None = Field(default=None, gt=0)
    close_position: bool | None = None
    activation_price: Decimal | None = Field(default=None, gt=0)
    callback_rate: Decimal | None = Field(default=None, gt=0)
    time_in_force: TimeInForce | None = None
    working_type: WorkingType | None = None
    price_protect: bool | None = None

    def to_params(self) -> list[tuple[str, str]]:
        """Ordered `(name, value)` pairs, camelCase names, unset fields omitted."""
        params: list[tuple[str, str]] = []
        for name, field in type(self).model_fields.items():
            value = getattr(self, name)
            if value is None:
                continue
            params.append((field.alias or name, _wire_value(value)))
        return params


class FuturesOrder(BaseModel):
    """Order record returned by the venue after placement."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel, extra="ignore")

    order_id: int
    symbol: str
    status: str
    client_order_id: str = ""
    side: str = ""
    position_side: str = ""
    order_type: str = Field(default="", alias="type")
    time_in_force: str = ""
    orig_qty: Decimal = Decimal("0")
    executed_qty: Decimal = Decimal("0")
    cum_qty: Decimal = Decimal("0")
    cum_quote: Decimal = Decimal("0")
    avg_price: Decimal = Decimal("0")
    price: Decimal = Decimal("0")
    stop_price: Decimal = Decimal("0")
    reduce_only: bool = False
    close_position: bool = False
    working_type: str = ""
    price_protect: bool = False
    update_time: int = 0

    def to_result(self) -> OrderResult:
        return OrderResult(
            order_id=str(self.order_id),
            client_order_id=self.client_order_id,
            symbol=self.symbol,
            venue_status=self.status,
            status=normalize_status(self.status),
            filled_quantity=self.executed_qty,
            avg_price=self.avg_price,
        )


class OrderResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: str
    client_order_id: str
    symbol: str
    venue_status: str
    status: OrderStatus
    filled_quantity: Decimal
    avg_price: Decimal

    @property
    def venue_id(self) -> str:
        return self.order_id

    def details(self) -> dict[str, str]:
        return {
            "symbol": self.symbol,
            "status": self.status.value,
            "venue_status": self.venue_status,
            "filled_quantity": format_decimal(self.filled_quantity),
            "avg_price": format_decimal(self.avg_price),
        }


class AccountAsset(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel, extra="ignore")

    asset: str
    wallet_balance: Decimal = Decimal("0")
    unrealized_profit: Decimal = Decimal("0")
    margin_balance: Decimal = Decimal("0")
    available_balance: Decimal = Decimal("0")
    max_withdraw_amount: Decimal = Decimal("0")


class AccountPosition(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel, extra="ignore")

    symbol: str
    position_side: str = "BOTH"
    position_amt: Decimal = Decimal("0")
    unrealized_profit: Decimal = Decimal("0")
    isolated_margin: Decimal = Decimal("0")
    notional: Decimal = Decimal("0")
    initial_margin: Decimal = Decimal("0")
    maint_margin: Decimal = Decimal("0")
    update_time: int = 0


class AccountInfo(BaseModel):
    """Snapshot from GET /fapi/v3/account."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel, extra="ignore")

    total_wallet_balance: Decimal = Decimal("0")
    total_unrealized_profit: Decimal = Decimal("0")
    total_margin_balance: Decimal = Decimal("0")
    available_balance: Decimal = Decimal("0")
    max_withdraw_amount: Decimal = Decimal("0")
    assets: tuple[AccountAsset, ...] = ()
    positions: tuple[AccountPosition, ...] = ()

    def open_positions(self) -> list[AccountPosition]:
        return [p for p in self.positions if not is_zero(p.position_amt)]
