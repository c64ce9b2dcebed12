"""
Strategy input models.

Item-level values (quantities, prices, amounts, sides) are kept as text on
purpose: the executors validate and normalize them, so one malformed item
fails on its own instead of rejecting the whole strategy.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

from beartype import beartype
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from stratex_core.executor.exceptions import InvalidInputError

_CODE_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


class Order(BaseModel):
    """One CEX leg item: a perpetual futures order on `{TOKEN}{QUOTE}`."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    token: str = Field(description="Base token symbol, any case (e.g. eth)")
    side: str = Field(description="buy or sell")
    quantity: str = Field(alias="amount", description="Order size in base asset, decimal text")
    price: str | None = Field(default=None, description="Limit price, decimal text")
    stop_price: str | None = Field(default=None, alias="stopPrice", description="Stop trigger price")
    position: str | None = Field(default=None, description="Informational position tag (long/short)")

    @field_validator("price", "stop_price", "position", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def describe(self) -> str:
        return f"{self.side} {self.quantity} {self.token}"


class Swap(BaseModel):
    """One DEX leg item: swap `amount` of `token_in` into `token_out`."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    token_in: str = Field(alias="tokenIn")
    token_out: str = Field(alias="tokenOut")
    amount: str = Field(description="Human-readable amount of token_in, decimal text")

    def describe(self) -> str:
        return f"{self.amount} {self.token_in}->{self.token_out}"


class Strategy(BaseModel):
    """
    Validated execution plan with two independent legs.

    Immutable once constructed and consumed once by the dispatcher.
    """

    model_config = ConfigDict(frozen=True)

    orders: tuple[Order, ...] = ()
    swaps: tuple[Swap, ...] = ()

    def is_empty(self) -> bool:
        return not self.orders and not self.swaps

    @classmethod
    @beartype
    def from_document(cls, document: Mapping[str, Any]) -> Strategy:
        """
        Build a Strategy from the agent's document shape.

        {"exchanges": {"binance": {"orders": [...]}, "eisen": {"swaps": [...]}}}

        Missing or null legs are treated as empty.
        """
        exchanges = document.get("exchanges") or {}
        if not isinstance(exchanges, Mapping):
            raise InvalidInputError("strategy", "'exchanges' must be an object")

        cex_leg = exchanges.get("binance") or {}
        dex_leg = exchanges.get("eisen") or {}
        if not isinstance(cex_leg, Mapping) or not isinstance(dex_leg, Mapping):
            raise InvalidInputError("strategy", "each exchange leg must be an object")

        try:
            return cls(
                orders=tuple(Order.model_validate(o) for o in cex_leg.get("orders") or ()),
                swaps=tuple(Swap.model_validate(s) for s in dex_leg.get("swaps") or ()),
            )
        except ValidationError as err:
            raise InvalidInputError("strategy", str(err)) from err

    @classmethod
    @beartype
    def from_json(cls, text: str) -> Strategy:
        """Parse the agent's JSON text, tolerating a surrounding Markdown code fence."""
        fenced = _CODE_FENCE.match(text)
        payload = fenced.group(1) if fenced else text
        try:
            document = json.loads(payload)
        except json.JSONDecodeError as err:
            raise InvalidInputError("strategy", f"not valid JSON: {err}") from err
        if not isinstance(document, dict):
            raise InvalidInputError("strategy", "document root must be an object")
        return cls.from_document(document)
