"""
Request and response bodies of the swap aggregator API.

The quote's routing graph (`dexAgg`) is kept as the raw mapping returned by
the aggregator and handed back to the build endpoint untouched, so nothing
in the route is lost or re-encoded between the two calls.
"""

from __future__ import annotations

from typing import Any

from beartype import beartype
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _camel_config(**extra: Any) -> ConfigDict:
    return ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel, **extra)


class TokenEntry(BaseModel):
    model_config = _camel_config(extra="ignore")

    address: str
    symbol: str
    decimals: int = Field(ge=0, le=255)


class ChainMetadata(BaseModel):
    model_config = _camel_config(extra="ignore")

    id: int
    native_symbol: str = ""
    tokens: tuple[TokenEntry, ...] = ()


class QuoteRequest(BaseModel):
    model_config = _camel_config()

    token_in_addr: str
    token_out_addr: str
    amount: str = Field(pattern=r"^[1-9][0-9]*$", description="Base units, decimal text")
    max_split: str = "10"
    max_edge: str = "3"
    with_cycle: bool = False
    dex_id_filter: list[str] = Field(default_factory=list)
    custom_tokens: str | None = None
    from_address: str | None = Field(default=None, alias="from")

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class Quote(BaseModel):
    """A route for one swap attempt, bound to the chain it was requested on."""

    model_config = _camel_config(extra="ignore")

    chain_id: int = Field(exclude=True)
    is_swap_path_exists: bool = False
    dex_agg: dict[str, Any] | None = None
    cexes: list[dict[str, Any]] = Field(default_factory=list)

    def has_route(self) -> bool:
        return self.is_swap_path_exists and bool(self.dex_agg)

    @property
    def expected_amount_out(self) -> str:
        if not self.dex_agg:
            return "0"
        return str(self.dex_agg.get("expectedAmountOut", "0"))


class PermitDetails(BaseModel):
    model_config = _camel_config()

    token: str
    amount: str
    expiration: int = Field(ge=0)
    nonce: int = Field(ge=0)


class PermitSingle(BaseModel):
    model_config = _camel_config()

    details: PermitDetails
    spender: str
    sig_deadline: str


class BuildRequest(BaseModel):
    model_config = _camel_config()

    from_address: str = Field(alias="from")
    slippage_bps: str = Field(pattern=r"^[0-9]+$")
    permit: PermitSingle | None = None
    permit_signature: str = ""
    dex_agg: dict[str, Any]
    cycles: list[str] = Field(default_factory=list)

    @classmethod
    @beartype
    def from_quote(
        cls,
        quote: Quote,
        from_address: str,
        slippage_bps: int,
        permit: PermitSingle | None = None,
        permit_signature: str = "",
    ) -> BuildRequest:
        if not quote.has_route() or quote.dex_agg is None:
            raise ValueError("cannot build a transaction from a quote without a route")
        return cls(
            from_address=from_address,
            slippage_bps=str(slippage_bps),
            permit=permit,
            permit_signature=permit_signature,
            dex_agg=quote.dex_agg,
        )

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def _parse_quantity(value: Any) -> int:
    """Accept JSON numbers, decimal strings and 0x-prefixed hex strings."""
    if isinstance(value, bool):
        raise ValueError("boolean is not a quantity")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.lower().startswith("0x"):
            return int(text, 16)
        return int(text)
    raise ValueError(f"unsupported quantity: {value!r}")


class BuiltTransaction(BaseModel):
    """Ready-to-sign call returned by the build endpoint; broadcast at most once."""

    model_config = _camel_config(extra="ignore")

    chain_id: int = Field(exclude=True)
    from_address: str = Field(alias="from")
    to: str
    value: int = 0
    data: str
    gas_limit: int = 0
    estimated_gas: int = 0
    error: str | None = None

    @field_validator("value", "gas_limit", "estimated_gas", mode="before")
    @classmethod
    def parse_quantity(cls, v: Any) -> int:
        if v is None:
            return 0
        return _parse_quantity(v)

    @field_validator("error", mode="before")
    @classmethod
    def blank_error_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v
