from __future__ import annotations

from decimal import Decimal

from beartype import beartype
from pydantic import BaseModel, ConfigDict

from stratex_core.config.settings import DexConfig
from stratex_core.decimals import format_decimal, to_base_units, to_decimal
from stratex_core.dex.client import DexAggregatorClient
from stratex_core.dex.metadata import ChainMetadataResolver, TokenInfo
from stratex_core.dex.models import BuildRequest, BuiltTransaction, PermitSingle, Quote, QuoteRequest
from stratex_core.dex.sender import TransactionSender, TxReceipt
from stratex_core.executor.exceptions import ChainBroadcastError, InvalidInputError, VenueRejectedError
from stratex_core.logs.structlog import logger
from stratex_core.models.strategy import Swap
from stratex_core.models.venue import Venue


class SwapResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    tx_hash: str
    chain_id: int
    token_in: str
    token_out: str
    amount_in: Decimal
    amount_in_base_units: int
    expected_amount_out: str
    block_number: int

    @property
    def venue_id(self) -> str:
        return self.tx_hash

    def details(self) -> dict[str, str]:
        return {
            "chain_id": str(self.chain_id),
            "token_in": self.token_in,
            "token_out": self.token_out,
            "amount_in": format_decimal(self.amount_in),
            "amount_in_base_units": str(self.amount_in_base_units),
            "expected_amount_out": self.expected_amount_out,
            "block_number": str(self.block_number),
        }


class DexSwapExecutor:
    """
    Runs one swap through amount conversion -> quote -> build -> broadcast.

    Each stage consumes exactly the output of the previous one. A quote is
    used for a single build and never kept; any failure aborts the swap and
    nothing is retried.
    """

    venue = Venue.DEX

    @beartype
    def __init__(
        self,
        config: DexConfig,
        client: DexAggregatorClient,
        resolver: ChainMetadataResolver,
        sender: TransactionSender,
    ) -> None:
        self.config = config
        self.client = client
        self.resolver = resolver
        self.sender = sender
        self.logger = logger.bind(component=self.__class__.__name__)

    async def chain_id(self) -> int:
        if self.config.chain_id is not None:
            return self.config.chain_id
        return await self.sender.chain_id()

    @staticmethod
    @beartype
    def parse_amount(amount: str) -> Decimal:
        try:
            value = to_decimal(amount)
        except (ValueError, TypeError) as e:
            raise InvalidInputError("amount", str(e)) from e
        if value <= 0:
            raise InvalidInputError("amount", f"{amount!r} is not positive")
        return value

    @staticmethod
    @beartype
    def convert_amount(amount: Decimal, token: TokenInfo) -> int:
        """Human amount -> integer base units of `token`, floored."""
        base_units = to_base_units(amount, token.decimals)
        if base_units <= 0:
            raise InvalidInputError(
                "amount", f"{format_decimal(amount)} {token.symbol} is below one base unit ({token.decimals} decimals)"
            )
        return base_units

    async def fetch_quote(self, chain_id: int, token_in: TokenInfo, token_out: TokenInfo, base_units: int) -> Quote:
        request = QuoteRequest(
            token_in_addr=token_in.address,
            token_out_addr=token_out.address,
            amount=str(base_units),
            max_split=str(self.config.max_split),
            max_edge=str(self.config.max_edge),
            with_cycle=self.config.with_cycle,
            dex_id_filter=list(self.config.dex_id_filter),
            from_address=self.sender.address,
        )
        quote = await self.client.quote(chain_id, request)
        if not quote.has_route():
            raise InvalidInputError("route", f"no swap path from {token_in.symbol} to {token_out.symbol}")
        return quote

    async def build_transaction(
        self,
        quote: Quote,
        permit: PermitSingle | None = None,
        permit_signature: str = "",
    ) -> BuiltTransaction:
        request = BuildRequest.from_quote(
            quote,
            from_address=self.sender.address,
            slippage_bps=self.config.slippage_bps,
            permit=permit,
            permit_signature=permit_signature,
        )
        built = await self.client.build(quote.chain_id, request)
        if built.error:
            raise VenueRejectedError(self.venue.value, 200, built.error)
        if built.chain_id != quote.chain_id:
            raise ChainBroadcastError(f"built for chain {built.chain_id} but quoted on chain {quote.chain_id}")
        return built

    async def broadcast(self, built: BuiltTransaction) -> TxReceipt:
        sender_chain = await self.sender.chain_id()
        if sender_chain != built.chain_id:
            raise ChainBroadcastError(
                f"sender is connected to chain {sender_chain}, transaction targets chain {built.chain_id}"
            )
        return await self.sender.send_and_wait(
            built,
            timeout_s=self.config.confirmation_timeout_s,
            poll_s=self.config.confirmation_poll_s,
        )

    async def execute(self, swap: Swap) -> SwapResult:
        """Run the whole pipeline for one swap and return its confirmed result."""
        amount = self.parse_amount(swap.amount)
        chain_id = await self.chain_id()
        table = await self.resolver.resolve(chain_id)
        token_in = table.token(swap.token_in)
        token_out = table.token(swap.token_out)
        if token_in.address == token_out.address:
            raise InvalidInputError("swap", f"token_in and token_out are both {token_in.symbol}")

        prefix = f"{token_in.symbol}->{token_out.symbol}@{self.venue.value}_{table.name}"
        base_units = self.convert_amount(amount, token_in)
        self.logger.info(f"{prefix} - quoting {base_units} base units from {self.sender.address}")

        quote = await self.fetch_quote(chain_id, token_in, token_out, base_units)
        self.logger.info(f"{prefix} - route found, expected out {quote.expected_amount_out}")

        built = await self.build_transaction(quote)
        self.logger.info(f"{prefix} - built call to {built.to}, value {built.value}, gas limit {built.gas_limit}")

        receipt = await self.broadcast(built)
        self.logger.info(f"{prefix} - confirmed {receipt.tx_hash} in block {receipt.block_number}")

        return SwapResult(
            tx_hash=receipt.tx_hash,
            chain_id=chain_id,
            token_in=token_in.symbol,
            token_out=token_out.symbol,
            amount_in=amount,
            amount_in_base_units=base_units,
            expected_amount_out=quote.expected_amount_out,
            block_number=receipt.block_number,
        )
