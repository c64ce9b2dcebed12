"""
Unit tests for DexSwapExecutor.

Behaviors:
  B1 - human amount converted to floored base units of token_in
  B2 - no route aborts the swap before build and broadcast
  B3 - build consumes the quote's route unchanged, with sender and slippage
  B4 - build errors and chain mismatches abort before broadcast
  B5 - confirmed receipt becomes the swap result
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr
from venue_fakes import (
    BASE_CHAIN_ID,
    USDC,
    WALLET,
    WETH,
    FakeSender,
    build_result,
    dex_agg,
    metadata_payload,
    quote_result,
)

from stratex_core.config.settings import DexConfig
from stratex_core.dex.client import DexAggregatorClient
from stratex_core.dex.executor import DexSwapExecutor
from stratex_core.dex.metadata import ChainMetadataResolver, TokenInfo
from stratex_core.dex.models import BuiltTransaction, ChainMetadata, Quote
from stratex_core.executor.exceptions import (
    ChainBroadcastError,
    ConfirmationTimeoutError,
    InvalidInputError,
    VenueRejectedError,
)
from stratex_core.models.strategy import Swap


@pytest.fixture
def config() -> DexConfig:
    return DexConfig(
        base_url="https://aggregator.example",
        rpc_url="https://rpc.example",
        private_key=SecretStr("0x" + "22" * 32),
        chain_id=BASE_CHAIN_ID,
        slippage_bps=50,
    )


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock(spec=DexAggregatorClient)
    client.fetch_metadata = AsyncMock(return_value=ChainMetadata.model_validate(metadata_payload()))
    client.quote = AsyncMock(return_value=Quote.model_validate({**quote_result(), "chain_id": BASE_CHAIN_ID}))
    client.build = AsyncMock(
        return_value=BuiltTransaction.model_validate({**build_result(), "chain_id": BASE_CHAIN_ID})
    )
    return client


@pytest.fixture
def sender() -> FakeSender:
    return FakeSender()


@pytest.fixture
def executor(config: DexConfig, client: MagicMock, sender: FakeSender) -> DexSwapExecutor:
    return DexSwapExecutor(config, client, ChainMetadataResolver(client), sender)


def test_convert_amount_floors_to_base_units() -> None:
    usdc = TokenInfo(symbol="usdc", address=USDC.lower(), decimals=6)

    assert DexSwapExecutor.convert_amount(Decimal("1.1"), usdc) == 1100000
    assert DexSwapExecutor.convert_amount(Decimal("1.0000019"), usdc) == 1000001


def test_convert_amount_below_one_unit_is_invalid() -> None:
    usdc = TokenInfo(symbol="usdc", address=USDC.lower(), decimals=6)

    with pytest.raises(InvalidInputError):
        DexSwapExecutor.convert_amount(Decimal("0.0000001"), usdc)


@pytest.mark.parametrize("amount", ["0", "-2", "lots", ""])
def test_parse_amount_rejects_invalid(amount: str) -> None:
    with pytest.raises(InvalidInputError):
        DexSwapExecutor.parse_amount(amount)


@pytest.mark.asyncio
async def test_successful_swap_runs_all_stages(
    executor: DexSwapExecutor, client: MagicMock, sender: FakeSender
) -> None:
    result = await executor.execute(Swap(tokenIn="USDC", tokenOut="weth", amount="1.1"))

    quote_chain, quote_request = client.quote.call_args.args
    assert quote_chain == BASE_CHAIN_ID
    body = quote_request.to_body()
    assert body["tokenInAddr"] == USDC.lower()
    assert body["tokenOutAddr"] == WETH.lower()
    assert body["amount"] == "1100000"
    assert body["maxSplit"] == "10"
    assert body["from"] == WALLET

    build_chain, build_request = client.build.call_args.args
    assert build_chain == BASE_CHAIN_ID
    build_body = build_request.to_body()
    assert build_body["dexAgg"] == dex_agg()
    assert build_body["slippageBps"] == "50"
    assert build_body["permit"] is None
    assert build_body["permitSignature"] == ""
    assert build_body["cycles"] == []

    assert len(sender.sent) == 1
    assert result.venue_id == result.tx_hash == f"0x{1:064x}"
    assert result.block_number == 101
    assert result.amount_in_base_units == 1100000
    assert result.expected_amount_out == "420000000000000"
    assert result.details()["token_in"] == "usdc"


@pytest.mark.asyncio
async def test_no_path_aborts_before_build(executor: DexSwapExecutor, client: MagicMock, sender: FakeSender) -> None:
    client.quote.return_value = Quote.model_validate({**quote_result(exists=False), "chain_id": BASE_CHAIN_ID})

    with pytest.raises(InvalidInputError, match="no swap path"):
        await executor.execute(Swap(tokenIn="usdc", tokenOut="weth", amount="1"))

    client.build.assert_not_called()
    assert sender.sent == []


@pytest.mark.asyncio
async def test_unknown_token_never_quotes(executor: DexSwapExecutor, client: MagicMock) -> None:
    with pytest.raises(InvalidInputError, match="unknown token"):
        await executor.execute(Swap(tokenIn="usdc", tokenOut="pepe", amount="1"))

    client.quote.assert_not_called()


@pytest.mark.asyncio
async def test_same_token_is_invalid(executor: DexSwapExecutor, client: MagicMock) -> None:
    with pytest.raises(InvalidInputError):
        await executor.execute(Swap(tokenIn="usdc", tokenOut="USDC", amount="1"))

    client.quote.assert_not_called()


@pytest.mark.asyncio
async def test_build_error_aborts_before_broadcast(
    executor: DexSwapExecutor, client: MagicMock, sender: FakeSender
) -> None:
    client.build.return_value = BuiltTransaction.model_validate(
        {**build_result(error="insufficient allowance"), "chain_id": BASE_CHAIN_ID}
    )

    with pytest.raises(VenueRejectedError, match="insufficient allowance"):
        await executor.execute(Swap(tokenIn="usdc", tokenOut="weth", amount="1"))

    assert sender.sent == []


@pytest.mark.asyncio
async def test_sender_on_other_chain_is_refused(config: DexConfig, client: MagicMock) -> None:
    sender = FakeSender(chain_id=1)
    executor = DexSwapExecutor(config, client, ChainMetadataResolver(client), sender)

    with pytest.raises(ChainBroadcastError, match="chain 1"):
        await executor.execute(Swap(tokenIn="usdc", tokenOut="weth", amount="1"))

    assert sender.sent == []


@pytest.mark.asyncio
async def test_confirmation_timeout_is_not_temporary(config: DexConfig, client: MagicMock) -> None:
    sender = FakeSender(error=ConfirmationTimeoutError("0xabc", 120.0))
    executor = DexSwapExecutor(config, client, ChainMetadataResolver(client), sender)

    with pytest.raises(ConfirmationTimeoutError) as exc_info:
        await executor.execute(Swap(tokenIn="usdc", tokenOut="weth", amount="1"))

    assert exc_info.value.temporary is False


@pytest.mark.asyncio
async def test_each_swap_requests_a_fresh_quote(executor: DexSwapExecutor, client: MagicMock) -> None:
    await executor.execute(Swap(tokenIn="usdc", tokenOut="weth", amount="1"))
    await executor.execute(Swap(tokenIn="usdc", tokenOut="weth", amount="1"))

    assert client.quote.await_count == 2
    assert client.fetch_metadata.await_count == 1
