from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import aiohttp
from beartype import beartype
from pydantic import SecretStr
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import TimeExhausted, Web3Exception

from stratex_core.dex.models import BuiltTransaction
from stratex_core.executor.exceptions import (
    AuthenticationError,
    ChainBroadcastError,
    ConfirmationTimeoutError,
    NetworkOrTimeoutError,
)
from stratex_core.logs.structlog import logger


@dataclass(frozen=True)
class TxReceipt:
    tx_hash: str
    block_number: int
    gas_used: int
    status: int


@runtime_checkable
class TransactionSender(Protocol):
    """Signs and broadcasts built transactions from a single account."""

    @property
    def address(self) -> str: ...

    async def chain_id(self) -> int: ...

    async def send_and_wait(self, tx: BuiltTransaction, timeout_s: float, poll_s: float) -> TxReceipt: ...


class Web3TransactionSender:
    """
    TransactionSender over a JSON-RPC node.

    The signing key is held by an eth-account LocalAccount and never leaves
    this object. Nonces come from the node's pending count, so transactions
    from one sender must be sent one at a time.
    """

    @beartype
    def __init__(self, w3: AsyncWeb3, private_key: SecretStr) -> None:
        self._w3 = w3
        try:
            self._account = w3.eth.account.from_key(private_key.get_secret_value())
        except (ValueError, TypeError):
            # the key itself must not end up in the message
            raise AuthenticationError("invalid DEX signing key") from None
        self._chain_id: int | None = None
        self.logger = logger.bind(component=self.__class__.__name__)

    @classmethod
    @beartype
    def from_rpc_url(cls, rpc_url: str, private_key: SecretStr, timeout_s: float = 15.0) -> Web3TransactionSender:
        provider = AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": aiohttp.ClientTimeout(total=timeout_s)})
        return cls(AsyncWeb3(provider), private_key)

    @property
    def address(self) -> str:
        return str(self._account.address)

    async def close(self) -> None:
        """Release the provider's cached HTTP sessions."""
        await self._w3.provider.disconnect()

    async def chain_id(self) -> int:
        if self._chain_id is None:
            try:
                self._chain_id = int(await self._w3.eth.chain_id)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise NetworkOrTimeoutError(f"could not read chain id from RPC node: {e}") from e
        return self._chain_id

    async def _prepare(self, tx: BuiltTransaction) -> dict[str, Any]:
        to = Web3.to_checksum_address(tx.to)
        params: dict[str, Any] = {
            "from": self._account.address,
            "to": to,
            "value": tx.value,
            "data": tx.data,
            "chainId": tx.chain_id,
            "nonce": await self._w3.eth.get_transaction_count(self._account.address, "pending"),
            "gasPrice": await self._w3.eth.gas_price,
        }
        params["gas"] = tx.gas_limit or await self._w3.eth.estimate_gas(params)
        return params

    async def send_and_wait(self, tx: BuiltTransaction, timeout_s: float, poll_s: float) -> TxReceipt:
        """
        Sign, broadcast and wait for the receipt.

        Raises:
            ChainBroadcastError: The node refused the transaction or it reverted.
            ConfirmationTimeoutError: No receipt within `timeout_s`; the transaction may still land.
            NetworkOrTimeoutError: The RPC node could not be reached.
        """
        try:
            params = await self._prepare(tx)
            signed = self._account.sign_transaction(params)
            tx_hash = Web3.to_hex(await self._w3.eth.send_raw_transaction(signed.raw_transaction))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkOrTimeoutError(f"RPC node unreachable: {e}") from e
        except (Web3Exception, ValueError) as e:
            raise ChainBroadcastError(f"node refused transaction: {e}") from e
        self.logger.info(f"chain {tx.chain_id} - broadcast {tx_hash} nonce {params['nonce']} gas {params['gas']}")

        try:
            receipt = await self._w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=timeout_s, poll_latency=poll_s
            )
        except TimeExhausted as e:
            raise ConfirmationTimeoutError(tx_hash, timeout_s) from e
        except (aiohttp.ClientError, asyncio.TimeoutError, Web3Exception) as e:
            # the transaction is already broadcast
            raise NetworkOrTimeoutError(
                f"RPC failure while waiting for {tx_hash}: {e}", temporary=False
            ) from e

        status = int(receipt["status"])
        result = TxReceipt(
            tx_hash=tx_hash,
            block_number=int(receipt["blockNumber"]),
            gas_used=int(receipt["gasUsed"]),
            status=status,
        )
        if status != 1:
            raise ChainBroadcastError("transaction reverted", tx_hash=tx_hash)
        return result
