from stratex_core.dex.client import DexAggregatorClient
from stratex_core.dex.executor import DexSwapExecutor, SwapResult
from stratex_core.dex.metadata import ChainMetadataResolver, ChainTokenTable, TokenInfo, chain_name
from stratex_core.dex.models import (
    BuildRequest,
    BuiltTransaction,
    ChainMetadata,
    PermitDetails,
    PermitSingle,
    Quote,
    QuoteRequest,
)
from stratex_core.dex.sender import TransactionSender, TxReceipt, Web3TransactionSender

__all__ = [
    "BuildRequest",
    "BuiltTransaction",
    "ChainMetadata",
    "ChainMetadataResolver",
    "ChainTokenTable",
    "DexAggregatorClient",
    "DexSwapExecutor",
    "PermitDetails",
    "PermitSingle",
    "Quote",
    "QuoteRequest",
    "SwapResult",
    "TokenInfo",
    "TransactionSender",
    "TxReceipt",
    "Web3TransactionSender",
    "chain_name",
]
