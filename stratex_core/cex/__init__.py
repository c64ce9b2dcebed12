from stratex_core.cex.executor import CexOrderExecutor
from stratex_core.cex.models import (
    AccountInfo,
    OrderResult,
    OrderStatus,
    OrderType,
    PlaceOrderRequest,
    TimeInForce,
    infer_order_kind,
    normalize_status,
)
from stratex_core.cex.signer import ApiCredentials, RequestSigner, ServerClock, SignedRequest
from stratex_core.cex.symbol import to_pair

__all__ = [
    "AccountInfo",
    "ApiCredentials",
    "CexOrderExecutor",
    "OrderResult",
    "OrderStatus",
    "OrderType",
    "PlaceOrderRequest",
    "RequestSigner",
    "ServerClock",
    "SignedRequest",
    "TimeInForce",
    "infer_order_kind",
    "normalize_status",
    "to_pair",
]
