from stratex_core import decimals
from stratex_core.dispatcher import LegExecutor, StrategyDispatcher
from stratex_core.executor import (
    AuthenticationError,
    ChainBroadcastError,
    ErrorKind,
    ExecutionError,
    InvalidInputError,
    NetworkOrTimeoutError,
    VenueRejectedError,
)
from stratex_core.factory import EngineFactory
from stratex_core.models import ExecutionReport, ExecutionResult, Order, OrderSide, Strategy, Swap, Venue

__all__ = [
    "AuthenticationError",
    "ChainBroadcastError",
    "EngineFactory",
    "ErrorKind",
    "ExecutionError",
    "ExecutionReport",
    "ExecutionResult",
    "InvalidInputError",
    "LegExecutor",
    "NetworkOrTimeoutError",
    "Order",
    "OrderSide",
    "Strategy",
    "StrategyDispatcher",
    "Swap",
    "Venue",
    "VenueRejectedError",
    "decimals",
]
