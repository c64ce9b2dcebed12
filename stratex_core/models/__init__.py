from stratex_core.models.results import ExecutionReport, ExecutionResult
from stratex_core.models.side import OrderSide
from stratex_core.models.strategy import Order, Strategy, Swap
from stratex_core.models.venue import Venue

__all__ = [
    "ExecutionReport",
    "ExecutionResult",
    "Order",
    "OrderSide",
    "Strategy",
    "Swap",
    "Venue",
]
