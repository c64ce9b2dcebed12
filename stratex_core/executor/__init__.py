"""
Error taxonomy shared by the CEX and DEX executors.
"""

from stratex_core.executor.exceptions import (
    AuthenticationError,
    ChainBroadcastError,
    ConfirmationTimeoutError,
    ErrorKind,
    ExecutionError,
    InvalidInputError,
    NetworkOrTimeoutError,
    SigningError,
    VenueRejectedError,
)
from stratex_core.executor.rejection import RejectionClassifier, RejectionSeverity

__all__ = [
    "ErrorKind",
    "ExecutionError",
    "AuthenticationError",
    "SigningError",
    "InvalidInputError",
    "VenueRejectedError",
    "NetworkOrTimeoutError",
    "ConfirmationTimeoutError",
    "ChainBroadcastError",
    "RejectionClassifier",
    "RejectionSeverity",
]
