"""
Exception hierarchy for strategy execution.

Every failure that reaches an ExecutionResult is an ExecutionError carrying
its ErrorKind and whether the condition is temporary. Temporary errors are
the ones a caller may choose to retry; the core itself never retries.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    AUTHENTICATION = "authentication"
    INVALID_INPUT = "invalid_input"
    VENUE_REJECTED = "venue_rejected"
    NETWORK_OR_TIMEOUT = "network_or_timeout"
    CHAIN_BROADCAST_FAILED = "chain_broadcast_failed"


class ExecutionError(Exception):
    """Base exception for all execution errors."""

    kind: ErrorKind = ErrorKind.VENUE_REJECTED

    def __init__(self, message: str, temporary: bool = False) -> None:
        self.message = message
        self.temporary = temporary
        super().__init__(message)


class AuthenticationError(ExecutionError):
    """Raised when credentials are missing or the venue refuses the signature."""

    kind = ErrorKind.AUTHENTICATION


class SigningError(AuthenticationError):
    """Raised when a request cannot be signed locally."""


class InvalidInputError(ExecutionError):
    """Raised before any network call when an order or swap is malformed."""

    kind = ErrorKind.INVALID_INPUT

    def __init__(self, subject: str, reason: str) -> None:
        self.subject = subject
        self.reason = reason
        super().__init__(f"Invalid input for {subject}: {reason}")


class VenueRejectedError(ExecutionError):
    """Raised when a venue answers with a non-2xx status or an error payload."""

    kind = ErrorKind.VENUE_REJECTED

    def __init__(
        self,
        venue: str,
        status: int,
        body: str,
        code: int | None = None,
        temporary: bool = False,
    ) -> None:
        self.venue = venue
        self.status = status
        self.body = body
        self.code = code
        code_part = f" code={code}" if code is not None else ""
        super().__init__(f"{venue} rejected request: HTTP {status}{code_part}: {body}", temporary=temporary)


class NetworkOrTimeoutError(ExecutionError):
    """Raised when a venue cannot be reached or does not answer in time."""

    kind = ErrorKind.NETWORK_OR_TIMEOUT

    def __init__(self, message: str, temporary: bool = True) -> None:
        super().__init__(message, temporary=temporary)


class ConfirmationTimeoutError(NetworkOrTimeoutError):
    """Raised when a broadcast transaction is not confirmed within the wait bound.

    Not temporary: the transaction may still be included later, so a blind
    retry could execute the swap twice.
    """

    def __init__(self, tx_hash: str, timeout_seconds: float) -> None:
        self.tx_hash = tx_hash
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"transaction {tx_hash} not confirmed after {timeout_seconds}s, outcome unknown",
            temporary=False,
        )


class ChainBroadcastError(ExecutionError):
    """Raised when a transaction is rejected by the node, dropped, or reverted."""

    kind = ErrorKind.CHAIN_BROADCAST_FAILED

    def __init__(self, reason: str, tx_hash: str | None = None) -> None:
        self.reason = reason
        self.tx_hash = tx_hash
        suffix = f" (tx {tx_hash})" if tx_hash else ""
        super().__init__(f"Broadcast failed: {reason}{suffix}")
