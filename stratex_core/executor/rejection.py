"""
RejectionClassifier: turn venue error replies into classified ExecutionErrors.

AUTHENTICATION -> bad or missing key, bad signature
TRANSIENT      -> rate limited, venue unavailable, timestamp outside the receive window
FATAL          -> everything else (bad symbol, insufficient balance, invalid quantity)
"""

from __future__ import annotations

import json
from enum import Enum

from stratex_core.executor.exceptions import (
    AuthenticationError,
    ExecutionError,
    VenueRejectedError,
)

_RATE_LIMIT_STATUSES = frozenset({418, 429})
_AUTH_STATUSES = frozenset({401, 403})

# -1003 too many requests, -1015 too many orders
_RATE_LIMIT_CODES = frozenset({-1003, -1015})
# -1001 disconnected, -1007 backend timeout, -1021 timestamp outside recvWindow
_TEMPORARY_CODES = frozenset({-1001, -1007, -1021})
# -1002 unauthorized, -1022 invalid signature, -2014 bad key format, -2015 rejected key
_AUTH_CODES = frozenset({-1002, -1022, -2014, -2015})


class RejectionSeverity(str, Enum):
    FATAL = "fatal"
    TRANSIENT = "transient"


class RejectionClassifier:
    """Classify venue replies and execution errors."""

    @staticmethod
    def extract_code(body: str) -> int | None:
        """Return the numeric venue error code from a JSON error body, if any."""
        try:
            payload = json.loads(body)
        except (TypeError, ValueError):
            return None
        if not isinstance(payload, dict):
            return None
        code = payload.get("code")
        if isinstance(code, bool) or not isinstance(code, int):
            return None
        return code

    @staticmethod
    def from_response(venue: str, status: int, body: str) -> ExecutionError:
        """
        Build the exception for a non-2xx reply, keeping the raw body.

        HTTP 429/418 and rate-limit codes -> temporary VenueRejectedError
        HTTP 5xx and disconnect/timeout codes -> temporary VenueRejectedError
        HTTP 401/403 and key/signature codes -> AuthenticationError
        anything else -> permanent VenueRejectedError
        """
        code = RejectionClassifier.extract_code(body)

        if status in _AUTH_STATUSES or code in _AUTH_CODES:
            return AuthenticationError(f"{venue} refused credentials: HTTP {status}: {body}")

        temporary = (
            status in _RATE_LIMIT_STATUSES
            or status >= 500
            or code in _RATE_LIMIT_CODES
            or code in _TEMPORARY_CODES
        )
        return VenueRejectedError(venue, status, body, code=code, temporary=temporary)

    @staticmethod
    def classify(exc: Exception) -> RejectionSeverity:
        """
        Return RejectionSeverity for the given exception.

        ExecutionErrors flagged temporary -> TRANSIENT
        Other ExecutionErrors -> FATAL
        Unknown exceptions -> FATAL (the core never retries unclassified failures)
        """
        if isinstance(exc, ExecutionError) and exc.temporary:
            return RejectionSeverity.TRANSIENT
        return RejectionSeverity.FATAL
