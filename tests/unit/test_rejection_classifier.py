"""
Unit tests for RejectionClassifier and the error taxonomy.

Behaviors:
  B1 - venue replies mapped to authentication / temporary / permanent errors, raw body kept
  B2 - FATAL vs TRANSIENT severity for callers layering retries
"""

from __future__ import annotations

import pytest

from stratex_core.executor.exceptions import (
    AuthenticationError,
    ChainBroadcastError,
    ConfirmationTimeoutError,
    ErrorKind,
    InvalidInputError,
    NetworkOrTimeoutError,
    SigningError,
    VenueRejectedError,
)
from stratex_core.executor.rejection import RejectionClassifier, RejectionSeverity


class TestFromResponse:
    @pytest.mark.parametrize(
        "status, body",
        [
            (429, '{"code": -1003, "msg": "Too many requests"}'),
            (418, "banned"),
            (400, '{"code": -1015, "msg": "Too many new orders"}'),
            (502, "Bad Gateway"),
            (400, '{"code": -1021, "msg": "Timestamp for this request is outside of the recvWindow."}'),
        ],
    )
    def test_temporary_rejections(self, status: int, body: str) -> None:
        error = RejectionClassifier.from_response("cex", status, body)

        assert isinstance(error, VenueRejectedError)
        assert error.temporary is True
        assert error.body == body

    @pytest.mark.parametrize(
        "status, body",
        [
            (400, '{"code": -1121, "msg": "Invalid symbol."}'),
            (400, '{"code": -2019, "msg": "Margin is insufficient."}'),
            (404, "not found"),
        ],
    )
    def test_permanent_rejections(self, status: int, body: str) -> None:
        error = RejectionClassifier.from_response("cex", status, body)

        assert isinstance(error, VenueRejectedError)
        assert error.temporary is False
        assert error.kind == ErrorKind.VENUE_REJECTED

    @pytest.mark.parametrize(
        "status, body",
        [
            (401, "unauthorized"),
            (403, "forbidden"),
            (400, '{"code": -1022, "msg": "Signature for this request is not valid."}'),
            (400, '{"code": -2015, "msg": "Invalid API-key, IP, or permissions for action."}'),
        ],
    )
    def test_authentication_rejections(self, status: int, body: str) -> None:
        error = RejectionClassifier.from_response("cex", status, body)

        assert isinstance(error, AuthenticationError)
        assert error.kind == ErrorKind.AUTHENTICATION

    def test_extract_code(self) -> None:
        assert RejectionClassifier.extract_code('{"code": -1121}') == -1121
        assert RejectionClassifier.extract_code('{"code": "x"}') is None
        assert RejectionClassifier.extract_code("<html>") is None


class TestSeverity:
    @pytest.mark.parametrize(
        "exc",
        [
            InvalidInputError("quantity", "zero"),
            VenueRejectedError("cex", 400, "bad symbol"),
            ConfirmationTimeoutError("0xabc", 60.0),
            ChainBroadcastError("reverted", tx_hash="0xabc"),
            SigningError("no secret"),
            ValueError("unknown"),
        ],
    )
    def test_fatal(self, exc: Exception) -> None:
        assert RejectionClassifier.classify(exc) == RejectionSeverity.FATAL

    @pytest.mark.parametrize(
        "exc",
        [
            NetworkOrTimeoutError("connection reset"),
            VenueRejectedError("cex", 429, "slow down", temporary=True),
        ],
    )
    def test_transient(self, exc: Exception) -> None:
        assert RejectionClassifier.classify(exc) == RejectionSeverity.TRANSIENT


def test_error_kinds() -> None:
    assert SigningError("x").kind == ErrorKind.AUTHENTICATION
    assert ConfirmationTimeoutError("0x1", 1.0).kind == ErrorKind.NETWORK_OR_TIMEOUT
    assert ChainBroadcastError("reverted").kind == ErrorKind.CHAIN_BROADCAST_FAILED
    assert InvalidInputError("amount", "zero").subject == "amount"
