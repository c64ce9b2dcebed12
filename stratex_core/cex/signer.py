"""
HMAC-SHA256 request signing for the futures REST API.

The canonical string is `key=value&...` in exactly the order the caller
supplies, followed by `timestamp` and `recvWindow`. The signature is the hex
HMAC of that exact string and is appended last. Callers must pass an ordered
sequence of pairs: a dict would make the signed byte order an accident of
construction.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Final
from urllib.parse import urlencode

from beartype import beartype
from pydantic import BaseModel, ConfigDict, SecretStr

from stratex_core.config.settings import CexConfig
from stratex_core.executor.exceptions import AuthenticationError, SigningError
from stratex_core.logs.structlog import logger
from stratex_core.transport.rest import RestClient

API_KEY_HEADER: Final[str] = "X-MBX-APIKEY"
RESERVED_PARAMS: Final[frozenset[str]] = frozenset({"timestamp", "recvWindow", "signature"})


class ApiCredentials(BaseModel):
    """API key/secret pair. Held for one execution call, never persisted or logged."""

    model_config = ConfigDict(frozen=True)

    api_key: SecretStr
    api_secret: SecretStr

    @classmethod
    @beartype
    def from_config(cls, config: CexConfig) -> ApiCredentials:
        api_key = config.api_key.get_secret_value() if config.api_key else ""
        api_secret = config.api_secret.get_secret_value() if config.api_secret else ""
        if not api_key.strip():
            raise AuthenticationError("missing CEX API key")
        if not api_secret.strip():
            raise AuthenticationError("missing CEX API secret")
        return cls(api_key=SecretStr(api_key), api_secret=SecretStr(api_secret))


class ServerClock:
    """Millisecond clock corrected by the offset between the venue and the local host."""

    @beartype
    def __init__(self, offset_ms: int = 0, now_fn: Callable[[], float] = time.time) -> None:
        self.offset_ms = offset_ms
        self._now_fn = now_fn
        self.logger = logger.bind(component=self.__class__.__name__)

    def local_ms(self) -> int:
        return int(self._now_fn() * 1000)

    def now_ms(self) -> int:
        return self.local_ms() + self.offset_ms

    async def sync(self, rest: RestClient, url: str) -> int:
        """Fetch the venue's serverTime once and store the offset against the round-trip midpoint."""
        sent = self.local_ms()
        payload = (await rest.get(url)).json()
        received = self.local_ms()
        server_time = int(payload["serverTime"])
        self.offset_ms = server_time - (sent + received) // 2
        self.logger.info(f"server clock synchronized, offset {self.offset_ms}ms")
        return self.offset_ms


@dataclass(frozen=True)
class SignedRequest:
    params: tuple[tuple[str, str], ...]
    query: str
    signature: str

    def encoded(self) -> str:
        """Wire form: canonical query with the signature appended as the final parameter."""
        if not self.query:
            return f"signature={self.signature}"
        return f"{self.query}&signature={self.signature}"


class RequestSigner:
    """Signs ordered parameter sets with the account's secret key."""

    @beartype
    def __init__(self, credentials: ApiCredentials, clock: ServerClock, recv_window_ms: int = 5000) -> None:
        self._credentials = credentials
        self.clock = clock
        self.recv_window_ms = recv_window_ms
        self.logger = logger.bind(component=self.__class__.__name__)

    @beartype
    def canonical_query(self, params: Sequence[tuple[str, str]]) -> str:
        return urlencode(list(params))

    @beartype
    def signature_for(self, query: str) -> str:
        secret = self._credentials.api_secret.get_secret_value()
        if not secret:
            raise SigningError("cannot sign with an empty secret")
        return hmac.new(secret.encode("utf-8"), query.encode("utf-8"), hashlib.sha256).hexdigest()

    @beartype
    def sign(self, params: Sequence[tuple[str, str]]) -> SignedRequest:
        """
        Append timestamp and recvWindow, then sign the canonical query.

        Args:
            params: Request parameters in their documented order.

        Returns:
            The signed request; `encoded()` gives the exact wire string.

        Raises:
            SigningError: On duplicate or reserved parameter names, or an unusable secret.
        """
        names = [name for name, _ in params]
        if len(set(names)) != len(names):
            raise SigningError(f"duplicate parameter names: {names}")
        reserved = RESERVED_PARAMS.intersection(names)
        if reserved:
            raise SigningError(f"reserved parameter names supplied by caller: {sorted(reserved)}")

        ordered: tuple[tuple[str, str], ...] = (
            *params,
            ("timestamp", str(self.clock.now_ms())),
            ("recvWindow", str(self.recv_window_ms)),
        )
        query = self.canonical_query(ordered)
        signature = self.signature_for(query)
        self.logger.debug(f"signed request with params {names}")
        return SignedRequest(params=ordered, query=query, signature=signature)

    def headers(self) -> dict[str, str]:
        return {API_KEY_HEADER: self._credentials.api_key.get_secret_value()}
