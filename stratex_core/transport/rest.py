from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any

import aiohttp
from beartype import beartype

from stratex_core.executor.exceptions import NetworkOrTimeoutError, VenueRejectedError
from stratex_core.executor.rejection import RejectionClassifier
from stratex_core.logs.structlog import logger

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class RestResponse:
    venue: str
    status: int
    body: str

    def json(self) -> Any:
        try:
            return json.loads(self.body)
        except ValueError as e:
            raise VenueRejectedError(self.venue, self.status, f"unexpected non-JSON response: {self.body}") from e


class RestClient:
    """
    Thin aiohttp wrapper shared by venue executors.

    Every call carries a bounded total timeout. Transport failures become
    NetworkOrTimeoutError; non-2xx replies are classified by
    RejectionClassifier and raised with the raw body attached.
    """

    @beartype
    def __init__(self, session: aiohttp.ClientSession, venue: str, timeout_s: float = 10.0) -> None:
        self._session = session
        self.venue = venue
        self.timeout = aiohttp.ClientTimeout(total=timeout_s)
        self.logger = logger.bind(component=self.__class__.__name__, venue=venue)

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: str | None = None,
        data: str | None = None,
        json_body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> RestResponse:
        """Send one request; `params` and `data` are pre-encoded so their byte order is preserved."""
        try:
            async with self._session.request(
                method,
                url,
                params=params,
                data=data,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            ) as resp:
                status = resp.status
                body = await resp.text()
        except asyncio.TimeoutError as e:
            raise NetworkOrTimeoutError(
                f"{self.venue} {method} {url} timed out after {self.timeout.total}s"
            ) from e
        except aiohttp.ClientError as e:
            raise NetworkOrTimeoutError(f"{self.venue} {method} {url} failed: {e}") from e

        self.logger.debug(f"{method} {url} -> HTTP {status}")
        if not 200 <= status < 300:
            raise RejectionClassifier.from_response(self.venue, status, body)
        return RestResponse(venue=self.venue, status=status, body=body)

    async def get(
        self, url: str, *, params: str | None = None, headers: dict[str, str] | None = None
    ) -> RestResponse:
        return await self.request("GET", url, params=params, headers=headers)

    async def post_form(self, url: str, body: str, headers: dict[str, str] | None = None) -> RestResponse:
        merged = {"Content-Type": FORM_CONTENT_TYPE, **(headers or {})}
        return await self.request("POST", url, data=body, headers=merged)

    async def post_json(self, url: str, payload: Any, headers: dict[str, str] | None = None) -> RestResponse:
        merged = {"accept": "application/json", **(headers or {})}
        return await self.request("POST", url, json_body=payload, headers=merged)
