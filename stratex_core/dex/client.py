from __future__ import annotations

from typing import Any

from beartype import beartype
from pydantic import ValidationError

from stratex_core.dex.models import BuildRequest, BuiltTransaction, ChainMetadata, Quote, QuoteRequest
from stratex_core.executor.exceptions import VenueRejectedError
from stratex_core.logs.structlog import logger
from stratex_core.transport.rest import RestClient, RestResponse


class DexAggregatorClient:
    """HTTP client for the aggregator's metadata, quote and build endpoints."""

    @beartype
    def __init__(self, rest: RestClient, base_url: str) -> None:
        self.rest = rest
        self.base_url = base_url.rstrip("/")
        self.logger = logger.bind(component=self.__class__.__name__)

    def _url(self, chain_id: int, path: str) -> str:
        return f"{self.base_url}/chains/{chain_id}/{path}"

    def _result(self, response: RestResponse) -> dict[str, Any]:
        payload = response.json()
        result = payload.get("result") if isinstance(payload, dict) else None
        if not isinstance(result, dict):
            raise VenueRejectedError(self.rest.venue, response.status, f"missing 'result' object: {response.body}")
        return result

    @beartype
    async def fetch_metadata(self, chain_id: int) -> ChainMetadata:
        response = await self.rest.get(self._url(chain_id, "metadata"))
        result = self._result(response)
        try:
            return ChainMetadata.model_validate(result)
        except ValidationError as e:
            raise VenueRejectedError(self.rest.venue, response.status, f"malformed chain metadata: {e}") from e

    @beartype
    async def quote(self, chain_id: int, request: QuoteRequest) -> Quote:
        response = await self.rest.post_json(self._url(chain_id, "v2/quote"), request.to_body())
        result = self._result(response)
        try:
            return Quote.model_validate({**result, "chain_id": chain_id})
        except ValidationError as e:
            raise VenueRejectedError(self.rest.venue, response.status, f"malformed quote: {e}") from e

    @beartype
    async def build(self, chain_id: int, request: BuildRequest) -> BuiltTransaction:
        response = await self.rest.post_json(self._url(chain_id, "v2/build"), request.to_body())
        result = self._result(response)
        try:
            return BuiltTransaction.model_validate({**result, "chain_id": chain_id})
        except (ValidationError, ValueError) as e:
            raise VenueRejectedError(self.rest.venue, response.status, f"malformed build response: {e}") from e
