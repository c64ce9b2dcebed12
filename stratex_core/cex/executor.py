from __future__ import annotations

from decimal import Decimal

from beartype import beartype

from stratex_core.cex.models import AccountInfo, FuturesOrder, OrderResult, PlaceOrderRequest, infer_order_kind
from stratex_core.cex.signer import RequestSigner
from stratex_core.cex.symbol import to_pair
from stratex_core.config.settings import CexConfig
from stratex_core.decimals import normalize_amount
from stratex_core.executor.exceptions import AuthenticationError, InvalidInputError, VenueRejectedError
from stratex_core.logs.structlog import logger
from stratex_core.models.side import OrderSide
from stratex_core.models.strategy import Order
from stratex_core.models.venue import Venue
from stratex_core.transport.rest import RestClient


class CexOrderExecutor:
    """
    Places perpetual futures orders on the centralized venue.

    Each order goes through: validate and normalize -> infer order kind ->
    sign -> POST. Validation failures raise InvalidInputError before any
    network call.
    """

    venue = Venue.CEX

    @beartype
    def __init__(self, config: CexConfig, rest: RestClient, signer: RequestSigner | None) -> None:
        self.config = config
        self.rest = rest
        self.signer = signer
        self.logger = logger.bind(component=self.__class__.__name__)

    def _url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}{path}"

    def _require_signer(self) -> RequestSigner:
        if self.signer is None:
            raise AuthenticationError("CEX credentials are not configured")
        return self.signer

    @beartype
    def build_request(self, order: Order) -> PlaceOrderRequest:
        """
        Validate an order and turn it into venue parameters.

        Quantity is truncated toward zero to the pair's quantity precision,
        prices to its price precision. Orders closing the whole position
        (stop-market) are sent without a quantity.
        """
        try:
            pair = to_pair(order.token, self.config.quote_asset)
        except ValueError as e:
            raise InvalidInputError("token", str(e)) from e

        try:
            side = OrderSide.parse(order.side)
        except ValueError as e:
            raise InvalidInputError("side", str(e)) from e

        try:
            quantity = normalize_amount(order.quantity, self.config.quantity_precision_for(pair))
        except (ValueError, TypeError) as e:
            raise InvalidInputError("quantity", str(e)) from e

        price_precision = self.config.price_precision_for(pair)
        price = self._parse_price("price", order.price, price_precision)
        stop_price = self._parse_price("stop_price", order.stop_price, price_precision)

        kind = infer_order_kind(price, stop_price)
        return PlaceOrderRequest(
            symbol=pair,
            side=side.to_venue(),
            order_type=kind.order_type,
            quantity=None if kind.close_position else quantity,
            price=price,
            stop_price=stop_price,
            close_position=kind.close_position,
            time_in_force=kind.time_in_force,
        )

    @staticmethod
    def _parse_price(name: str, value: str | None, precision: int) -> Decimal | None:
        if value is None:
            return None
        try:
            return normalize_amount(value, precision)
        except (ValueError, TypeError) as e:
            raise InvalidInputError(name, str(e)) from e

    async def submit(self, request: PlaceOrderRequest) -> OrderResult:
        signer = self._require_signer()
        signed = signer.sign(request.to_params())
        response = await self.rest.post_form(
            self._url(self.config.order_path),
            signed.encoded(),
            headers=signer.headers(),
        )
        payload = response.json()
        try:
            order = FuturesOrder.model_validate(payload)
        except ValueError as e:
            raise VenueRejectedError(self.venue.value, response.status, f"unexpected order payload: {payload}") from e
        return order.to_result()

    async def execute(self, order: Order) -> OrderResult:
        """Place one order and return the venue's normalized result."""
        request = self.build_request(order)
        prefix = f"{request.symbol}@{self.venue.value}_{request.side.lower()}"
        self.logger.info(
            f"{prefix} - placing {request.order_type.value} order, quantity {request.quantity}, "
            f"price {request.price}, stop {request.stop_price}"
        )
        result = await self.submit(request)
        self.logger.info(f"{prefix} - order {result.order_id} accepted with status {result.venue_status}")
        return result

    async def fetch_account(self) -> AccountInfo:
        """Signed read of balances and positions."""
        signer = self._require_signer()
        signed = signer.sign([])
        response = await self.rest.get(
            self._url(self.config.account_path),
            params=signed.encoded(),
            headers=signer.headers(),
        )
        return AccountInfo.model_validate(response.json())
