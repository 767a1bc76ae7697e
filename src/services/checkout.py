from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from api import endpoints
from api.client import ApiClient, ApiError
from api.models import CartLine, Order
from services.base import Notifier, OperationResult, Service
from services.cart import CartSynchronizer
from utils.logger import get_logger

_logger = get_logger(__name__)


@dataclass(frozen=True)
class ShippingInfo:
    first_name: str = ""
    last_name: str = ""
    address: str = ""

    def trimmed(self) -> ShippingInfo:
        return ShippingInfo(
            self.first_name.strip(), self.last_name.strip(), self.address.strip()
        )


def validate(info: ShippingInfo, lines: Sequence[CartLine]) -> Optional[str]:
    """First failing precondition of an order, or None."""
    if not info.first_name.strip():
        return "First name is required"
    if not info.last_name.strip():
        return "Last name is required"
    if not info.address.strip():
        return "Address is required"
    if not lines:
        return "Your cart is empty"
    return None


class OrderSubmissionFlow(Service):
    """
    Turns the cart plus the shipping form into an order.
    Success clears the cart silently so the order confirmation is the only
    notification the user sees.
    """

    def __init__(
        self,
        client: ApiClient,
        cart: CartSynchronizer,
        notify: Optional[Notifier] = None,
    ) -> None:
        super().__init__(notify)
        self._client = client
        self._cart = cart
        self.last_order: Optional[Order] = None

    async def submit(
        self, info: ShippingInfo, lines: Optional[Sequence[CartLine]] = None
    ) -> OperationResult:
        if lines is None:
            lines = self._cart.items

        problem = validate(info, lines)
        if problem:
            self._error(problem)
            return OperationResult.fail(problem)

        if self.busy:
            return OperationResult.fail("Order is already being placed")

        info = info.trimmed()
        with self._track():
            try:
                order = await endpoints.create_order(
                    self._client,
                    info.first_name,
                    info.last_name,
                    info.address,
                    [(line.product_id, line.quantity) for line in lines],
                )
            except ApiError as e:
                _logger.error(f"Error placing order: {e.message}")
                message = e.message or "Failed to place order. Please try again."
                self._error(message)
                return OperationResult.fail(message)

            await self._cart.clear(silent=True)

        self.last_order = order
        self._info("Order placed successfully!")
        return OperationResult.ok(order)
