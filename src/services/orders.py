from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from api import endpoints
from api.client import ApiClient, ApiError
from api.models import Order
from services.base import Notifier, OperationResult, Service, error_message
from utils.logger import get_logger

_logger = get_logger(__name__)

CANCELLABLE_STATUSES = frozenset({"confirmed", "processing"})


def is_cancellable(status: str) -> bool:
    """The one cancellation eligibility rule, case-insensitive."""
    return (status or "").strip().lower() in CANCELLABLE_STATUSES


def expected_delivery(order: Order) -> date:
    """
    Cosmetic delivery estimate: order date plus 2-7 days.

    Not sourced from the server and not a promise. Seeded from the order id so
    the same order shows the same date on every view.
    """
    days = random.Random(order.id).randint(2, 7)
    return order.created_at.date() + timedelta(days=days)


@dataclass(frozen=True)
class OrderEntry:
    order: Order
    expected_delivery: date
    cancellable: bool


class OrderHistory(Service):
    """Past orders of the signed in user, annotated for display."""

    def __init__(self, client: ApiClient, notify: Optional[Notifier] = None) -> None:
        super().__init__(notify)
        self._client = client
        self.orders: List[Order] = []
        self.error: Optional[str] = None

    @property
    def entries(self) -> List[OrderEntry]:
        return [
            OrderEntry(o, expected_delivery(o), is_cancellable(o.status))
            for o in self.orders
        ]

    def reset(self) -> None:
        self.orders = []
        self.error = None

    def find(self, order_id: str) -> Optional[Order]:
        for order in self.orders:
            if order.id == order_id:
                return order
        return None

    async def fetch_orders(self) -> OperationResult:
        self.error = None
        with self._track():
            try:
                orders = await endpoints.list_orders(self._client)
            except (ApiError, ValueError) as e:
                _logger.error(f"Error fetching orders: {e}")
                self.error = error_message(e, "Failed to load orders")
                self._error("Failed to load orders. Please try again.")
                return OperationResult.fail(self.error)

        self.orders = orders
        return OperationResult.ok(orders)

    async def retry(self) -> OperationResult:
        return await self.fetch_orders()

    async def cancel(self, order_id: str) -> OperationResult:
        """
        Ask the server to cancel, then refetch the whole list rather than
        patching the one order's status.
        """
        known = self.find(order_id)
        if known and not is_cancellable(known.status):
            message = f"Order #{known.order_number} can no longer be cancelled"
            self._error(message)
            return OperationResult.fail(message)

        with self._track():
            try:
                await endpoints.cancel_order(self._client, order_id)
            except ApiError as e:
                _logger.error(f"Error cancelling order {order_id}: {e.message}")
                message = e.message or "Failed to cancel order. Please try again."
                self._error(message)
                return OperationResult.fail(message)

        self._info(
            "Order cancelled successfully! "
            "Refund will be processed within 3-5 business days."
        )
        await self.fetch_orders()
        return OperationResult.ok()
