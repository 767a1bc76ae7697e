import os
import sys
import unittest
from dataclasses import replace
from datetime import datetime, timedelta, timezone

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from api.models import Order, OrderItem, Product, ShippingAddress  # noqa: E402
from fake_backend import SEED_PRODUCTS, StorefrontTestCase  # noqa: E402
from services.checkout import ShippingInfo  # noqa: E402
from services.orders import (  # noqa: E402
    OrderEntry,
    expected_delivery,
    is_cancellable,
)
from views.scr_orders import order_detail_markdown  # noqa: E402

CABLE = Product.from_json(SEED_PRODUCTS["p-cable"])


def _order(order_id: str, created_at: datetime) -> Order:
    return Order(
        id=order_id,
        order_number=order_id,
        status="confirmed",
        total_amount=0,
        items=(),
        shipping_address=ShippingAddress("", "", ""),
        created_at=created_at,
    )


class OrderRulesTestCase(unittest.TestCase):
    def test_is_cancellable(self):
        for status in ("confirmed", "processing", "Confirmed", "PROCESSING"):
            self.assertTrue(is_cancellable(status), status)
        for status in ("shipped", "delivered", "cancelled", "Cancelled", "", None):
            self.assertFalse(is_cancellable(status), status)

    def test_expected_delivery_is_stable_and_in_range(self):
        created = datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)
        for n in range(50):
            order = _order(f"o-{n}", created)
            first = expected_delivery(order)
            self.assertEqual(first, expected_delivery(order))
            self.assertGreaterEqual(first, created.date() + timedelta(days=2))
            self.assertLessEqual(first, created.date() + timedelta(days=7))

    def test_detail_escapes_pipes_in_product_names(self):
        created = datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)
        order = replace(
            _order("o-7", created),
            total_amount=1500,
            items=(OrderItem("Cable | 2m", 3), OrderItem("Hub", 1)),
        )
        entry = OrderEntry(order, expected_delivery(order), True)

        md = order_detail_markdown(entry)

        self.assertIn("| Product | Qty |\n| :--- | ---: |", md)
        self.assertIn("| Cable \\| 2m | 3 |", md)
        self.assertIn("| Hub | 1 |", md)
        self.assertTrue(md.endswith("**Total:** ₹1,500"))


class OrderHistoryTestCase(StorefrontTestCase):
    async def _place_order(self):
        await self.state.cart.add_item(CABLE)
        result = await self.state.checkout.submit(
            ShippingInfo("Ada", "Lovelace", "London")
        )
        self.assertTrue(result)
        self.notes.clear()
        return result.value

    async def test_fetch_orders(self):
        await self.sign_in()
        placed = await self._place_order()

        history = self.state.orders
        result = await history.fetch_orders()

        self.assertTrue(result)
        self.assertEqual([o.id for o in history.orders], [placed.id])
        entry = history.entries[0]
        self.assertTrue(entry.cancellable)
        self.assertEqual(entry.expected_delivery, expected_delivery(placed))
        self.assertIs(history.find(placed.id), history.orders[0])
        self.assertIsNone(history.find("nope"))

    async def test_cancel_refetches(self):
        await self.sign_in()
        placed = await self._place_order()
        history = self.state.orders
        await history.fetch_orders()

        result = await history.cancel(placed.id)

        self.assertTrue(result)
        self.assertEqual(history.orders[0].status, "cancelled")
        self.assertFalse(history.entries[0].cancellable)
        self.assertEqual(self.backend.count("PATCH"), 1)
        self.assertEqual(self.backend.requests[-1], ("GET", "/orders"))
        self.assertEqual(
            self.notes.of("information"),
            [
                "Order cancelled successfully! "
                "Refund will be processed within 3-5 business days."
            ],
        )

    async def test_known_shipped_order_is_refused_locally(self):
        await self.sign_in()
        placed = await self._place_order()
        self.backend.orders["ada@example.com"][0]["status"] = "Shipped"
        history = self.state.orders
        await history.fetch_orders()

        result = await history.cancel(placed.id)

        self.assertFalse(result)
        self.assertEqual(self.backend.count("PATCH"), 0)
        self.assertEqual(
            self.notes.of("error"), ["Order #ORD-1001 can no longer be cancelled"]
        )

    async def test_server_refusal_is_reported(self):
        await self.sign_in()
        placed = await self._place_order()
        history = self.state.orders
        await history.fetch_orders()
        # delivered meanwhile, the local copy is stale
        self.backend.orders["ada@example.com"][0]["status"] = "delivered"

        result = await history.cancel(placed.id)

        self.assertFalse(result)
        self.assertEqual(result.error, "Order cannot be cancelled")
        self.assertEqual(self.notes.of("error"), ["Order cannot be cancelled"])
        self.assertEqual(history.orders[0].status, "confirmed")

    async def test_fetch_failure_and_retry(self):
        await self.sign_in()
        self.backend.failures[("GET", "/orders")] = (500, "Database down")
        history = self.state.orders

        result = await history.fetch_orders()

        self.assertFalse(result)
        self.assertEqual(history.error, "Database down")
        self.assertEqual(
            self.notes.of("error"), ["Failed to load orders. Please try again."]
        )

        del self.backend.failures[("GET", "/orders")]
        result = await history.retry()
        self.assertTrue(result)
        self.assertIsNone(history.error)
        self.assertEqual(history.orders, [])

    async def test_logout_forgets_orders(self):
        await self.sign_in()
        await self._place_order()
        await self.state.orders.fetch_orders()
        self.assertEqual(len(self.state.orders.orders), 1)

        await self.state.session.logout()

        self.assertEqual(self.state.orders.orders, [])


class CatalogTestCase(StorefrontTestCase):
    async def test_fetch_is_public(self):
        catalog = self.state.catalog
        result = await catalog.fetch_products()

        self.assertTrue(result)
        self.assertEqual(len(catalog.products), 3)
        self.assertEqual(catalog.get("p-cable").name, "USB-C Cable")
        self.assertIsNone(catalog.get("p-missing"))
        self.assertFalse(self.state.client.has_token)

    async def test_guest_adds_after_signing_in(self):
        catalog = self.state.catalog
        await catalog.fetch_products()
        cable = catalog.get("p-cable")

        refused = await self.state.cart.add_item(cable)
        self.assertFalse(refused)
        self.assertEqual(
            self.notes.of("error"), ["Please sign in to add items to cart"]
        )
        self.assertEqual(self.backend.count("POST", "/cart/add"), 0)

        await self.sign_in()
        added = await self.state.cart.add_item(cable)

        self.assertTrue(added)
        self.assertEqual(self.state.cart.quantity_of("p-cable"), 1)
        self.assertEqual(self.backend.count("GET", "/products"), 1)

    async def test_fetch_failure_and_retry(self):
        catalog = self.state.catalog
        self.backend.failures[("GET", "/products")] = (0, None)

        result = await catalog.fetch_products()

        self.assertFalse(result)
        self.assertIsNotNone(catalog.error)
        self.assertEqual(catalog.products, [])
        self.assertEqual(
            self.notes.of("error"), ["Failed to load products. Please try again."]
        )

        del self.backend.failures[("GET", "/products")]
        self.assertTrue(await catalog.retry())
        self.assertIsNone(catalog.error)
        self.assertEqual(len(catalog.products), 3)


if __name__ == "__main__":
    unittest.main()
