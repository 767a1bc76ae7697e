"""
In-memory stand-in for the storefront REST api, mounted through httpx.MockTransport.

Behaves like the real backend as far as the client can tell: envelopes,
bearer auth, server side cart totals, order status rules. Every request is
recorded so tests can count what went over the wire.
"""

import asyncio
import json
import os
import re
import sys
import tempfile
import unittest
from typing import Dict, List, Optional, Tuple

import httpx

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from utils.config import Settings  # noqa: E402
from utils.state import AppState  # noqa: E402

BASE_URL = "http://storefront.test/api"

SEED_PRODUCTS = {
    "p-headphones": {
        "_id": "p-headphones",
        "name": "Wireless Headphones",
        "description": "Over-ear, noise cancelling",
        "price": 500,
        "image": "https://img.test/headphones.jpg",
    },
    "p-keyboard": {
        "_id": "p-keyboard",
        "name": "Mechanical Keyboard",
        "description": "Tactile switches",
        "price": 2499.5,
        "image": "https://img.test/keyboard.jpg",
    },
    "p-cable": {
        "_id": "p-cable",
        "name": "USB-C Cable",
        "description": "1m braided",
        "price": 199,
        "image": "https://img.test/cable.jpg",
    },
}

_CART_ITEM = re.compile(r"^/cart/item/(?P<pid>[^/]+)$")
_ORDER_CANCEL = re.compile(r"^/orders/(?P<oid>[^/]+)/cancel$")


def _envelope(status: int, success: bool, data=None, message: Optional[str] = None):
    body = {"success": success}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return httpx.Response(status, json=body)


class FakeStorefrontBackend:
    def __init__(self) -> None:
        self.products: Dict[str, dict] = {k: dict(v) for k, v in SEED_PRODUCTS.items()}
        self.users: Dict[str, dict] = {}
        self.tokens: Dict[str, str] = {}
        self.carts: Dict[str, Dict[str, int]] = {}
        self.orders: Dict[str, List[dict]] = {}
        self.requests: List[Tuple[str, str]] = []
        self.bodies: List[dict] = []
        # (method, path) -> (status, message); makes that route fail
        self.failures: Dict[Tuple[str, str], Tuple[int, Optional[str]]] = {}
        # server side adjustment applied to cart totals (promotions etc.)
        self.cart_discount = 0
        # when set, GET /cart waits for it
        self.hold_cart_reads: Optional[asyncio.Event] = None
        self.waiting_cart_reads = 0
        # raw bytes served for GET /cart instead of the computed payload
        self.cart_body: Optional[bytes] = None
        self._next_order = 1001

        self.add_user("ada@example.com", "secret1", "Ada", "Lovelace")

    # --- helpers for tests ---

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def add_user(self, email: str, pwd: str, first_name: str, last_name: str) -> dict:
        user = {
            "id": f"u-{len(self.users) + 1}",
            "firstName": first_name,
            "lastName": last_name,
            "email": email,
        }
        self.users[email] = {"password": pwd, "user": user}
        return user

    def count(self, method: Optional[str] = None, path: Optional[str] = None) -> int:
        return sum(
            1
            for m, p in self.requests
            if (method is None or m == method) and (path is None or p == path)
        )

    def cart_payload(self, email: str) -> dict:
        lines = self.carts.get(email, {})
        items = []
        for pid, qty in lines.items():
            product = self.products[pid]
            items.append(
                {
                    "product": {"_id": pid, "name": product["name"]},
                    "productName": product["name"],
                    "price": product["price"],
                    "image": product["image"],
                    "quantity": qty,
                }
            )
        total = sum(i["price"] * i["quantity"] for i in items) - self.cart_discount
        return {
            "items": items,
            "totalItems": sum(i["quantity"] for i in items),
            "totalAmount": max(total, 0),
        }

    # --- transport ---

    async def handle(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path.removeprefix("/api")
        self.requests.append((method, path))
        body = json.loads(request.content) if request.content else {}
        self.bodies.append(body)

        if (method, path) in self.failures:
            status, message = self.failures[(method, path)]
            if status == 0:
                raise httpx.ConnectError("Connection refused", request=request)
            return _envelope(status, False, message=message)

        if path == "/auth/login" and method == "POST":
            return self._login(body)
        if path == "/auth/signup" and method == "POST":
            return self._signup(body)
        if path == "/products" and method == "GET":
            products = list(self.products.values())
            return _envelope(200, True, {"products": products, "count": len(products)})

        email = self._caller(request)
        if email is None:
            return _envelope(401, False, message="Not authorized, no token")

        if path == "/auth/profile" and method == "GET":
            return _envelope(200, True, {"user": self.users[email]["user"]})
        if path == "/cart" and method == "GET":
            if self.hold_cart_reads is not None:
                self.waiting_cart_reads += 1
                await self.hold_cart_reads.wait()
            if self.cart_body is not None:
                return httpx.Response(
                    200,
                    content=self.cart_body,
                    headers={"Content-Type": "application/json"},
                )
            return _envelope(200, True, self.cart_payload(email))
        if path == "/cart/add" and method == "POST":
            return self._add_to_cart(email, body)
        if path == "/cart/clear" and method == "DELETE":
            self.carts[email] = {}
            return _envelope(200, True, self.cart_payload(email))
        match = _CART_ITEM.match(path)
        if match and method == "PUT":
            return self._update_item(email, match["pid"], body)
        if match and method == "DELETE":
            self.carts.setdefault(email, {}).pop(match["pid"], None)
            return _envelope(200, True, self.cart_payload(email))
        if path == "/orders" and method == "POST":
            return self._create_order(email, body)
        if path == "/orders" and method == "GET":
            return _envelope(200, True, {"orders": list(self.orders.get(email, []))})
        match = _ORDER_CANCEL.match(path)
        if match and method == "PATCH":
            return self._cancel_order(email, match["oid"])

        return _envelope(404, False, message=f"Route {method} {path} not found")

    def _caller(self, request: httpx.Request) -> Optional[str]:
        auth = request.headers.get("Authorization", "")
        if not auth.startswith("Bearer "):
            return None
        return self.tokens.get(auth.removeprefix("Bearer "))

    def _issue(self, email: str) -> httpx.Response:
        token = f"token-{len(self.tokens) + 1}"
        self.tokens[token] = email
        return _envelope(200, True, {"user": self.users[email]["user"], "token": token})

    def _login(self, body: dict) -> httpx.Response:
        record = self.users.get(body.get("email"))
        if record is None or record["password"] != body.get("password"):
            return _envelope(401, False, message="Invalid email or password")
        return self._issue(body["email"])

    def _signup(self, body: dict) -> httpx.Response:
        if body.get("email") in self.users:
            return _envelope(400, False, message="User already exists")
        self.add_user(
            body["email"], body["password"], body["firstName"], body["lastName"]
        )
        return self._issue(body["email"])

    def _add_to_cart(self, email: str, body: dict) -> httpx.Response:
        pid = body.get("productId")
        if pid not in self.products:
            return _envelope(404, False, message="Product not found")
        cart = self.carts.setdefault(email, {})
        cart[pid] = cart.get(pid, 0) + int(body.get("quantity", 1))
        return _envelope(200, True, self.cart_payload(email))

    def _update_item(self, email: str, pid: str, body: dict) -> httpx.Response:
        cart = self.carts.setdefault(email, {})
        if pid not in cart:
            return _envelope(404, False, message="Item not in cart")
        cart[pid] = int(body["quantity"])
        return _envelope(200, True, self.cart_payload(email))

    def _create_order(self, email: str, body: dict) -> httpx.Response:
        items, total = [], 0
        for entry in body.get("cartItems", []):
            product = self.products[entry["id"]]
            qty = entry["quantity"]
            items.append({"productName": product["name"], "quantity": qty})
            total += product["price"] * qty
        order = {
            "_id": f"o-{self._next_order}",
            "orderId": f"ORD-{self._next_order}",
            "status": "confirmed",
            "totalAmount": total,
            "items": items,
            "shippingAddress": {
                "firstName": body["firstName"],
                "lastName": body["lastName"],
                "address": body["address"],
            },
            "createdAt": "2025-03-01T10:00:00.000Z",
        }
        self._next_order += 1
        self.orders.setdefault(email, []).insert(0, order)
        return _envelope(201, True, {"order": order})

    def _cancel_order(self, email: str, order_id: str) -> httpx.Response:
        for order in self.orders.get(email, []):
            if order["_id"] == order_id:
                if order["status"].lower() not in ("confirmed", "processing"):
                    return _envelope(400, False, message="Order cannot be cancelled")
                order["status"] = "cancelled"
                return _envelope(200, True, {"order": order})
        return _envelope(404, False, message="Order not found")


class RecordingNotifier:
    """Collects what would have been shown to the user."""

    def __init__(self) -> None:
        self.messages: List[Tuple[str, str]] = []

    def __call__(self, message: str, *, severity: str = "information") -> None:
        self.messages.append((severity, message))

    def of(self, severity: str) -> List[str]:
        return [m for s, m in self.messages if s == severity]

    def clear(self) -> None:
        self.messages.clear()


class StorefrontTestCase(unittest.IsolatedAsyncioTestCase):
    """Fresh backend, fresh credential file and a fully wired AppState per test."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.data_path = os.path.join(self.temp_dir.name, "storefront.sqlite")
        self.backend = FakeStorefrontBackend()
        self.notes = RecordingNotifier()
        self.settings = Settings(api_url=BASE_URL, data_path=self.data_path)

    async def asyncSetUp(self):
        self.state = AppState(
            self.settings, notify=self.notes, transport=self.backend.transport()
        )

    async def asyncTearDown(self):
        await self.state.aclose()

    def tearDown(self):
        self.temp_dir.cleanup()

    async def sign_in(self, email: str = "ada@example.com", pwd: str = "secret1"):
        result = await self.state.session.login(email, pwd)
        self.assertTrue(result.success, result.error)
        self.notes.clear()
        return result.value
