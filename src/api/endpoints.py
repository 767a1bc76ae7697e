# src/api/endpoints.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from api import models
from api.client import ApiClient


def _auth_payload(data: Any) -> Tuple[models.User, str]:
    if not isinstance(data, dict) or not data.get("token"):
        raise ValueError("Auth response carries no token.")
    return models.User.from_json(data.get("user")), str(data["token"])


# ---------------------------
# Auth & Registration
# ---------------------------


async def signup(
    client: ApiClient, first_name: str, last_name: str, email: str, pwd: str
) -> Tuple[models.User, str]:
    """Create a new account. Returns (user, token)."""
    data = await client.post(
        "/auth/signup",
        json={
            "firstName": first_name,
            "lastName": last_name,
            "email": email,
            "password": pwd,
        },
    )
    return _auth_payload(data)


async def login(client: ApiClient, email: str, pwd: str) -> Tuple[models.User, str]:
    """Authenticate. Returns (user, token)."""
    data = await client.post("/auth/login", json={"email": email, "password": pwd})
    return _auth_payload(data)


async def get_profile(client: ApiClient) -> models.User:
    """Fetch the user the current token belongs to."""
    data = await client.get("/auth/profile")
    if isinstance(data, dict) and "user" in data:
        data = data["user"]
    return models.User.from_json(data)


# ---------------------------
# Products
# ---------------------------


async def list_products(client: ApiClient) -> List[models.Product]:
    """Whole catalog; the backend sends {products: [...], count}."""
    data = await client.get("/products")
    return models.parse_list(models.Product.from_json, data, "products")


# ---------------------------
# Cart Management
# ---------------------------


async def get_cart(client: ApiClient) -> models.Cart:
    data = await client.get("/cart")
    return models.Cart.from_json(data)


async def add_to_cart(client: ApiClient, product_id: str, qty: int = 1) -> None:
    await client.post("/cart/add", json={"productId": product_id, "quantity": qty})


async def update_cart_item(client: ApiClient, product_id: str, qty: int) -> None:
    await client.put(f"/cart/item/{product_id}", json={"quantity": qty})


async def remove_cart_item(client: ApiClient, product_id: str) -> None:
    await client.delete(f"/cart/item/{product_id}")


async def clear_cart(client: ApiClient) -> None:
    await client.delete("/cart/clear")


# ---------------------------
# Checkout & Orders
# ---------------------------


async def create_order(
    client: ApiClient,
    first_name: str,
    last_name: str,
    address: str,
    cart_items: Iterable[Tuple[str, int]],
) -> Optional[models.Order]:
    """
    Place an order for (product id, quantity) pairs.
    Prices are never sent, the server prices the order itself.
    Returns the created order when the server echoes it back.
    """
    body: Dict[str, Any] = {
        "firstName": first_name,
        "lastName": last_name,
        "address": address,
        "cartItems": [{"id": pid, "quantity": qty} for pid, qty in cart_items],
    }
    data = await client.post("/orders", json=body)
    if isinstance(data, dict) and "order" in data:
        data = data["order"]
    if not isinstance(data, dict):
        return None
    try:
        return models.Order.from_json(data)
    except ValueError:
        return None


async def list_orders(client: ApiClient) -> List[models.Order]:
    """The caller's orders; the backend sends {orders: [...]}."""
    data = await client.get("/orders")
    return models.parse_list(models.Order.from_json, data, "orders")


async def cancel_order(client: ApiClient, order_id: str) -> None:
    await client.patch(f"/orders/{order_id}/cancel")
