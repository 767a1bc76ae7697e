# provide dataclass models, parsed from the api's json payloads

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


def _id_of(raw: Any) -> str:
    """Accept both mongo style `_id` and plain `id`."""
    if isinstance(raw, dict):
        val = raw.get("_id", raw.get("id"))
    else:
        val = raw
    if val is None or val == "":
        raise ValueError("Missing id in payload.")
    return str(val)


def _require(raw: Dict[str, Any], key: str) -> Any:
    if key not in raw or raw[key] is None:
        raise ValueError(f"Missing field '{key}' in payload.")
    return raw[key]


def _to_number(val: Any) -> float:
    try:
        number = float(val)
    except (TypeError, ValueError):
        raise ValueError(f"Not a number: {val!r}") from None
    # json parses 1e400 as inf
    if not math.isfinite(number):
        raise ValueError(f"Not a finite number: {val!r}")
    return number


def _to_int(val: Any) -> int:
    return int(_to_number(val))


def parse_timestamp(val: Any) -> datetime:
    """Parse ISO-8601 timestamps, including the trailing `Z` js produces."""
    if isinstance(val, datetime):
        return val
    if not isinstance(val, str):
        raise ValueError(f"Not a timestamp: {val!r}")
    text = val.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class User:
    id: str
    first_name: str
    last_name: str
    email: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_json(cls, raw: Any) -> User:
        if not isinstance(raw, dict):
            raise ValueError("User payload must be an object.")
        return cls(
            id=_id_of(raw),
            first_name=str(_require(raw, "firstName")),
            last_name=str(_require(raw, "lastName")),
            email=str(_require(raw, "email")),
        )

    def to_json(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
        }


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    description: str
    price: float
    image_url: str

    @classmethod
    def from_json(cls, raw: Any) -> Product:
        if not isinstance(raw, dict):
            raise ValueError("Product payload must be an object.")
        return cls(
            id=_id_of(raw),
            name=str(_require(raw, "name")),
            description=str(raw.get("description") or ""),
            price=_to_number(_require(raw, "price")),
            image_url=str(raw.get("image") or ""),
        )


@dataclass(frozen=True)
class CartLine:
    product_id: str
    name: str
    unit_price: float
    image_url: str
    quantity: int  # >= 1, enforced by the server

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity

    @classmethod
    def from_json(cls, raw: Any) -> CartLine:
        if not isinstance(raw, dict):
            raise ValueError("Cart line payload must be an object.")
        return cls(
            product_id=_id_of(_require(raw, "product")),
            name=str(raw.get("productName") or ""),
            unit_price=_to_number(_require(raw, "price")),
            image_url=str(raw.get("image") or ""),
            quantity=_to_int(_require(raw, "quantity")),
        )


@dataclass(frozen=True)
class Cart:
    """
    Client side projection of the server owned cart.
    Totals are taken from the payload as-is, never summed locally.
    """

    items: Tuple[CartLine, ...] = ()
    total_items: int = 0
    total_amount: float = 0.0

    @classmethod
    def empty(cls) -> Cart:
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, product_id: str) -> Optional[CartLine]:
        for line in self.items:
            if line.product_id == product_id:
                return line
        return None

    @classmethod
    def from_json(cls, raw: Any) -> Cart:
        if not isinstance(raw, dict):
            raise ValueError("Cart payload must be an object.")
        return cls(
            items=tuple(CartLine.from_json(item) for item in raw.get("items") or []),
            total_items=_to_int(raw.get("totalItems", 0)),
            total_amount=_to_number(raw.get("totalAmount", 0)),
        )


@dataclass(frozen=True)
class OrderItem:
    product_name: str
    quantity: int

    @classmethod
    def from_json(cls, raw: Any) -> OrderItem:
        if not isinstance(raw, dict):
            raise ValueError("Order item payload must be an object.")
        return cls(
            product_name=str(raw.get("productName") or ""),
            quantity=_to_int(raw.get("quantity", 0)),
        )


@dataclass(frozen=True)
class ShippingAddress:
    first_name: str
    last_name: str
    address: str

    @classmethod
    def from_json(cls, raw: Any) -> ShippingAddress:
        raw = raw if isinstance(raw, dict) else {}
        return cls(
            first_name=str(raw.get("firstName") or ""),
            last_name=str(raw.get("lastName") or ""),
            address=str(raw.get("address") or ""),
        )


ORDER_STATUSES = ("confirmed", "processing", "shipped", "delivered", "cancelled")


@dataclass(frozen=True)
class Order:
    id: str
    order_number: str  # human readable, falls back to the id
    status: str  # lower cased, one of ORDER_STATUSES
    total_amount: float
    items: Tuple[OrderItem, ...]
    shipping_address: ShippingAddress
    created_at: datetime

    @classmethod
    def from_json(cls, raw: Any) -> Order:
        if not isinstance(raw, dict):
            raise ValueError("Order payload must be an object.")
        order_id = _id_of(raw)
        return cls(
            id=order_id,
            order_number=str(raw.get("orderId") or order_id),
            status=str(_require(raw, "status")).lower(),
            total_amount=_to_number(raw.get("totalAmount", 0)),
            items=tuple(OrderItem.from_json(item) for item in raw.get("items") or []),
            shipping_address=ShippingAddress.from_json(raw.get("shippingAddress")),
            created_at=parse_timestamp(_require(raw, "createdAt")),
        )


def parse_list(parser, raw: Any, key: str) -> List[Any]:
    """`data.<key>` lists, e.g. {"products": [...], "count": 8}."""
    if isinstance(raw, dict):
        raw = raw.get(key)
    return [parser(item) for item in raw or []]
