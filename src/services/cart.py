from __future__ import annotations

from typing import Optional, Tuple

from api import endpoints
from api.client import ApiClient, ApiError
from api.models import Cart, CartLine, Product
from services.base import Notifier, OperationResult, Service, error_message
from services.session import Authenticated, SessionState, SessionStore
from utils.logger import get_logger

_logger = get_logger(__name__)


class CartSynchronizer(Service):
    """
    Client side cache of the signed in user's server side cart.

    The cache is only trusted right after a fetch: every mutation is followed
    by a full reload instead of patching the cache, so totals always come from
    the server. Overlapping calls are not queued; whichever reload lands last
    wins.

    Loads when a session is established and empties when it ends. A reload that
    lands after the session ended (or changed hands) is dropped, so requests in
    flight during logout never repopulate the cache.
    """

    def __init__(
        self,
        client: ApiClient,
        session: SessionStore,
        notify: Optional[Notifier] = None,
    ) -> None:
        super().__init__(notify)
        self._client = client
        self._session = session
        self._cart = Cart.empty()
        self._generation = 0
        self._owner_token: Optional[str] = None
        session.subscribe(self._on_session_change)

    # --- read side ---

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def items(self) -> Tuple[CartLine, ...]:
        return self._cart.items

    @property
    def total_items(self) -> int:
        return self._cart.total_items

    @property
    def total_amount(self) -> float:
        return self._cart.total_amount

    def quantity_of(self, product_id: str) -> int:
        line = self._cart.find(product_id)
        return line.quantity if line else 0

    def contains(self, product_id: str) -> bool:
        return self._cart.find(product_id) is not None

    # --- session lifecycle ---

    async def _on_session_change(self, state: SessionState) -> None:
        token = state.token if isinstance(state, Authenticated) else None
        if token == self._owner_token:
            return
        self._owner_token = token
        self._reset()
        if token is not None:
            await self.load()

    def _reset(self) -> None:
        self._generation += 1
        self._cart = Cart.empty()

    # --- operations ---

    async def load(self) -> OperationResult:
        """Replace the cache with the server's cart; empty it on any failure."""
        if not self._session.is_authenticated:
            self._reset()
            return OperationResult.ok(self._cart)

        generation = self._generation
        with self._track():
            try:
                cart = await endpoints.get_cart(self._client)
            except (ApiError, ValueError) as e:
                _logger.error(f"Error loading cart: {e}")
                if generation == self._generation:
                    self._cart = Cart.empty()
                return OperationResult.fail(error_message(e, "Failed to load cart"))

        if generation != self._generation:
            _logger.debug("Dropping cart reload that landed after a session change")
            return OperationResult.fail("Session changed")

        self._cart = cart
        return OperationResult.ok(cart)

    async def add_item(self, product: Product) -> OperationResult:
        if not self._session.is_authenticated:
            self._error("Please sign in to add items to cart")
            return OperationResult.fail("Please sign in to add items to cart")

        with self._track():
            try:
                await endpoints.add_to_cart(self._client, product.id, 1)
            except ApiError as e:
                _logger.error(f"Error adding {product.id} to cart: {e.message}")
                self._error("Failed to add item to cart")
                return OperationResult.fail(e.message)
            await self.load()

        self._info(f"{product.name} added to cart!")
        return OperationResult.ok(self._cart)

    async def set_quantity(self, product_id: str, quantity: int) -> OperationResult:
        """A quantity below 1 is a removal."""
        if quantity < 1:
            return await self.remove_item(product_id)
        if not self._session.is_authenticated:
            return OperationResult.fail("Not signed in")

        with self._track():
            try:
                await endpoints.update_cart_item(self._client, product_id, quantity)
            except ApiError as e:
                _logger.error(f"Error updating {product_id} in cart: {e.message}")
                self._error("Failed to update cart")
                return OperationResult.fail(e.message)
            await self.load()

        return OperationResult.ok(self._cart)

    async def remove_item(self, product_id: str) -> OperationResult:
        if not self._session.is_authenticated:
            return OperationResult.fail("Not signed in")

        line = self._cart.find(product_id)
        with self._track():
            try:
                await endpoints.remove_cart_item(self._client, product_id)
            except ApiError as e:
                _logger.error(f"Error removing {product_id} from cart: {e.message}")
                self._error("Failed to remove item from cart")
                return OperationResult.fail(e.message)
            await self.load()

        if line:
            self._info(f"{line.name} removed from cart!")
        return OperationResult.ok(self._cart)

    async def clear(self, silent: bool = False) -> OperationResult:
        """
        Empty the cart. `silent` suppresses the notifications, used when the
        cart is cleared as a side effect of placing an order.
        """
        if not self._session.is_authenticated:
            return OperationResult.fail("Not signed in")

        with self._track():
            try:
                await endpoints.clear_cart(self._client)
            except ApiError as e:
                _logger.error(f"Error clearing cart: {e.message}")
                if not silent:
                    self._error("Failed to clear cart")
                return OperationResult.fail(e.message)

        self._cart = Cart.empty()
        if not silent:
            self._info("Cart cleared!")
        return OperationResult.ok(self._cart)
