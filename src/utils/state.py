from __future__ import annotations

from typing import Optional

import httpx

from api.client import ApiClient
from api.storage import CredentialStore
from services.base import Notifier
from services.cart import CartSynchronizer
from services.catalog import ProductCatalog
from services.checkout import OrderSubmissionFlow
from services.orders import OrderHistory
from services.session import SessionStore
from utils.config import Settings


class AppState:
    """
    Builds and owns every service of the running client.

    Screens get their services from here (through the app) instead of any
    module level singleton; the cart follows the session through the hook
    it registers on construction.

    Fields:
      - client: the one ApiClient all services share
      - session: SessionStore, owns the token and the persisted credentials
      - cart: CartSynchronizer, owns the cart projection
      - checkout: OrderSubmissionFlow
      - orders: OrderHistory
      - catalog: ProductCatalog
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        notify: Optional[Notifier] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.client = ApiClient(
            self.settings.api_url, self.settings.api_timeout, transport=transport
        )
        self.storage = CredentialStore(self.settings.data_path)

        self.session = SessionStore(self.client, self.storage, notify)
        self.cart = CartSynchronizer(self.client, self.session, notify)
        self.checkout = OrderSubmissionFlow(self.client, self.cart, notify)
        self.orders = OrderHistory(self.client, notify)
        self.catalog = ProductCatalog(self.client, notify)
        self.session.subscribe(self._on_session_change)

    async def _on_session_change(self, state) -> None:
        if not self.session.is_authenticated:
            self.orders.reset()

    async def aclose(self) -> None:
        await self.client.aclose()
