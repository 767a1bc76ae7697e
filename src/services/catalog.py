from __future__ import annotations

from typing import List, Optional

from api import endpoints
from api.client import ApiClient, ApiError
from api.models import Product
from services.base import Notifier, OperationResult, Service, error_message
from utils.logger import get_logger

_logger = get_logger(__name__)


class ProductCatalog(Service):
    """Read-only product listing. Public, no session needed."""

    def __init__(self, client: ApiClient, notify: Optional[Notifier] = None) -> None:
        super().__init__(notify)
        self._client = client
        self.products: List[Product] = []
        self.error: Optional[str] = None

    def get(self, product_id: str) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    async def fetch_products(self) -> OperationResult:
        self.error = None
        with self._track():
            try:
                products = await endpoints.list_products(self._client)
            except (ApiError, ValueError) as e:
                _logger.error(f"Error fetching products: {e}")
                self.error = error_message(e, "Failed to load products")
                self._error("Failed to load products. Please try again.")
                return OperationResult.fail(self.error)

        self.products = products
        return OperationResult.ok(products)

    async def retry(self) -> OperationResult:
        return await self.fetch_products()
