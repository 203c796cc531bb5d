import logging
import uuid
from typing import Any, Dict, List, TYPE_CHECKING

from ...core.errors import PermissionError, ResourceNotFoundError
from ...models.domain import Product, to_document, utc_now_iso
from ...models.permissions import Role

if TYPE_CHECKING:
    from ..storage.gateway import DataGateway

logger = logging.getLogger(__name__)

COLLECTION = "products"


class ProductService:
    """Product catalogue. Admins manage it; everyone else browses active products."""

    def __init__(self, gateway: "DataGateway"):
        self._gateway = gateway

    @staticmethod
    def _require_admin(current_user: Dict[str, Any]) -> None:
        if current_user.get("role") != Role.ADMIN.value:
            raise PermissionError("Only admins can manage products")

    async def list_products(
        self, current_user: Dict[str, Any], category: str = "", include_inactive: bool = False
    ) -> List[Dict[str, Any]]:
        show_inactive = include_inactive and current_user.get("role") == Role.ADMIN.value
        products = []
        for product in await self._gateway.list_items(COLLECTION):
            if not show_inactive and not product.get("is_active", True):
                continue
            if category and product.get("category") != category:
                continue
            products.append(product)
        products.sort(key=lambda p: (p.get("category") or "", p.get("name") or ""))
        return products

    async def get_product(self, current_user: Dict[str, Any], product_id: str) -> Dict[str, Any]:
        product = await self._gateway.get_item(COLLECTION, product_id)
        if product is None:
            raise ResourceNotFoundError("Product", product_id)
        if not product.get("is_active", True) and current_user.get("role") != Role.ADMIN.value:
            raise ResourceNotFoundError("Product", product_id)
        return product

    async def create_product(self, current_user: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
        self._require_admin(current_user)
        product = Product(id=f"product-{uuid.uuid4().hex[:10]}", created_at=utc_now_iso(), **data)
        created = await self._gateway.create_item(COLLECTION, to_document(product))
        logger.info("Product %s created by %s", created["id"], current_user["id"])
        return created

    async def update_product(
        self, current_user: Dict[str, Any], product_id: str, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        self._require_admin(current_user)
        updates = {k: v for k, v in data.items() if k not in ("id", "created_at")}
        updated = await self._gateway.update_item(COLLECTION, product_id, updates)
        if updated is None:
            raise ResourceNotFoundError("Product", product_id)
        return updated

    async def delete_product(self, current_user: Dict[str, Any], product_id: str) -> None:
        self._require_admin(current_user)
        if not await self._gateway.delete_item(COLLECTION, product_id):
            raise ResourceNotFoundError("Product", product_id)
        logger.info("Product %s deleted by %s", product_id, current_user["id"])
