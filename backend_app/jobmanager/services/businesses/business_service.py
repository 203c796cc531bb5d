import logging
import uuid
from typing import Any, Dict, List, TYPE_CHECKING

from ...core.errors import PermissionError, ResourceNotFoundError, ValidationError
from ...models.domain import Business, to_document, utc_now_iso
from ...models.permissions import Role
from ...utils.input_validation import InputValidator

if TYPE_CHECKING:
    from ..storage.gateway import DataGateway

logger = logging.getLogger(__name__)

COLLECTION = "businesses"


class BusinessService:
    """Tenant records. Admins manage them; business users read their own."""

    def __init__(self, gateway: "DataGateway"):
        self._gateway = gateway

    @staticmethod
    def _require_admin(current_user: Dict[str, Any]) -> None:
        if current_user.get("role") != Role.ADMIN.value:
            raise PermissionError("Only admins can manage businesses")

    @staticmethod
    def _validate(data: Dict[str, Any]) -> None:
        if data.get("email") and not InputValidator.validate_email(data["email"]):
            raise ValidationError("A valid business email is required", field="email")
        if data.get("phone") and not InputValidator.validate_phone(data["phone"]):
            raise ValidationError("Phone number is not valid", field="phone")

    async def list_businesses(self, current_user: Dict[str, Any]) -> List[Dict[str, Any]]:
        businesses = await self._gateway.list_items(COLLECTION)
        if current_user.get("role") != Role.ADMIN.value:
            businesses = [b for b in businesses if b.get("id") == current_user.get("business_id")]
        businesses.sort(key=lambda b: (b.get("name") or "").lower())
        return businesses

    async def get_business(self, current_user: Dict[str, Any], business_id: str) -> Dict[str, Any]:
        if current_user.get("role") != Role.ADMIN.value and current_user.get("business_id") != business_id:
            raise PermissionError("You can only view your own business")
        business = await self._gateway.get_item(COLLECTION, business_id)
        if business is None:
            raise ResourceNotFoundError("Business", business_id)
        return business

    async def create_business(self, current_user: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
        self._require_admin(current_user)
        self._validate(data)
        business = Business(
            id=str(uuid.uuid4()),
            created_at=utc_now_iso(),
            **{k: v for k, v in data.items() if k not in ("id", "created_at")},
        )
        if not business.admin_id:
            business.admin_id = current_user["id"]
        created = await self._gateway.create_item(COLLECTION, to_document(business))
        logger.info("Business %s created by %s", created["id"], current_user["id"])
        return created

    async def update_business(
        self, current_user: Dict[str, Any], business_id: str, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        self._require_admin(current_user)
        self._validate(data)
        updates = {k: getattr(v, "value", v) for k, v in data.items() if k not in ("id", "created_at")}
        updated = await self._gateway.update_item(COLLECTION, business_id, updates)
        if updated is None:
            raise ResourceNotFoundError("Business", business_id)
        return updated

    async def delete_business(self, current_user: Dict[str, Any], business_id: str) -> None:
        """Remove the business record only; its users, jobs and customers are left in place."""
        self._require_admin(current_user)
        if not await self._gateway.delete_item(COLLECTION, business_id):
            raise ResourceNotFoundError("Business", business_id)
        logger.info("Business %s deleted by %s", business_id, current_user["id"])
